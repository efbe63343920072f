#!/usr/bin/env python3
"""
Demo script for flowlink.

Builds a small in-memory scene, connects objects the way a user would
(by selecting one object and then a second), drags things around and
prints what the change tracker did along the way.
"""

import logging
import sys

from flowlink import (
    ConnectionRegistry,
    FlowController,
    InMemoryScene,
    MemoryStorage,
    RecomputeTrace,
    RecordingChannel,
    render_scene_to_png,
)


def print_header(title):
    """Print a formatted header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70 + "\n")


def build_host():
    scene = InMemoryScene()
    trace = RecomputeTrace()
    registry = ConnectionRegistry(scene, storage=MemoryStorage(), trace=trace)
    channel = RecordingChannel()
    controller = FlowController(scene, channel, registry=registry, notify=print)
    return scene, trace, registry, channel, controller


def show_connection(conn):
    print(f"{conn.id}: {conn.source.node_id}({conn.source.resolved_edge.value})"
          f" -> {conn.target.node_id}({conn.target.resolved_edge.value})")
    print(f"  path: {conn.path}")


def demo_1():
    """Demo 1: Connect by selection"""
    print_header("Demo 1: Connect Two Boxes By Selection")

    scene, _, registry, channel, _ = build_host()
    scene.add_object("a", 0, 0, 120, 60, name="Plan")
    scene.add_object("b", 300, 0, 120, 60, name="Build")

    scene.select("a")
    scene.select("a", "b")

    for conn in registry.connections():
        show_connection(conn)
    print(f"\nLast UI message: {channel.last}")


def demo_2():
    """Demo 2: Drag an endpoint"""
    print_header("Demo 2: Connectors Follow Moved Objects")

    scene, trace, registry, _, _ = build_host()
    scene.add_object("a", 0, 0, 120, 60, name="Plan")
    scene.add_object("b", 300, 0, 120, 60, name="Build")
    scene.select("a")
    scene.select("a", "b")
    conn = registry.connections()[0]

    for x, y in [(320, 80), (340, 200), (0, 300)]:
        scene.move("b", x, y)
        show_connection(conn)

    print()
    print(trace.summary())


def demo_3():
    """Demo 3: Obstacles"""
    print_header("Demo 3: Routing Around An Obstacle")

    scene, _, registry, _, _ = build_host()
    scene.add_object("a", 0, 0, 120, 60, name="Plan")
    scene.add_object("b", 400, 0, 120, 60, name="Ship")
    scene.add_object("wall", 200, 0, 40, 60, name="Review")
    scene.select("a")
    scene.select("a", "b")
    show_connection(registry.connections()[0])


def demo_4():
    """Demo 4: UI messages"""
    print_header("Demo 4: Settings From The UI")

    scene, _, registry, channel, controller = build_host()
    scene.add_object("a", 0, 0, 120, 60, name="Plan")
    scene.add_object("b", 300, 200, 120, 60, name="Test")

    controller.handle_message({"type": "update-style", "lineKind": "dashed", "endTerminal": "diamond"})
    controller.handle_message({"type": "update-routing", "orthogonalOnly": False})
    scene.select("a")
    scene.select("a", "b")
    conn = registry.connections()[0]
    show_connection(conn)
    print(f"  dash pattern: {conn.line.spec.dash_pattern}")

    controller.handle_message({"type": "clear-all"})
    print(f"\nLast UI message: {channel.last}")


def demo_5(output_path="flowlink_demo.png"):
    """Demo 5: PNG snapshot"""
    print_header("Demo 5: PNG Snapshot")

    scene, _, _, _, _ = build_host()
    scene.add_object("a", 0, 0, 120, 60, name="Plan")
    scene.add_object("b", 300, 150, 120, 60, name="Build")
    scene.add_object("c", 0, 300, 120, 60, name="Ship")
    scene.select("a")
    scene.select("a", "b")
    scene.select("b")
    scene.select("b", "c")

    print(f"Saved {render_scene_to_png(scene, output_path)}")


def main():
    """Run all demos."""
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    demos = [demo_1, demo_2, demo_3, demo_4, demo_5]

    print("\n" + "=" * 70)
    print("  FLOWLINK - DEMONSTRATION")
    print("=" * 70)

    for demo_func in demos:
        demo_func()

    print("\n" + "=" * 70)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\n\nDemo interrupted. Goodbye!")
        sys.exit(0)
