"""Pytest configuration and shared fixtures for flowlink tests."""

import pytest

from flowlink import (
    ConnectionRegistry,
    FlowController,
    InMemoryScene,
    MemoryStorage,
    RecomputeTrace,
    RecordingChannel,
    Style,
)


@pytest.fixture
def scene():
    """Empty in-memory scene."""
    return InMemoryScene()


@pytest.fixture
def side_by_side(scene):
    """Two boxes next to each other on the x axis."""
    scene.add_object("a", 0, 0, 50, 50, name="Start")
    scene.add_object("b", 200, 0, 50, 50, name="End")
    return scene


@pytest.fixture
def stacked(scene):
    """Two boxes stacked on the y axis."""
    scene.add_object("a", 0, 0, 50, 50, name="Top")
    scene.add_object("b", 0, 200, 50, 50, name="Bottom")
    return scene


@pytest.fixture
def trace():
    return RecomputeTrace()


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def registry(scene, trace, storage):
    """Registry subscribed to the scene, with tracing and storage."""
    return ConnectionRegistry(scene, storage=storage, trace=trace)


@pytest.fixture
def straight_style():
    return Style(orthogonal=False, avoid_obstacles=False)


@pytest.fixture
def channel():
    return RecordingChannel()


@pytest.fixture
def controller(scene, channel, registry):
    return FlowController(scene, channel, registry=registry)
