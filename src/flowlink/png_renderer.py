"""
PNG snapshot of a scene.

Renders the shapes, connector lines and terminal decorations of an
``InMemoryScene`` into a PNG image. Useful for eyeballing routing results
from tests and the demo script.
"""

import math
from typing import List, Tuple

from PIL import Image, ImageDraw, ImageFont

from .models import BoundingBox, Point
from .scene import InMemoryScene, SceneObject
from .terminals import DecorationShape


class PNGRenderer:
    """Renders a scene snapshot as a PNG image."""

    def __init__(self, scale: int = 2, margin: int = 40):
        self.scale = scale
        self.margin = margin

        # Colors
        self.bg_color = (255, 255, 255)
        self.box_fill = (245, 245, 250)
        self.box_outline = (60, 60, 60)
        self.text_color = (0, 0, 0)

        self.font = None
        self._origin = (0.0, 0.0)

    def _get_font(self) -> ImageFont.ImageFont:
        if self.font is None:
            self.font = ImageFont.load_default()
        return self.font

    def _to_canvas(self, point: Point) -> Tuple[float, float]:
        return (
            (point[0] - self._origin[0]) * self.scale + self.margin,
            (point[1] - self._origin[1]) * self.scale + self.margin,
        )

    def _extent(self, objects: List[SceneObject]) -> BoundingBox:
        xs = [o.box.x for o in objects] + [o.box.x2 for o in objects]
        ys = [o.box.y for o in objects] + [o.box.y2 for o in objects]
        return BoundingBox(min(xs), min(ys), max(xs) - min(xs), max(ys) - min(ys))

    def render(self, scene: InMemoryScene, output_path: str = "scene.png") -> str:
        """
        Render the scene.

        Args:
            scene: Scene to draw.
            output_path: Path to save the PNG file.

        Returns:
            Path to the saved PNG file.
        """
        objects = scene.visible_objects()
        if not objects:
            img = Image.new("RGB", (200, 100), self.bg_color)
            img.save(output_path)
            return output_path

        extent = self._extent(objects)
        self._origin = (extent.x, extent.y)
        width = int(math.ceil(extent.width * self.scale)) + self.margin * 2
        height = int(math.ceil(extent.height * self.scale)) + self.margin * 2

        img = Image.new("RGB", (width, height), self.bg_color)
        draw = ImageDraw.Draw(img)

        # Shapes first so connectors are drawn on top
        for obj in objects:
            if obj.kind == "shape":
                self._draw_shape(draw, obj)
        for obj in objects:
            if obj.kind == "line":
                self._draw_line(draw, obj)
        for obj in objects:
            if obj.kind == "decoration":
                self._draw_decoration(draw, obj)

        img.save(output_path)
        return output_path

    def _draw_shape(self, draw: ImageDraw.ImageDraw, obj: SceneObject) -> None:
        x1, y1 = self._to_canvas((obj.box.x, obj.box.y))
        x2, y2 = self._to_canvas((obj.box.x2, obj.box.y2))
        draw.rectangle([x1, y1, x2, y2], fill=self.box_fill, outline=self.box_outline, width=self.scale)

        font = self._get_font()
        bbox = draw.textbbox((0, 0), obj.name, font=font)
        text_w, text_h = bbox[2] - bbox[0], bbox[3] - bbox[1]
        draw.text(
            ((x1 + x2 - text_w) / 2, (y1 + y2 - text_h) / 2),
            obj.name,
            fill=self.text_color,
            font=font,
        )

    def _draw_line(self, draw: ImageDraw.ImageDraw, obj: SceneObject) -> None:
        spec = obj.spec
        color = spec.stroke_color.to_rgb255()
        line_width = max(1, int(round(spec.stroke_width * self.scale)))
        points = [self._to_canvas(p) for p in spec.points]
        dash = [d * self.scale for d in spec.dash_pattern]

        for p1, p2 in zip(points, points[1:]):
            if dash:
                self._draw_dashed(draw, p1, p2, dash, color, line_width)
            else:
                draw.line([p1, p2], fill=color, width=line_width)

    def _draw_dashed(
        self,
        draw: ImageDraw.ImageDraw,
        p1: Tuple[float, float],
        p2: Tuple[float, float],
        dash: List[float],
        color: Tuple[int, int, int],
        line_width: int,
    ) -> None:
        length = math.hypot(p2[0] - p1[0], p2[1] - p1[1])
        if length == 0:
            return
        ux, uy = (p2[0] - p1[0]) / length, (p2[1] - p1[1]) / length
        pos, i = 0.0, 0
        while pos < length:
            step = dash[i % len(dash)]
            if i % 2 == 0:
                end = min(pos + step, length)
                draw.line(
                    [(p1[0] + ux * pos, p1[1] + uy * pos), (p1[0] + ux * end, p1[1] + uy * end)],
                    fill=color,
                    width=line_width,
                )
            pos += step
            i += 1

    def _draw_decoration(self, draw: ImageDraw.ImageDraw, obj: SceneObject) -> None:
        spec = obj.spec
        color = spec.fill.to_rgb255()
        if spec.shape == DecorationShape.POLYGON:
            draw.polygon([self._to_canvas(p) for p in spec.points], fill=color)
            return

        box = spec.bounds()
        corners = [self._to_canvas((box.x, box.y)), self._to_canvas((box.x2, box.y2))]
        if spec.shape == DecorationShape.ELLIPSE:
            draw.ellipse(corners, fill=color)
        else:
            draw.rectangle(corners, fill=color)


def render_scene_to_png(scene: InMemoryScene, output_path: str = "scene.png", **kwargs) -> str:
    """
    Convenience function to render a scene to PNG.

    Args:
        scene: Scene to draw.
        output_path: Path to save the PNG file.
        **kwargs: Additional parameters for PNGRenderer.

    Returns:
        Path to the saved PNG file.
    """
    renderer = PNGRenderer(**kwargs)
    return renderer.render(scene, output_path)
