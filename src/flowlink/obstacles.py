"""
Obstacle detection for connection routing.

Finds scene objects lying in the corridor between two anchors. The result is
a clearance signal for the path planner, not an inventory: it is capped and
callers must not assume it lists every overlapping object.
"""

import logging
from typing import Iterable, List, Optional

from .geometry import bounding_rect
from .models import Point
from .scene import SceneGraph, SceneObject

logger = logging.getLogger(__name__)

# Upper bound on obstacles returned per query
MAX_OBSTACLES = 5

# Scene object kinds owned by connections; never treated as obstacles
CONNECTION_KINDS = frozenset({"line", "decoration"})


class ObstacleDetector:
    """Queries a scene for objects intersecting a connection corridor."""

    def __init__(self, scene: SceneGraph, max_results: int = MAX_OBSTACLES):
        self.scene = scene
        self.max_results = max_results

    def find_obstacles(
        self,
        start: Point,
        end: Point,
        exclude_ids: Optional[Iterable[str]] = None,
    ) -> List[SceneObject]:
        """
        Find objects whose bounding box intersects the start/end corridor.

        Args:
            start: First anchor.
            end: Second anchor.
            exclude_ids: Ids to ignore (normally the two endpoint objects).

        Returns:
            At most ``max_results`` objects, in scene order. A failing or
            empty scene query yields an empty list.
        """
        excluded = set(exclude_ids or ())
        corridor = bounding_rect(start, end)

        try:
            candidates = list(self.scene.visible_objects() or ())
        except Exception:
            logger.warning("Obstacle query failed; routing without obstacles", exc_info=True)
            return []

        found: List[SceneObject] = []
        for obj in candidates:
            if obj.id in excluded or obj.kind in CONNECTION_KINDS:
                continue
            if obj.box is None or not obj.box.intersects(corridor):
                continue
            found.append(obj)
            if len(found) >= self.max_results:
                break

        if found:
            logger.debug(
                "Corridor %s blocked by %s", corridor, [obj.id for obj in found]
            )
        return found
