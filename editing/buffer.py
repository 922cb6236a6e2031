"""
Purpose: The ephemeral point list under active drawing or editing.
What it does:
- Holds the ordered points the user is clicking/dragging on the map
- Knows whether it is drawing a new route or editing an existing one
- Applies point mutations (append, insert, move, update, delete, undo)
- Tracks an optional focused point for the map to pan/zoom to

Rule: Every point mutation goes through the buffer, never directly to a
stored Route. The buffer is merged into a Route only by the persistence
coordinator on save.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional, Sequence, Tuple

from geo.geometry import midpoint
from routes.models import Coordinate, Route, Waypoint, build_waypoints
from routes.policy import EditorPolicy, default_policy


class BufferMode(Enum):
    IDLE = "IDLE"
    DRAWING = "DRAWING"
    EDITING = "EDITING"


class EditBuffer:
    """
    Ordered Coordinate list with insert/move/delete/undo.

    Mutations return True when applied and False when rejected as a no-op,
    so callers (and tests) can tell a guarded operation from a real one.
    """

    def __init__(self, policy: Optional[EditorPolicy] = None):
        self.policy = policy or default_policy()
        self._points: List[Coordinate] = []
        self._focused_index: Optional[int] = None
        self.mode = BufferMode.IDLE
        self.route_id: Optional[str] = None  # set in edit mode

    # ----------------
    # Session lifecycle
    # ----------------

    def start(self, initial: Sequence[Coordinate] = (), route_id: Optional[str] = None) -> None:
        """
        Replace the buffer contents.
        With a route_id the buffer is in edit mode for that route, otherwise draw mode.
        """
        self._points = list(initial)
        self._focused_index = None
        self.route_id = route_id
        self.mode = BufferMode.EDITING if route_id else BufferMode.DRAWING

    def start_editing(self, route: Route) -> None:
        self.start(route.geometry, route_id=route.id)

    def cancel(self) -> None:
        """
        Discard everything and go back to idle.
        """
        self._points = []
        self._focused_index = None
        self.route_id = None
        self.mode = BufferMode.IDLE

    # ----------------
    # Point mutations
    # ----------------

    def append_point(self, coordinate: Coordinate) -> bool:
        self._points.append(coordinate)
        return True

    def insert_point(self, index: int, coordinate: Coordinate) -> bool:
        """
        Insert before `index`. Valid indexes are 0..len (len appends).
        """
        if not 0 <= index <= len(self._points):
            return False
        self._points.insert(index, coordinate)
        if self._focused_index is not None and self._focused_index >= index:
            self._focused_index += 1
        return True

    def insert_after(self, index: int) -> Optional[Coordinate]:
        """
        Insert a default point after `index`: the midpoint with the next point,
        or a small offset from the last point when there is no successor.
        Returns the inserted coordinate, or None if `index` is out of range.
        """
        if not self._in_range(index):
            return None

        current = self._points[index]
        if index + 1 < len(self._points):
            new_point = midpoint(current, self._points[index + 1])
        else:
            offset = self.policy.insert_offset_deg
            new_point = Coordinate(lat=current.lat + offset, lng=current.lng + offset)

        self.insert_point(index + 1, new_point)
        return new_point

    def update_point(self, index: int, coordinate: Coordinate) -> bool:
        if not self._in_range(index):
            return False
        self._points[index] = coordinate
        return True

    def delete_point(self, index: int) -> bool:
        """
        Remove a point. Rejected when the buffer would drop below the minimum
        route length, whatever the UI allows.
        """
        if not self._in_range(index):
            return False
        if len(self._points) - 1 < self.policy.min_points:
            return False

        del self._points[index]
        self._reindex_focus_after_delete(index)
        return True

    def move_point(self, src: int, dst: int) -> bool:
        """
        Remove the point at `src` and reinsert it at `dst`.
        Length and the set of points are unchanged.
        """
        if not (self._in_range(src) and self._in_range(dst)):
            return False
        if src == dst:
            return True

        point = self._points.pop(src)
        self._points.insert(dst, point)

        focused = self._focused_index
        if focused is not None:
            if focused == src:
                self._focused_index = dst
            elif src < focused <= dst:
                self._focused_index = focused - 1
            elif dst <= focused < src:
                self._focused_index = focused + 1
        return True

    def undo_last(self) -> bool:
        if not self._points:
            return False
        self._points.pop()
        self._reindex_focus_after_delete(len(self._points))
        return True

    def clear(self) -> None:
        self._points = []
        self._focused_index = None

    # ----------------
    # Focus
    # ----------------

    def focus(self, index: Optional[int]) -> bool:
        """
        Focus a point for the map to pan to. None clears the focus.
        """
        if index is None:
            self._focused_index = None
            return True
        if not self._in_range(index):
            return False
        self._focused_index = index
        return True

    @property
    def focused_index(self) -> Optional[int]:
        return self._focused_index

    # ----------------
    # Read accessors
    # ----------------

    @property
    def points(self) -> List[Coordinate]:
        return list(self._points)

    def snapshot(self) -> Tuple[Coordinate, ...]:
        return tuple(self._points)

    @property
    def waypoints(self) -> List[Waypoint]:
        return build_waypoints(self._points)

    @property
    def is_active(self) -> bool:
        return self.mode is not BufferMode.IDLE

    @property
    def can_save(self) -> bool:
        return len(self._points) >= self.policy.min_points

    def __len__(self) -> int:
        return len(self._points)

    def __getitem__(self, index: int) -> Coordinate:
        return self._points[index]

    # --- internal helpers ---

    def _in_range(self, index: int) -> bool:
        return 0 <= index < len(self._points)

    def _reindex_focus_after_delete(self, removed_index: int) -> None:
        focused = self._focused_index
        if focused is None:
            return
        if focused == removed_index:
            self._focused_index = None
        elif focused > removed_index:
            self._focused_index = focused - 1
