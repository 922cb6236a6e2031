#Purpose: Derived focus view for the map collaborator.
#Reads the EditBuffer's focused index and resolves it to a point the map can
#pan/zoom to. Owns no state of its own.

from __future__ import annotations

from typing import Optional, Tuple

from routes.models import Coordinate

from .buffer import EditBuffer

DEFAULT_FOCUS_ZOOM = 16


class SelectionSync:
    def __init__(self, buffer: EditBuffer):
        self.buffer = buffer

    @property
    def focused_index(self) -> Optional[int]:
        return self.buffer.focused_index

    @property
    def focused_point(self) -> Optional[Coordinate]:
        index = self.buffer.focused_index
        if index is None or index >= len(self.buffer):
            return None
        return self.buffer[index]

    def map_target(self, zoom: int = DEFAULT_FOCUS_ZOOM) -> Optional[Tuple[Coordinate, int]]:
        """
        (center, zoom) for the map to fly to, or None when nothing is focused.
        """
        point = self.focused_point
        if point is None:
            return None
        return point, zoom
