"""
Purpose: Central configuration for the route editor (single source of truth).
What it does:

Stores all tunable thresholds/constants:

LOCAL_ID_PREFIX = "local-"

EARTH_RADIUS_M = 6371000

SECONDS_PER_KM = 72 (50 km/h heuristic)

INSERT_OFFSET_DEG = 0.001

MIN_POINTS = 2, MIN_NAME_LENGTH = 3

REQUIRED_ROLE = "ADMIN"

AUTH_FAILURE_MARKERS = ("unauthorized", "not authenticated", "401", ...)

Rule: No logic here, just parameters so you can tune without rewriting code.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from .models import LOCAL_ID_PREFIX

AUTH_FAILURE_MARKERS = ("unauthorized", "unauthenticated", "not authenticated", "401", "token expired")


@dataclass(frozen=True)
class EditorPolicy:
    """
    Central configuration for drawing, metrics and persistence.

    Notes:
    - 'required_role' gates the remote tier. None means any authenticated
      user may write to the server.
    - 'auth_failure_markers' are matched case-insensitively as substrings of
      a remote error message to spot an expired session.
    """

    # --- Identity ---
    local_id_prefix: str = LOCAL_ID_PREFIX

    # --- Geometry / metrics ---
    earth_radius_m: float = 6371000.0
    seconds_per_km: float = 72.0  # 50 km/h

    # Offset used when inserting after the last point (no successor to split).
    insert_offset_deg: float = 0.001

    # --- Validation ---
    min_points: int = 2
    min_name_length: int = 3

    # --- Auth ---
    required_role: Optional[str] = "ADMIN"
    auth_failure_markers: Tuple[str, ...] = AUTH_FAILURE_MARKERS

    # --- Remote service ---
    request_timeout_sec: int = 10
    # The list endpoint returns summaries only; cap the follow-up detail fetches.
    max_detail_fetch: int = 20

    def validate(self) -> None:
        """
        Basic sanity checks. Call once at startup.
        """
        if not self.local_id_prefix:
            raise ValueError("local_id_prefix must be a non-empty string")

        if self.earth_radius_m <= 0:
            raise ValueError("earth_radius_m must be > 0")

        if self.seconds_per_km < 0:
            raise ValueError("seconds_per_km must be >= 0")

        if self.min_points < 2:
            raise ValueError("min_points must be >= 2")

        if self.min_name_length < 1:
            raise ValueError("min_name_length must be >= 1")

        if not self.auth_failure_markers:
            raise ValueError("auth_failure_markers must not be empty")

        if self.request_timeout_sec <= 0:
            raise ValueError("request_timeout_sec must be > 0")

        if self.max_detail_fetch <= 0:
            raise ValueError("max_detail_fetch must be > 0")


def default_policy() -> EditorPolicy:
    """
    Convenience factory for the default policy.
    """
    p = EditorPolicy()
    p.validate()
    return p


def open_policy() -> EditorPolicy:
    """
    Any signed-in user may save to the server (no role check).
    """
    p = EditorPolicy(required_role=None)
    p.validate()
    return p
