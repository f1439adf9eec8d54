from __future__ import annotations

import re
from collections.abc import Sequence

from route_engine.services.types import RequiredBreak, Stop

_WHITESPACE = re.compile(r"\s+")

FIELD_SEPARATOR = ":"
STOP_SEPARATOR = "|"
SECTION_SEPARATOR = "||"


def normalize_location_key(value: str) -> str:
    return _WHITESPACE.sub(" ", value.strip()).lower()


def location_key(city: str, state: str) -> str | None:
    """Return the canonical ``"city, state"`` cache key, or ``None`` if either is blank."""
    city = normalize_location_key(city)
    state = normalize_location_key(state)
    if not city or not state:
        return None
    return f"{city}, {state}"


def free_text_query(stop: Stop) -> str:
    parts = (stop.address, stop.city, stop.state, stop.postal_code)
    return ", ".join(_WHITESPACE.sub(" ", part.strip()) for part in parts if part.strip())


def stop_identity(stop: Stop) -> str:
    fields = [
        stop.kind,
        str(stop.sequence),
        normalize_location_key(stop.city),
        normalize_location_key(stop.state),
        normalize_location_key(stop.address),
        normalize_location_key(stop.postal_code),
    ]
    coordinate = stop.precomputed_coordinate
    if coordinate is not None:
        fields.append(f"{coordinate.longitude:.6f},{coordinate.latitude:.6f}")
    return FIELD_SEPARATOR.join(fields)


def build_stop_key(
    stops: Sequence[Stop],
    optimized_stops: Sequence[Stop] | None = None,
    required_breaks: Sequence[RequiredBreak] | None = None,
) -> str:
    """Build a change-detection key for the route a set of stops renders.

    The key compares by value and is sensitive to stop order. It gates
    recomputation only and is not a uniqueness guarantee.
    """
    sections = [STOP_SEPARATOR.join(stop_identity(stop) for stop in stops)]
    if optimized_stops:
        sections.append(
            "optimized=" + STOP_SEPARATOR.join(stop_identity(stop) for stop in optimized_stops)
        )
    sections.append(f"breaks={len(required_breaks or ())}")
    return SECTION_SEPARATOR.join(sections)
