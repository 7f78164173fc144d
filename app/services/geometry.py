"""
Geometry helpers for the desktop spatial model.

All positions handled by the services are container-relative. Gestures and
zone measurements arrive in screen coordinates and are converted here, once,
at the boundary.
"""

from typing import Optional

from app.schemas.desktop import Position, Rect

ICON_SIZE = 80.0
DROP_PADDING = 0.0
# Gap between a zone and an icon snapped beside it
SNAP_MARGIN = 20.0
MAX_CLAMP_ATTEMPTS = 10
FILE_DROP_THRESHOLD = 0.3
FOLDER_DROP_THRESHOLD = 0.7

GRID_COLUMNS = 4
GRID_STEP_X = 100.0
GRID_STEP_Y = 120.0
GRID_ORIGIN = 20.0


def clamp(value: float, minimum: float, maximum: float) -> float:
    """Limit value to [minimum, maximum]; minimum wins if the range is empty."""
    return max(minimum, min(value, maximum))


def intersects(a: Rect, b: Rect) -> bool:
    """
    Check whether two rectangles overlap.

    Touching edges do not count as an overlap.
    """
    return (
        a.x < b.x + b.width
        and a.x + a.width > b.x
        and a.y < b.y + b.height
        and a.y + a.height > b.y
    )


def intersection_area(a: Rect, b: Rect) -> float:
    """
    Area of the overlap between two rectangles.

    Args:
        a: First rectangle
        b: Second rectangle

    Returns:
        float: Overlap area, 0.0 when the rectangles do not overlap
    """
    width = min(a.right, b.right) - max(a.x, b.x)
    height = min(a.bottom, b.bottom) - max(a.y, b.y)
    if width <= 0 or height <= 0:
        return 0.0
    return width * height


def expand(rect: Rect, padding: float) -> Rect:
    """Grow a rectangle by padding on every side."""
    return Rect(
        x=rect.x - padding,
        y=rect.y - padding,
        width=rect.width + 2 * padding,
        height=rect.height + 2 * padding,
    )


def icon_box(position: Position, icon_size: float, padding: float = 0.0) -> Rect:
    """Bounding box of an icon at position, optionally padded."""
    return expand(Rect(x=position.x, y=position.y, width=icon_size, height=icon_size), padding)


def zone_present(zone: Optional[Rect]) -> bool:
    """
    A zone measured before layout completes comes back as a zero rect.

    Such zones are treated as absent rather than as errors.
    """
    return zone is not None and zone.width > 0 and zone.height > 0


def to_container(point: Position, offset: Position) -> Position:
    """Convert a screen-absolute point to container-relative coordinates."""
    return Position(x=point.x - offset.x, y=point.y - offset.y)


def rect_to_container(rect: Optional[Rect], offset: Position) -> Optional[Rect]:
    """Convert a screen-absolute rectangle to container-relative coordinates."""
    if rect is None:
        return None
    return Rect(x=rect.x - offset.x, y=rect.y - offset.y, width=rect.width, height=rect.height)


def grid_slot(index: int) -> Position:
    """
    Fallback position for an item without a usable stored position.

    Formula: x = (index % 4) * 100 + 20, y = floor(index / 4) * 120 + 20

    Args:
        index: Index of the item within its list

    Returns:
        Position: Deterministic grid slot
    """
    return Position(
        x=(index % GRID_COLUMNS) * GRID_STEP_X + GRID_ORIGIN,
        y=(index // GRID_COLUMNS) * GRID_STEP_Y + GRID_ORIGIN,
    )


def snap_beside(zone: Rect, position: Position, icon_size: float, margin: float = SNAP_MARGIN) -> Position:
    """
    Place an icon next to a zone it was dropped on.

    An icon whose centre was left of the zone's centre goes above the zone,
    any other icon goes to the zone's left. The result is not clamped.

    Args:
        zone: Zone rectangle (already padded if padding applies)
        position: Drop position of the icon
        icon_size: Icon edge length
        margin: Gap left between the zone and the icon

    Returns:
        Position: Snapped position outside the zone
    """
    if position.x + icon_size / 2 < zone.center_x:
        return Position(x=position.x, y=zone.y - icon_size - margin)
    return Position(x=zone.x - icon_size - margin, y=zone.y)
