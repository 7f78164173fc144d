"""
Position clamping for desktop icons.

Keeps every icon inside the usable desktop rectangle and pushes it out of the
forbidden zones (trash and rename portal).
"""

import logging
from typing import List

from app.schemas.desktop import DesktopLayout, Position, Rect
from app.services.geometry import (
    DROP_PADDING,
    ICON_SIZE,
    MAX_CLAMP_ATTEMPTS,
    clamp,
    expand,
    icon_box,
    intersects,
    zone_present,
)

logger = logging.getLogger(__name__)


class PositionClamper:
    """
    Normalizes icon positions against a desktop layout.

    The clamped position is authoritative: callers store it as-is.
    """

    def __init__(
        self,
        icon_size: float = ICON_SIZE,
        drop_padding: float = DROP_PADDING,
        max_attempts: int = MAX_CLAMP_ATTEMPTS,
    ):
        self.icon_size = icon_size
        self.drop_padding = drop_padding
        self.max_attempts = max_attempts

    def forbidden_zones(self, layout: DesktopLayout) -> List[Rect]:
        """Trash and portal rectangles, padded, skipping zones not laid out yet."""
        zones = [layout.trash, layout.portal]
        return [expand(zone, self.drop_padding) for zone in zones if zone_present(zone)]

    def clamp_to_bounds(self, position: Position, layout: DesktopLayout) -> Position:
        """Clamp x to [0, width - icon] and y to [0, usable height - icon]."""
        max_x = max(layout.container_width - self.icon_size, 0.0)
        max_y = max(layout.usable_height - self.icon_size, 0.0)
        return Position(
            x=clamp(position.x, 0.0, max_x),
            y=clamp(position.y, 0.0, max_y),
        )

    def clamp(self, position: Position, layout: DesktopLayout) -> Position:
        """
        Clamp a position into bounds and out of forbidden zones.

        A push out of one zone can land the icon in another, so all zones are
        rechecked after each push, up to max_attempts times.

        Args:
            position: Container-relative candidate position
            layout: Current desktop layout

        Returns:
            Position: Final position; unchanged if the layout is not measured
        """
        if not layout.is_measured:
            logger.debug("Layout not measured yet, leaving position as-is")
            return position

        current = self.clamp_to_bounds(position, layout)
        forbidden = self.forbidden_zones(layout)
        usable_height = layout.usable_height

        for _ in range(self.max_attempts):
            box = icon_box(current, self.icon_size)
            zone = next((z for z in forbidden if intersects(box, z)), None)
            if zone is None:
                break

            # Push below the zone, or above it when there is no room below
            y = zone.bottom + 1
            if y + self.icon_size > usable_height:
                y = zone.y - self.icon_size - 1
            current = self.clamp_to_bounds(Position(x=current.x, y=y), layout)
        else:
            box = icon_box(current, self.icon_size)
            if any(intersects(box, z) for z in forbidden):
                logger.warning(
                    f"Clamp did not settle after {self.max_attempts} attempts at "
                    f"({current.x:.1f}, {current.y:.1f})"
                )

        return current
