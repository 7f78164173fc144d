"""
Drop resolution for desktop drag gestures.

Classifies a drag end into exactly one outcome, in strict priority order:
trash, rename portal, back navigation, folder drop, plain reposition.
The resolver never mutates state; callers apply the returned outcome.
"""

import logging
from typing import Callable, Iterable, Optional, Union

from app.schemas.desktop import DesktopLayout, FileItem, FolderItem, Position
from app.schemas.outcomes import Reparent, Reposition, RequestDelete, RequestRename
from app.services.clamper import PositionClamper
from app.services.geometry import (
    FILE_DROP_THRESHOLD,
    FOLDER_DROP_THRESHOLD,
    SNAP_MARGIN,
    expand,
    icon_box,
    intersection_area,
    intersects,
    snap_beside,
    zone_present,
)

logger = logging.getLogger(__name__)

Item = Union[FileItem, FolderItem]
Outcome = Union[RequestDelete, RequestRename, Reparent, Reposition]


class DropResolver:
    """
    Decides what a drag end means.

    Folders need far more overlap than files before they nest: the defaults
    are 0.3 of the drag box for files and 0.7 for folders.
    """

    def __init__(
        self,
        clamper: PositionClamper,
        file_threshold: float = FILE_DROP_THRESHOLD,
        folder_threshold: float = FOLDER_DROP_THRESHOLD,
        snap_margin: float = SNAP_MARGIN,
    ):
        self.clamper = clamper
        self.file_threshold = file_threshold
        self.folder_threshold = folder_threshold
        self.snap_margin = snap_margin

    @property
    def icon_size(self) -> float:
        return self.clamper.icon_size

    @property
    def drop_padding(self) -> float:
        return self.clamper.drop_padding

    def threshold_for(self, item: Item) -> float:
        return self.folder_threshold if item.kind == "folder" else self.file_threshold

    def overlap_ratio(self, drop_position: Position, folder: FolderItem) -> float:
        """
        Share of the drag box covered by a folder's box.

        Args:
            drop_position: Container-relative drop position of the dragged icon
            folder: Candidate target folder

        Returns:
            float: intersection area / drag box area
        """
        drag_box = icon_box(drop_position, self.icon_size, self.drop_padding)
        folder_box = icon_box(folder.position, self.icon_size)
        if drag_box.area <= 0:
            return 0.0
        return intersection_area(drag_box, folder_box) / drag_box.area

    def snap_to_zone(self, zone, drop_position: Position, layout: DesktopLayout) -> Position:
        """Snap an icon beside a zone and clamp the result."""
        padded = expand(zone, self.drop_padding)
        snapped = snap_beside(padded, drop_position, self.icon_size, self.snap_margin)
        return self.clamper.clamp(snapped, layout)

    def resolve(
        self,
        item: Item,
        drop_position: Position,
        layout: DesktopLayout,
        folders: Iterable[FolderItem],
        parent_folder_id: Optional[str] = None,
        at_root: bool = True,
        is_descendant: Optional[Callable[[str, str], bool]] = None,
    ) -> Outcome:
        """
        Classify a drag end.

        Args:
            item: Dragged file or folder
            drop_position: Container-relative release position
            layout: Current layout with measured zones
            folders: Folders visible in the current view, in render order
            parent_folder_id: Folder one level up the navigation stack
            at_root: True when the desktop root is shown (no back zone)
            is_descendant: is_descendant(candidate_id, ancestor_id) lookup used
                to keep a folder out of its own subtree

        Returns:
            One of RequestDelete, RequestRename, Reparent, Reposition
        """
        drag_box = icon_box(drop_position, self.icon_size, self.drop_padding)

        # 1. Trash
        if zone_present(layout.trash) and intersects(drag_box, layout.trash):
            logger.info(f"Drop of {item.id} hit trash")
            return RequestDelete(item_id=item.id)

        # 2. Rename portal
        if zone_present(layout.portal) and intersects(drag_box, layout.portal):
            logger.info(f"Drop of {item.id} hit rename portal")
            return RequestRename(
                item_id=item.id,
                snap_position=self.snap_to_zone(layout.portal, drop_position, layout),
            )

        # 3. Back navigation, only inside a subfolder
        if not at_root and zone_present(layout.back) and intersects(drag_box, layout.back):
            logger.info(f"Drop of {item.id} hit back navigation -> {parent_folder_id}")
            return Reparent(item_id=item.id, target_folder_id=parent_folder_id, via_back=True)

        # 4. Folder drop
        threshold = self.threshold_for(item)
        for folder in folders:
            if folder.id == item.id:
                continue
            if item.kind == "folder" and is_descendant and is_descendant(folder.id, item.id):
                logger.debug(f"Skipping {folder.id}: inside dragged folder {item.id}")
                continue

            ratio = self.overlap_ratio(drop_position, folder)
            if ratio > threshold:
                logger.info(f"Drop of {item.id} into folder {folder.id} (overlap {ratio:.2f})")
                return Reparent(item_id=item.id, target_folder_id=folder.id)

        # 5. Plain reposition
        return Reposition(item_id=item.id, position=self.clamper.clamp(drop_position, layout))
