from typing import List, Optional


class FolderStack:
    """
    Navigation path through nested folders.

    The bottom entry is always None (the desktop root); the top entry is the
    folder currently shown.
    """

    def __init__(self):
        self.path: List[Optional[str]] = [None]

    @property
    def current(self) -> Optional[str]:
        return self.path[-1]

    @property
    def parent(self) -> Optional[str]:
        """Folder one level up; None at or directly below the root."""
        return self.path[-2] if len(self.path) > 1 else None

    @property
    def at_root(self) -> bool:
        return len(self.path) == 1

    def push(self, folder_id: str):
        self.path.append(folder_id)

    def pop(self) -> Optional[str]:
        """Go up one level and return the new current folder; no-op at root."""
        if not self.at_root:
            self.path.pop()
        return self.current

    def prune(self, known_folder_ids):
        """Cut the path at the first folder that no longer exists."""
        for index, folder_id in enumerate(self.path[1:], start=1):
            if folder_id not in known_folder_ids:
                self.path = self.path[:index]
                return
