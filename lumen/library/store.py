"""
Library store: the opened folder, the selected asset and preload progress.
"""

import logging
from dataclasses import dataclass, replace
from typing import Optional

from ..store import Store
from .models import AssetSummary, FolderIndex

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LibraryState:
    folder: Optional[FolderIndex] = None
    selected_asset_id: Optional[str] = None
    loading: bool = False
    preload_active: bool = False
    preload_done: int = 0
    preload_total: int = 0

    @property
    def selected_asset(self) -> Optional[AssetSummary]:
        if self.folder is None:
            return None
        return self.folder.find(self.selected_asset_id)


class LibraryStore(Store[LibraryState]):
    """Write path for the library state."""

    def __init__(self):
        super().__init__(LibraryState())

    @property
    def selected_asset(self) -> Optional[AssetSummary]:
        return self.get().selected_asset

    def set_folder(self, folder: FolderIndex) -> LibraryState:
        """Show a newly opened folder and select its first asset."""
        first = folder.assets[0].id if folder.assets else None
        logger.info(f"Opened folder {folder.path} with {len(folder.assets)} assets")
        return self.set(replace(self.get(), folder=folder, selected_asset_id=first))

    def set_loading(self, loading: bool) -> LibraryState:
        return self.set(replace(self.get(), loading=loading))

    def set_preload_progress(self, done: int, total: int, active: bool) -> LibraryState:
        return self.set(replace(self.get(), preload_done=done, preload_total=total,
                                preload_active=active))

    def select_asset(self, asset_id: Optional[str]) -> LibraryState:
        state = self.get()
        if asset_id == state.selected_asset_id:
            return state
        return self.set(replace(state, selected_asset_id=asset_id))
