"""
Editor workspace: one library, one recipe, one preview, wired together.

The library selection drives everything else. Whenever the selected asset
changes the workspace loads that asset's recipe, points the preview at it
and fetches its metadata. Settings from ``load_config`` pick the save delay,
preview policy and preload concurrency.
"""

import asyncio
import logging
from typing import Any, Dict, Optional, Set

from .editor.store import RecipeStore
from .editor.sync import RecipeSync
from .library.actions import load_folder_from_path, preload_concurrency
from .library.loaders import MetadataLoader
from .library.models import FolderIndex
from .library.store import LibraryState, LibraryStore
from .preview.handles import HandleRegistry
from .preview.models import PreviewPolicy
from .preview.state import PreviewSession
from .service import RenderServiceClient
from .settings import SettingsStore

logger = logging.getLogger(__name__)


class Workspace:
    """
    Stores and loaders for one editor window, bound to the library selection.

    Must be driven from a running asyncio loop.
    """

    def __init__(self, client: RenderServiceClient, config: Optional[Dict[str, Any]] = None,
                 handles: Optional[HandleRegistry] = None):
        self.client = client
        self.config = config or {}
        self.policy = PreviewPolicy.from_config(self.config)
        self.preload_concurrency = preload_concurrency(self.config)

        self.library = LibraryStore()
        self.recipes = RecipeStore()
        self.settings = SettingsStore(client)
        self.sync = RecipeSync.from_config(client, self.recipes, self.config)
        self.preview = PreviewSession(client, self.recipes, policy=self.policy, handles=handles)
        self.metadata = MetadataLoader(client)

        self._switch: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()
        self._closed = False
        self._unsubscribe = self.library.subscribe(self._on_library_change)

    @property
    def asset_id(self) -> Optional[str]:
        return self.library.get().selected_asset_id

    async def open_folder(self, path: str, preload: bool = True) -> Optional[FolderIndex]:
        """Open a folder; its first asset becomes the selection."""
        if self._closed:
            raise RuntimeError("Workspace is closed")
        return await load_folder_from_path(self.client, self.library, path,
                                           preload=preload, concurrency=self.preload_concurrency)

    def _on_library_change(self, state: LibraryState, previous: LibraryState):
        if self._closed or state.selected_asset_id == previous.selected_asset_id:
            return
        asset_id = state.selected_asset_id
        logger.info(f"Selected asset: {previous.selected_asset_id} -> {asset_id}")

        self._switch = asyncio.ensure_future(self._switch_recipe(asset_id, self._switch))
        self._tasks.add(self._switch)
        self._switch.add_done_callback(self._tasks.discard)

        self.preview.set_asset(asset_id)
        self.metadata.request(asset_id)

    async def _switch_recipe(self, asset_id: Optional[str], previous: Optional[asyncio.Task]):
        # Switches run one after another so a slow flush cannot reorder them
        if previous is not None:
            await asyncio.gather(previous, return_exceptions=True)
        if self._closed or asset_id != self.asset_id:
            logger.debug(f"Skipped recipe switch to {asset_id}, selection moved on")
            return
        await self.sync.set_asset(asset_id)

    async def wait_idle(self):
        """Wait until recipe loads, preview requests and metadata reads have settled."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        await self.sync.wait_idle()
        await self.preview.loader.wait_idle()
        await self.metadata.wait_idle()

    async def aclose(self, flush: bool = True):
        """Stop following the selection, write a pending save and release the preview."""
        if self._closed:
            return
        self._unsubscribe()
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        self._closed = True
        await self.sync.aclose(flush=flush)
        await self.preview.aclose()
        await self.metadata.wait_idle()
