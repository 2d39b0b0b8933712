"""
Recipe sync boundary.

Loads the persisted recipe whenever the selected asset changes and saves the
in-memory recipe 300 ms (the ``sync.save_delay_ms`` setting) after the last
mutation. The recipe change caused by a load is never written back.
"""

import asyncio
import logging
from typing import Any, Dict, Optional, Set

from ..config import get_config_value
from ..exceptions import PersistFailed, RequestFailed
from ..preview.timer import DebounceTimer
from ..service import RenderServiceClient
from .models import EditRecipe
from .store import RecipeState, RecipeStore

logger = logging.getLogger(__name__)

DEFAULT_SAVE_DELAY_MS = 300


class RecipeSync:
    """
    Keeps a ``RecipeStore`` in step with the rendering service's recipe store.

    Must be driven from a running asyncio loop.
    """

    def __init__(self, client: RenderServiceClient, store: RecipeStore,
                 save_delay_ms: int = DEFAULT_SAVE_DELAY_MS):
        self.client = client
        self.store = store
        self.save_delay_ms = save_delay_ms
        self.asset_id: Optional[str] = None

        self._timer = DebounceTimer()
        self._load_generation = 0
        self._loading = False
        self._just_loaded = False
        self._tasks: Set[asyncio.Task] = set()
        self._unsubscribe = store.subscribe(self._on_change)
        self._closed = False

        self.stats = {
            'loads': 0,
            'load_failures': 0,
            'saves': 0,
            'save_failures': 0,
            'saves_skipped': 0,
        }

    @classmethod
    def from_config(cls, client: RenderServiceClient, store: RecipeStore,
                    config: Optional[Dict[str, Any]] = None) -> 'RecipeSync':
        """Build a sync boundary using the ``sync`` configuration section."""
        delay = get_config_value(config or {}, 'sync.save_delay_ms', DEFAULT_SAVE_DELAY_MS)
        return cls(client, store, save_delay_ms=int(delay))

    @property
    def loading(self) -> bool:
        return self._loading

    async def set_asset(self, asset_id: Optional[str]):
        """
        Switch to another asset and load its recipe.

        A pending save for the previous asset is written first. When the
        asset becomes None the store is reset to defaults. Load failures
        fall back to a default recipe; a load overtaken by a newer switch is
        dropped.
        """
        if self._closed:
            raise RuntimeError("RecipeSync is closed")

        previous = self.asset_id
        if self._timer.cancel() and previous and not self._just_loaded and not self._loading:
            await self._save(previous, self.store.recipe)

        self._load_generation += 1
        generation = self._load_generation
        self.asset_id = asset_id
        self._just_loaded = False

        if not asset_id:
            self._loading = False
            self.store.reset()
            return

        self._loading = True
        self.stats['loads'] += 1
        logger.info(f"Loading recipe for {asset_id}")
        try:
            recipe = await self.client.load_recipe(asset_id)
        except RequestFailed as e:
            if generation != self._load_generation:
                return
            self.stats['load_failures'] += 1
            logger.warning(f"Could not load recipe for {asset_id}, using defaults: {e}")
            self._loading = False
            self._just_loaded = True
            self.store.reset()
            return

        if generation != self._load_generation:
            logger.debug(f"Dropped recipe for {asset_id}, selection moved on")
            return

        self._loading = False
        self._just_loaded = True
        self.store.set_recipe(recipe if recipe is not None else EditRecipe())

    def _on_change(self, state: RecipeState, previous: RecipeState):
        if self._closed or not self.asset_id or self._loading:
            return
        self._timer.schedule(self.save_delay_ms, self._on_timer)

    def _on_timer(self):
        if self._just_loaded:
            self._just_loaded = False
            self.stats['saves_skipped'] += 1
            return
        if not self.asset_id or self._loading:
            return
        task = asyncio.ensure_future(self._save(self.asset_id, self.store.recipe))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _save(self, asset_id: str, recipe: EditRecipe) -> bool:
        try:
            await self.client.save_recipe(asset_id, recipe)
        except PersistFailed as e:
            self.stats['save_failures'] += 1
            logger.warning(f"Failed to save recipe for {asset_id}: {e}")
            return False
        self.stats['saves'] += 1
        logger.debug(f"Saved recipe for {asset_id}")
        return True

    async def flush(self) -> bool:
        """
        Write a pending save now instead of waiting for the timer.

        Returns:
            True if a save was pending and succeeded
        """
        if not self._timer.cancel():
            await self.wait_idle()
            return False
        if self._just_loaded:
            self._just_loaded = False
            return False
        if not self.asset_id or self._loading:
            return False
        return await self._save(self.asset_id, self.store.recipe)

    async def wait_idle(self):
        """Wait for saves already handed to the service."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def close(self):
        """Stop listening and drop any pending save."""
        if self._closed:
            return
        self._closed = True
        self._timer.cancel()
        self._unsubscribe()

    async def aclose(self, flush: bool = True):
        """Close, writing a pending save first when ``flush`` is set."""
        if flush and not self._closed:
            await self.flush()
        self.close()
        await self.wait_idle()
