"""
Metadata loader for the selected asset.
"""

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Callable, Optional, Set

from ..exceptions import RequestFailed
from ..service import RenderServiceClient
from ..store import Store
from .models import Metadata

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetadataState:
    data: Optional[Metadata] = None
    is_loading: bool = False
    error_message: Optional[str] = None


class MetadataLoader:
    """
    Fetches ``read_metadata`` for the current asset.

    Switching asset while a read is in flight drops the older answer.
    """

    def __init__(self, client: RenderServiceClient):
        self.client = client
        self.asset_id: Optional[str] = None
        self._store: Store[MetadataState] = Store(MetadataState())
        self._generation = 0
        self._tasks: Set[asyncio.Task] = set()

    @property
    def state(self) -> MetadataState:
        return self._store.get()

    def subscribe(self, listener: Callable[[MetadataState, MetadataState], None]) -> Callable[[], None]:
        return self._store.subscribe(listener)

    def request(self, asset_id: Optional[str]) -> Optional[asyncio.Task]:
        """Point the loader at an asset; returns the fetch task, if any."""
        if asset_id == self.asset_id:
            return None
        self.asset_id = asset_id
        self._generation += 1
        if not asset_id:
            self._store.set(MetadataState())
            return None
        task = asyncio.ensure_future(self._load(self._generation, asset_id))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _load(self, generation: int, asset_id: str):
        if generation != self._generation:
            return
        self._store.set(replace(self.state, is_loading=True, error_message=None))
        try:
            metadata = await self.client.read_metadata(asset_id)
        except RequestFailed as e:
            if generation != self._generation:
                return
            logger.error(f"Failed to read metadata for {asset_id}: {e}")
            self._store.set(MetadataState(data=None, is_loading=False, error_message=str(e)))
            return
        if generation != self._generation:
            logger.debug(f"Dropped stale metadata for {asset_id}")
            return
        self._store.set(MetadataState(data=metadata, is_loading=False))

    async def wait_idle(self):
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
