"""
Folder actions: open a folder through the rendering service and warm its
thumbnail cache.
"""

import asyncio
import logging
from typing import Any, Dict, Optional, Sequence, Set

from ..config import get_config_value
from ..exceptions import RequestFailed
from ..service import RenderServiceClient
from .models import AssetSummary, FolderIndex
from .store import LibraryStore
from ..utils.logging import StructuredLogger

logger = logging.getLogger(__name__)
preload_log = StructuredLogger(__name__)

DEFAULT_PRELOAD_CONCURRENCY = 2

_preload_tasks: Set[asyncio.Task] = set()


def preload_concurrency(config: Optional[Dict[str, Any]] = None) -> int:
    """Thumbnail preload concurrency from the ``library`` configuration section."""
    value = get_config_value(config or {}, 'library.preload_concurrency', DEFAULT_PRELOAD_CONCURRENCY)
    return max(1, int(value))


async def preload_thumbnails(client: RenderServiceClient, store: LibraryStore,
                             assets: Sequence[AssetSummary],
                             concurrency: int = DEFAULT_PRELOAD_CONCURRENCY) -> int:
    """
    Request every thumbnail once so the service caches them.

    At most ``concurrency`` requests run at a time. Failures are logged and
    counted as done; progress is published to the store after each asset.

    Returns:
        Number of thumbnails that failed
    """
    total = len(assets)
    if total == 0:
        store.set_preload_progress(0, 0, False)
        return 0

    semaphore = asyncio.Semaphore(max(1, concurrency))
    progress = {'done': 0, 'failed': 0}

    async def preload(asset: AssetSummary):
        async with semaphore:
            try:
                await client.get_thumbnail(asset.id)
            except RequestFailed as e:
                progress['failed'] += 1
                logger.warning(f"Failed to preload thumbnail {asset.file_name}: {e}")
            finally:
                progress['done'] += 1
                store.set_preload_progress(progress['done'], total, True)

    store.set_preload_progress(0, total, True)
    await asyncio.gather(*(preload(asset) for asset in assets))
    store.set_preload_progress(total, total, False)
    preload_log.info("Thumbnail preload finished", total=total, failed=progress['failed'])
    return progress['failed']


async def load_folder_from_path(client: RenderServiceClient, store: LibraryStore,
                                path: str, preload: bool = True,
                                concurrency: int = DEFAULT_PRELOAD_CONCURRENCY
                                ) -> Optional[FolderIndex]:
    """
    Open a folder and show it in the library.

    Thumbnail preloading is started in the background and not awaited.

    Returns:
        The folder index, or None if the service could not open the folder
    """
    store.set_loading(True)
    try:
        folder = await client.open_folder(path)
    except RequestFailed as e:
        logger.error(f"Failed to load folder {path}: {e}")
        store.set_loading(False)
        return None

    store.set_folder(folder)
    if preload:
        task = asyncio.ensure_future(preload_thumbnails(client, store, folder.assets, concurrency))
        _preload_tasks.add(task)
        task.add_done_callback(_preload_tasks.discard)
    store.set_loading(False)
    return folder


async def wait_for_preloads():
    """Wait for background thumbnail preloads started by ``load_folder_from_path``."""
    if _preload_tasks:
        await asyncio.gather(*list(_preload_tasks), return_exceptions=True)
