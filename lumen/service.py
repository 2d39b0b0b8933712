"""
Client for the external rendering service.

The service is an opaque collaborator invoked by command name with a
parameter mapping. It may be slow and may fail; this module only adapts its
payloads to Lumen's models and folds every failure into ``RequestFailed``.
"""

import logging
from typing import Any, List, Mapping, Optional, Protocol

from .editor.models import EditRecipe
from .exceptions import (
    LumenError, PersistFailed, RecipeLoadError, RecipeNotFound, RequestFailed
)
from .library.models import FolderIndex, GpuAdapter, Metadata

logger = logging.getLogger(__name__)


class RenderService(Protocol):
    """Transport to the rendering service."""

    async def invoke(self, command: str, params: Mapping[str, Any]) -> Any:
        ...


def to_bytes(payload: Any) -> bytes:
    """
    Normalize an image payload.

    The service may answer with raw bytes or with a JSON array of byte values.
    """
    if isinstance(payload, bytes):
        return payload
    if isinstance(payload, (bytearray, memoryview)):
        return bytes(payload)
    if isinstance(payload, (list, tuple)):
        return bytes(payload)
    raise TypeError(f"Expected an image payload, got {type(payload).__name__}")


class RenderServiceClient:
    """
    Typed wrapper around a ``RenderService``.

    Each method maps to one service command. Failures surface as
    ``RequestFailed`` (or a subclass) carrying the command name.
    """

    def __init__(self, service: RenderService):
        self.service = service

    async def call(self, command: str, **params) -> Any:
        """Invoke a command, wrapping service errors into ``RequestFailed``."""
        logger.debug(f"-> {command} {sorted(params)}")
        try:
            return await self.service.invoke(command, params)
        except LumenError:
            raise
        except Exception as e:
            message = str(e) or e.__class__.__name__
            raise RequestFailed(message, command=command) from e

    async def render(self, command: str, asset_id: str,
                     recipe: Optional[EditRecipe] = None,
                     max_dimension: Optional[int] = None) -> bytes:
        """Request an encoded image from an image command."""
        params = {'assetId': asset_id}
        if recipe is not None:
            params['recipe'] = recipe.to_dict()
        if max_dimension is not None:
            params['maxDimension'] = int(max_dimension)
        payload = await self.call(command, **params)
        try:
            return to_bytes(payload)
        except (TypeError, ValueError) as e:
            raise RequestFailed(f"Malformed image payload: {e}", command=command) from e

    async def get_thumbnail(self, asset_id: str) -> bytes:
        return await self.render('get_thumbnail', asset_id)

    async def render_preview(self, asset_id: str, recipe: EditRecipe,
                             max_dimension: int) -> bytes:
        return await self.render('render_preview', asset_id, recipe, max_dimension)

    async def read_metadata(self, asset_id: str) -> Metadata:
        return Metadata.from_dict(await self.call('read_metadata', assetId=asset_id))

    async def detect_gpus(self) -> List[GpuAdapter]:
        adapters = await self.call('detect_gpus')
        return [GpuAdapter.from_dict(item) for item in adapters or []]

    async def open_folder(self, path: str) -> FolderIndex:
        return FolderIndex.from_dict(await self.call('open_folder', path=str(path)))

    async def load_recipe(self, asset_id: str, required: bool = False) -> Optional[EditRecipe]:
        """
        Load the persisted recipe for an asset.

        Args:
            asset_id: Asset whose recipe to load
            required: Raise instead of returning None when nothing is stored

        Returns:
            The stored recipe, or None when the asset has none yet

        Raises:
            RecipeNotFound: when nothing is stored and ``required`` is set
            RecipeLoadError: when the service fails or returns an unreadable recipe
        """
        try:
            data = await self.call('load_recipe', assetId=asset_id)
        except RequestFailed as e:
            raise RecipeLoadError(str(e), command='load_recipe') from e
        if data is None:
            if required:
                raise RecipeNotFound(f"No recipe stored for {asset_id}", command='load_recipe')
            return None
        try:
            return EditRecipe.from_dict(data)
        except (TypeError, ValueError, KeyError, AttributeError) as e:
            raise RecipeLoadError(f"Unreadable recipe: {e}", command='load_recipe') from e

    async def save_recipe(self, asset_id: str, recipe: EditRecipe) -> None:
        try:
            await self.call('save_recipe', assetId=asset_id, recipe=recipe.to_dict())
        except RequestFailed as e:
            raise PersistFailed(str(e), command='save_recipe') from e
