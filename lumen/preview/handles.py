"""
Display handle registry.

Rendered payloads are exposed to the view layer as ``lumen-blob:`` URIs.
Each URI stays resolvable until its owner revokes it; nothing is reclaimed
implicitly, so every ``create`` must be paired with a ``revoke``.
"""

import io
import logging
import uuid
from typing import Dict, Optional

from PIL import Image, UnidentifiedImageError

from .models import DisplayHandle, Size

logger = logging.getLogger(__name__)

DEFAULT_MEDIA_TYPE = "image/png"


class HandleRegistry:
    """Owns the payload bytes behind every live display handle."""

    def __init__(self, scheme: str = "lumen-blob"):
        self.scheme = scheme
        self._payloads: Dict[str, bytes] = {}
        self.stats = {
            'created': 0,
            'revoked': 0,
        }

    def create(self, payload: bytes, media_type: str = DEFAULT_MEDIA_TYPE,
               dimension: Optional[int] = None) -> DisplayHandle:
        """Register a payload and return a new handle for it."""
        uri = f"{self.scheme}:{uuid.uuid4()}"
        self._payloads[uri] = bytes(payload)
        self.stats['created'] += 1
        return DisplayHandle(uri=uri, media_type=media_type,
                             byte_size=len(payload), dimension=dimension)

    def revoke(self, handle: Optional[DisplayHandle]) -> bool:
        """
        Release a handle.

        Returns:
            True if the handle was live, False if unknown or already revoked
        """
        if handle is None:
            return False
        if self._payloads.pop(handle.uri, None) is None:
            return False
        self.stats['revoked'] += 1
        return True

    def is_live(self, handle: Optional[DisplayHandle]) -> bool:
        return handle is not None and handle.uri in self._payloads

    def resolve(self, handle: DisplayHandle) -> bytes:
        """
        Return the payload behind a live handle.

        Raises:
            KeyError: if the handle has been revoked
        """
        try:
            return self._payloads[handle.uri]
        except KeyError:
            raise KeyError(f"Display handle {handle.uri} has been revoked") from None

    def natural_size(self, handle: DisplayHandle) -> Optional[Size]:
        """
        Pixel size of the encoded image behind a handle.

        Only the image header is read. Returns None if the handle is revoked
        or the payload is not a recognizable image.
        """
        payload = self._payloads.get(handle.uri)
        if payload is None:
            return None
        try:
            with Image.open(io.BytesIO(payload)) as image:
                width, height = image.size
        except (UnidentifiedImageError, OSError) as e:
            logger.debug(f"Could not read image size for {handle.uri}: {e}")
            return None
        return Size(width, height)

    @property
    def live_count(self) -> int:
        return len(self._payloads)
