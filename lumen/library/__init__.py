"""
Folder and asset selection, folder loading and per-asset metadata.

Actions and loaders talk to the rendering service and are imported from
their modules (``lumen.library.actions``, ``lumen.library.loaders``).
"""

from .models import AssetSummary, FolderIndex, GpuAdapter, Metadata
from .store import LibraryState, LibraryStore

__all__ = [
    'AssetSummary',
    'FolderIndex',
    'GpuAdapter',
    'Metadata',
    'LibraryState',
    'LibraryStore',
]
