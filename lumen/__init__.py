"""
Lumen: live preview core for a photo editor

Client-side orchestration of an external rendering service: debounced,
progressive preview requests with stale-result guarding, the edit recipe
model, preview geometry and recipe persistence.
"""

__version__ = "0.1.0"

# Core imports for easy access
from .config import load_config
from .editor.store import RecipeStore
from .preview.controller import PreviewLoader, RenderRequestController, ThumbnailLoader
from .service import RenderServiceClient
from .workspace import Workspace

__all__ = [
    "load_config",
    "RecipeStore",
    "PreviewLoader",
    "RenderRequestController",
    "ThumbnailLoader",
    "RenderServiceClient",
    "Workspace",
]
