"""
Preview request orchestration: geometry, the render request controller and
display handle ownership.
"""

from .controller import PreviewLoader, RenderRequestController, ThumbnailLoader
from .handles import HandleRegistry
from .models import (
    DisplayHandle, Frame, GenerationPhase, PreviewPolicy, RenderOptions, RenderState, Size
)
from .state import InteractionState, InteractionStore, PreviewSession

__all__ = [
    'PreviewLoader',
    'RenderRequestController',
    'ThumbnailLoader',
    'HandleRegistry',
    'DisplayHandle',
    'Frame',
    'GenerationPhase',
    'PreviewPolicy',
    'RenderOptions',
    'RenderState',
    'Size',
    'InteractionState',
    'InteractionStore',
    'PreviewSession',
]
