"""
Edit recipe model, built-in presets and the recipe sync boundary.
"""

from .models import (
    AdjustmentLayer, EditRecipe, GlobalAdjustments, LocalAdjustments, Mask, MaskType, Preset
)
from .presets import PRESETS, get_preset
from .store import RecipeState, RecipeStore
from .sync import RecipeSync

__all__ = [
    'AdjustmentLayer',
    'EditRecipe',
    'GlobalAdjustments',
    'LocalAdjustments',
    'Mask',
    'MaskType',
    'Preset',
    'PRESETS',
    'get_preset',
    'RecipeState',
    'RecipeStore',
    'RecipeSync',
]
