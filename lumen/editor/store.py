"""
Recipe store: the only write path for the active edit recipe.

Every operation builds a new immutable ``RecipeState`` and repairs the layer
selection so that it always references an existing layer (or is unset when
there are no layers).
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Optional, Union

from ..store import Store
from .models import (
    AdjustmentLayer, EditRecipe, GlobalAdjustments, Preset, new_layer_id
)

logger = logging.getLogger(__name__)

# Top-level layer fields replaced directly by update_layer
_LAYER_SCALARS = ('name', 'enabled', 'opacity')


@dataclass(frozen=True)
class RecipeState:
    """Snapshot held by the recipe store."""
    recipe: EditRecipe = field(default_factory=EditRecipe)
    selected_layer_id: Optional[str] = None

    @property
    def selected_layer(self) -> Optional[AdjustmentLayer]:
        return self.recipe.layer(self.selected_layer_id)


def _repair_selection(recipe: EditRecipe, selected: Optional[str]) -> Optional[str]:
    if not recipe.layers:
        return None
    if selected is None or recipe.layer(selected) is None:
        return recipe.layers[0].id
    return selected


def _dedupe_layer_ids(recipe: EditRecipe) -> EditRecipe:
    """Give duplicate layer ids fresh values so selection stays unambiguous."""
    seen = set()
    layers = []
    changed = False
    for layer in recipe.layers:
        if layer.id in seen:
            logger.warning(f"Duplicate layer id {layer.id!r} in recipe, assigning a new id")
            layer = replace(layer, id=new_layer_id())
            changed = True
        seen.add(layer.id)
        layers.append(layer)
    return replace(recipe, layers=tuple(layers)) if changed else recipe


class RecipeStore(Store[RecipeState]):
    """
    In-memory recipe for the selected asset plus the mutation algebra.

    Observers read snapshots through ``get()`` / ``subscribe()``; writes go
    through the methods below only.
    """

    def __init__(self, recipe: Optional[EditRecipe] = None):
        recipe = _dedupe_layer_ids(recipe) if recipe else EditRecipe()
        super().__init__(RecipeState(recipe, _repair_selection(recipe, None)))

    @property
    def recipe(self) -> EditRecipe:
        return self.get().recipe

    @property
    def selected_layer_id(self) -> Optional[str]:
        return self.get().selected_layer_id

    @property
    def selected_layer(self) -> Optional[AdjustmentLayer]:
        return self.get().selected_layer

    def _commit(self, recipe: EditRecipe, selected: Optional[str]) -> RecipeState:
        return self.set(RecipeState(recipe, _repair_selection(recipe, selected)))

    # Whole-recipe replacement

    def reset(self) -> RecipeState:
        """Replace the recipe with defaults and clear the selection."""
        return self._commit(EditRecipe(), None)

    def set_recipe(self, recipe: EditRecipe) -> RecipeState:
        """Replace the recipe wholesale; selection moves to the first layer."""
        recipe = _dedupe_layer_ids(recipe)
        return self._commit(recipe, recipe.layers[0].id if recipe.layers else None)

    # Global adjustments

    def update_globals(self, partial: Optional[Mapping[str, float]] = None, **changes) -> RecipeState:
        """
        Shallow-merge adjustments into the globals.

        Unspecified fields keep their values. No range clamping happens here,
        producers clamp to ``GLOBAL_RANGES`` themselves.
        """
        merged = {**(partial or {}), **changes}
        state = self.get()
        recipe = replace(state.recipe, globals=state.recipe.globals.merged(merged))
        return self._commit(recipe, state.selected_layer_id)

    def apply_preset(self, preset: Union[Preset, GlobalAdjustments], intensity: float = 1.0) -> RecipeState:
        """
        Blend every global toward the preset: current + (preset - current) * intensity.

        ``intensity`` is not clamped; the preset list offers 0-2.
        """
        target = preset.globals if isinstance(preset, Preset) else preset
        state = self.get()
        recipe = replace(state.recipe, globals=state.recipe.globals.blend(target, intensity))
        logger.debug(f"Applied preset at intensity {intensity:.2f}")
        return self._commit(recipe, state.selected_layer_id)

    # Layers

    def add_layer(self) -> AdjustmentLayer:
        """Append a default gradient layer and select it."""
        state = self.get()
        layer = AdjustmentLayer(name=f"Gradient {len(state.recipe.layers) + 1}")
        recipe = replace(state.recipe, layers=state.recipe.layers + (layer,))
        self._commit(recipe, layer.id)
        return layer

    def update_layer(self, layer_id: str, updates: Optional[Mapping[str, Any]] = None,
                     **changes) -> RecipeState:
        """
        Update one layer.

        ``mask`` and ``adjustments`` are merged field by field into the
        existing values (mask points are clamped to [0, 1]); ``name``,
        ``enabled`` and ``opacity`` replace directly. Unknown ids are a no-op.
        """
        updates = {**(updates or {}), **changes}
        unknown = set(updates) - set(_LAYER_SCALARS) - {'mask', 'adjustments'}
        if unknown:
            raise ValueError(f"Unknown layer field(s): {', '.join(sorted(unknown))}")

        state = self.get()
        layer = state.recipe.layer(layer_id)
        if layer is None:
            logger.debug(f"update_layer ignored, no layer {layer_id!r}")
            return state

        new_values = {key: updates[key] for key in _LAYER_SCALARS if key in updates}
        if 'opacity' in new_values:
            new_values['opacity'] = float(new_values['opacity'])
        if updates.get('mask'):
            new_values['mask'] = layer.mask.merged(updates['mask'])
        if updates.get('adjustments'):
            new_values['adjustments'] = layer.adjustments.merged(updates['adjustments'])
        updated = replace(layer, **new_values)

        layers = tuple(updated if item.id == layer_id else item for item in state.recipe.layers)
        return self._commit(replace(state.recipe, layers=layers), state.selected_layer_id)

    def remove_layer(self, layer_id: str) -> RecipeState:
        """Remove a layer; a removed selection falls back to the first remaining layer."""
        state = self.get()
        layers = tuple(layer for layer in state.recipe.layers if layer.id != layer_id)
        if len(layers) == len(state.recipe.layers):
            return state
        selected = None if state.selected_layer_id == layer_id else state.selected_layer_id
        return self._commit(replace(state.recipe, layers=layers), selected)

    def select_layer(self, layer_id: Optional[str] = None) -> RecipeState:
        """Select a layer. Ids that do not exist snap to the first layer."""
        state = self.get()
        return self._commit(state.recipe, layer_id)
