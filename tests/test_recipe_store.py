"""
Tests for the recipe store mutation algebra.
"""

import pytest

from lumen.editor.models import (
    AdjustmentLayer, EditRecipe, GlobalAdjustments, LocalAdjustments, Mask
)
from lumen.editor.presets import PRESETS, get_preset
from lumen.editor.store import RecipeStore


@pytest.fixture
def store():
    return RecipeStore()


class TestGlobals:
    """Test global adjustment updates and preset blending."""

    def test_update_globals_merges(self, store):
        store.update_globals(contrast=10)
        store.update_globals({'exposure_ev': 0.5})
        assert store.recipe.globals.contrast == 10
        assert store.recipe.globals.exposure_ev == 0.5
        assert store.recipe.globals.shadows == 0

    def test_update_globals_does_not_clamp(self, store):
        store.update_globals(contrast=500)
        assert store.recipe.globals.contrast == 500

    def test_update_globals_rejects_unknown_fields(self, store):
        with pytest.raises(ValueError):
            store.update_globals(clarity=5)

    def test_preset_full_intensity(self, store):
        store.update_globals(contrast=-30, temp=12.5)
        preset = get_preset("Warm Film")
        store.apply_preset(preset, 1.0)
        assert store.recipe.globals == preset.globals

    def test_preset_zero_intensity(self, store):
        store.update_globals(contrast=-30, temp=12.5)
        before = store.recipe.globals
        store.apply_preset(get_preset("Cool Fade"), 0.0)
        assert store.recipe.globals == before

    def test_preset_midpoint(self, store):
        store.apply_preset(get_preset("Clean Contrast"), 0.5)
        assert store.recipe.globals.contrast == 4

    def test_preset_double_strength(self, store):
        store.apply_preset(get_preset("Clean Contrast"), 2.0)
        assert store.recipe.globals.contrast == 16

    def test_preset_accepts_globals(self, store):
        store.apply_preset(GlobalAdjustments(vibrance=20), 0.25)
        assert store.recipe.globals.vibrance == 5

    def test_preset_keeps_layers(self, store):
        layer = store.add_layer()
        store.apply_preset(PRESETS[0])
        assert store.recipe.layer_ids == (layer.id,)
        assert store.selected_layer_id == layer.id


class TestLayers:
    """Test layer add/update/remove/select."""

    def test_add_layer_defaults(self, store):
        layer = store.add_layer()
        assert layer.name == "Gradient 1"
        assert layer.enabled
        assert layer.opacity == 1.0
        assert layer.mask == Mask()
        assert layer.mask.start == (0.35, 0.2)
        assert layer.mask.end == (0.65, 0.8)
        assert layer.mask.feather == 0.35
        assert not layer.mask.invert
        assert layer.adjustments == LocalAdjustments()
        assert store.selected_layer_id == layer.id

    def test_add_layer_appends_and_numbers(self, store):
        first = store.add_layer()
        second = store.add_layer()
        assert second.name == "Gradient 2"
        assert store.recipe.layer_ids == (first.id, second.id)
        assert store.selected_layer_id == second.id
        assert first.id != second.id

    def test_update_mask_merges_fields(self, store):
        layer = store.add_layer()
        store.update_layer(layer.id, mask={'feather': 0.5})
        mask = store.recipe.layer(layer.id).mask
        assert mask.feather == 0.5
        assert mask.start == (0.35, 0.2)
        assert mask.end == (0.65, 0.8)
        assert not mask.invert

    def test_update_mask_clamps_points(self, store):
        layer = store.add_layer()
        store.update_layer(layer.id, mask={'start': (-0.5, 0.3), 'end': (1.7, 2)})
        mask = store.recipe.layer(layer.id).mask
        assert mask.start == (0.0, 0.3)
        assert mask.end == (1.0, 1.0)

    def test_update_adjustments_merges_fields(self, store):
        layer = store.add_layer()
        store.update_layer(layer.id, adjustments={'exposure_ev': 0.8})
        store.update_layer(layer.id, adjustments={'temp': -20})
        adjustments = store.recipe.layer(layer.id).adjustments
        assert adjustments.exposure_ev == 0.8
        assert adjustments.temp == -20
        assert store.recipe.layer(layer.id).has_adjustments()

    def test_update_scalars_replace(self, store):
        layer = store.add_layer()
        store.update_layer(layer.id, name="Sky", enabled=False, opacity=0.4)
        updated = store.recipe.layer(layer.id)
        assert (updated.name, updated.enabled, updated.opacity) == ("Sky", False, 0.4)

    def test_update_unknown_layer_is_noop(self, store):
        store.add_layer()
        before = store.get()
        assert store.update_layer("missing", opacity=0.1) is before

    def test_update_unknown_field_rejected(self, store):
        layer = store.add_layer()
        with pytest.raises(ValueError):
            store.update_layer(layer.id, blend_mode="multiply")

    def test_remove_selected_of_two(self, store):
        first = store.add_layer()
        second = store.add_layer()
        store.remove_layer(second.id)
        assert store.recipe.layer_ids == (first.id,)
        assert store.selected_layer_id == first.id

    def test_remove_unselected_keeps_selection(self, store):
        first = store.add_layer()
        second = store.add_layer()
        store.remove_layer(first.id)
        assert store.selected_layer_id == second.id

    def test_remove_last_clears_selection(self, store):
        layer = store.add_layer()
        store.remove_layer(layer.id)
        assert store.recipe.layers == ()
        assert store.selected_layer_id is None

    def test_select_layer(self, store):
        first = store.add_layer()
        store.add_layer()
        store.select_layer(first.id)
        assert store.selected_layer == store.recipe.layer(first.id)

    def test_select_unknown_snaps_to_first(self, store):
        first = store.add_layer()
        store.add_layer()
        store.select_layer("missing")
        assert store.selected_layer_id == first.id

    def test_select_without_layers(self, store):
        store.select_layer("missing")
        assert store.selected_layer_id is None


class TestWholeRecipe:
    """Test reset and set_recipe."""

    def test_reset(self, store):
        store.add_layer()
        store.update_globals(contrast=10)
        store.reset()
        assert store.recipe == EditRecipe()
        assert store.selected_layer_id is None

    def test_set_recipe_selects_first_layer(self, store):
        layers = (AdjustmentLayer(id="one"), AdjustmentLayer(id="two"))
        store.set_recipe(EditRecipe(layers=layers))
        assert store.selected_layer_id == "one"

    def test_set_recipe_replaces_duplicate_ids(self, store):
        layers = (AdjustmentLayer(id="same"), AdjustmentLayer(id="same"))
        store.set_recipe(EditRecipe(layers=layers))
        ids = store.recipe.layer_ids
        assert ids[0] == "same"
        assert len(set(ids)) == 2


class TestObservation:
    """Test store notifications and snapshot immutability."""

    def test_subscribers_see_new_and_previous(self, store):
        seen = []
        store.subscribe(lambda state, previous: seen.append((state, previous)))
        before = store.get()
        store.update_globals(contrast=5)
        assert len(seen) == 1
        assert seen[0][1] is before
        assert seen[0][0].recipe.globals.contrast == 5

    def test_unsubscribe(self, store):
        seen = []
        unsubscribe = store.subscribe(lambda state, previous: seen.append(state))
        unsubscribe()
        store.add_layer()
        assert seen == []

    def test_failing_listener_does_not_break_store(self, store):
        def broken(state, previous):
            raise RuntimeError("boom")
        store.subscribe(broken)
        store.update_globals(contrast=1)
        assert store.recipe.globals.contrast == 1

    def test_snapshots_are_frozen(self, store):
        store.add_layer()
        with pytest.raises(AttributeError):
            store.recipe.globals.contrast = 3
        with pytest.raises(AttributeError):
            store.recipe.layers[0].mask.feather = 0.9
