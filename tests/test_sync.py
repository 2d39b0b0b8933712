"""
Tests for the recipe sync boundary.
"""

import asyncio
import logging

import pytest

from lumen.editor.models import EditRecipe
from lumen.editor.store import RecipeStore
from lumen.editor.sync import RecipeSync

SAVE_DELAY_MS = 10
SETTLE = 0.05


STORED = {
    'version': 1,
    'globals': {'contrast': 12, 'exposureEv': 0.4},
    'layers': [{'id': "sky", 'name': "Sky", 'mask': {'feather': 0.2}}],
}


@pytest.fixture
def store():
    return RecipeStore()


@pytest.fixture
def sync(client, store):
    return RecipeSync(client, store, save_delay_ms=SAVE_DELAY_MS)


class TestLoading:
    """Test recipe loading on asset change."""

    @pytest.mark.asyncio
    async def test_loads_stored_recipe(self, sync, store, service):
        service.recipes['a'] = STORED
        await sync.set_asset('a')

        assert store.recipe.globals.contrast == 12
        assert store.recipe.globals.exposure_ev == 0.4
        assert store.selected_layer_id == "sky"
        assert not sync.loading

    @pytest.mark.asyncio
    async def test_missing_recipe_uses_defaults(self, sync, store):
        store.update_globals(contrast=50)
        await sync.set_asset('new')

        assert store.recipe == EditRecipe()

    @pytest.mark.asyncio
    async def test_load_failure_uses_defaults(self, sync, store, service, caplog):
        store.update_globals(contrast=50)
        service.failures[('a', None)] = RuntimeError("sidecar corrupt")

        with caplog.at_level(logging.WARNING):
            await sync.set_asset('a')

        assert store.recipe == EditRecipe()
        assert sync.stats['load_failures'] == 1
        assert "sidecar corrupt" in caplog.text

    @pytest.mark.asyncio
    async def test_unreadable_recipe_uses_defaults(self, sync, store, service):
        service.recipes['a'] = {'layers': [{'mask': {'maskType': "radial"}}]}
        await sync.set_asset('a')

        assert store.recipe == EditRecipe()

    @pytest.mark.asyncio
    async def test_clearing_asset_resets(self, sync, store, service):
        service.recipes['a'] = STORED
        await sync.set_asset('a')
        await sync.set_asset(None)

        assert store.recipe == EditRecipe()
        assert store.selected_layer_id is None

    @pytest.mark.asyncio
    async def test_superseded_load_is_dropped(self, sync, store, service, wait_for):
        service.recipes['a'] = STORED
        service.recipes['b'] = {'globals': {'contrast': -7}}
        gate = service.gate('a')

        first = asyncio.ensure_future(sync.set_asset('a'))
        await wait_for(lambda: len(service.calls) == 1)
        await sync.set_asset('b')
        gate.set()
        await first

        assert sync.asset_id == 'b'
        assert store.recipe.globals.contrast == -7


class TestSaving:
    """Test debounced saving."""

    @pytest.mark.asyncio
    async def test_load_is_not_saved(self, sync, service):
        service.recipes['a'] = STORED
        await sync.set_asset('a')
        await asyncio.sleep(SETTLE)
        await sync.wait_idle()

        assert service.saved == []
        assert sync.stats['saves_skipped'] == 1

    @pytest.mark.asyncio
    async def test_edits_are_coalesced(self, sync, store, service):
        await sync.set_asset('a')
        await asyncio.sleep(SETTLE)

        store.update_globals(contrast=1)
        store.update_globals(contrast=2)
        store.update_globals(contrast=3)
        await asyncio.sleep(SETTLE)
        await sync.wait_idle()

        assert len(service.saved) == 1
        asset_id, recipe = service.saved[0]
        assert asset_id == 'a'
        assert recipe['globals']['contrast'] == 3

    @pytest.mark.asyncio
    async def test_no_save_without_asset(self, sync, store, service):
        store.update_globals(contrast=5)
        await asyncio.sleep(SETTLE)

        assert service.saved == []

    @pytest.mark.asyncio
    async def test_save_failure_is_logged(self, sync, store, service, caplog):
        await sync.set_asset('a')
        await asyncio.sleep(SETTLE)
        service.command_failures['save_recipe'] = OSError("disk full")

        with caplog.at_level(logging.WARNING):
            store.update_globals(contrast=5)
            await asyncio.sleep(SETTLE)
            await sync.wait_idle()

        assert sync.stats['save_failures'] == 1
        assert "disk full" in caplog.text

    @pytest.mark.asyncio
    async def test_flush(self, sync, store, service):
        await sync.set_asset('a')
        await asyncio.sleep(SETTLE)
        store.update_globals(shadows=9)

        assert await sync.flush()
        assert service.saved[-1][1]['globals']['shadows'] == 9

    @pytest.mark.asyncio
    async def test_switch_writes_pending_save(self, sync, store, service):
        await sync.set_asset('a')
        await asyncio.sleep(SETTLE)
        store.update_globals(whites=4)
        await sync.set_asset('b')

        assert service.saved[0][0] == 'a'
        assert service.saved[0][1]['globals']['whites'] == 4
        assert store.recipe == EditRecipe()

    @pytest.mark.asyncio
    async def test_close_stops_saving(self, sync, store, service):
        await sync.set_asset('a')
        await asyncio.sleep(SETTLE)
        sync.close()
        store.update_globals(contrast=5)
        await asyncio.sleep(SETTLE)

        assert service.saved == []
        with pytest.raises(RuntimeError):
            await sync.set_asset('b')

    @pytest.mark.asyncio
    async def test_aclose_flushes(self, sync, store, service):
        await sync.set_asset('a')
        await asyncio.sleep(SETTLE)
        store.update_globals(blacks=-3)
        await sync.aclose()

        assert service.saved[-1][1]['globals']['blacks'] == -3
