"""
Shared fixtures: an in-memory rendering service with controllable latency
and failures.
"""

import asyncio
import io

import pytest
from PIL import Image

from lumen.preview.handles import HandleRegistry
from lumen.service import RenderServiceClient


def png_bytes(width: int, height: int) -> bytes:
    buffer = io.BytesIO()
    Image.new('RGB', (width, height), (128, 96, 64)).save(buffer, format='PNG')
    return buffer.getvalue()


class FakeRenderService:
    """
    Rendering service stand-in.

    ``gate(asset_id, dimension)`` holds matching calls until the returned
    event is set; ``failures`` maps ``(asset_id, dimension)`` to the
    exception to raise. A dimension of None matches any dimension.
    """

    def __init__(self):
        self.calls = []
        self.gates = {}
        self.failures = {}
        self.command_failures = {}
        self.recipes = {}
        self.saved = []
        self.folders = {}
        self.metadata = {}
        self.adapters = []
        self.image_factory = lambda asset_id, dimension: f"{asset_id}@{dimension}".encode()
        self.active = 0
        self.max_active = 0

    def gate(self, asset_id, dimension=None) -> asyncio.Event:
        event = asyncio.Event()
        self.gates[(asset_id, dimension)] = event
        return event

    def _lookup(self, table, asset_id, dimension):
        if (asset_id, dimension) in table:
            return table[(asset_id, dimension)]
        return table.get((asset_id, None))

    def requests(self, command='render_preview'):
        return [(params.get('assetId'), params.get('maxDimension'))
                for name, params in self.calls if name == command]

    async def invoke(self, command, params):
        params = dict(params)
        self.calls.append((command, params))
        asset_id = params.get('assetId')
        dimension = params.get('maxDimension')

        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            gate = self._lookup(self.gates, asset_id, dimension)
            if gate is not None:
                await gate.wait()
            else:
                await asyncio.sleep(0)
        finally:
            self.active -= 1

        error = self.command_failures.get(command) or self._lookup(self.failures, asset_id, dimension)
        if error is not None:
            raise error

        if command in ('render_preview', 'get_thumbnail'):
            return self.image_factory(asset_id, dimension)
        if command == 'load_recipe':
            return self.recipes.get(asset_id)
        if command == 'save_recipe':
            self.saved.append((asset_id, params['recipe']))
            self.recipes[asset_id] = params['recipe']
            return None
        if command == 'open_folder':
            return self.folders[params['path']]
        if command == 'read_metadata':
            return self.metadata.get(asset_id, {})
        if command == 'detect_gpus':
            return self.adapters
        raise ValueError(f"Unknown command: {command}")


@pytest.fixture
def service():
    return FakeRenderService()


@pytest.fixture
def client(service):
    return RenderServiceClient(service)


@pytest.fixture
def registry():
    return HandleRegistry()


@pytest.fixture
def wait_for():
    """Poll a condition on the running loop."""
    async def _wait_for(predicate, timeout=2.0):
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError("condition not reached before timeout")
            await asyncio.sleep(0.001)
    return _wait_for
