"""
Render Request Controller.

Turns a changing ``(asset_id, recipe, options)`` key into a sequence of
displayed images:

- requests wait ``options.debounce_ms`` and only the last key wins
- progressive keys issue a floor pass and a target pass concurrently and
  never step back down in quality
- skip-high keys issue the floor pass only
- every key change starts a new generation; results and errors from older
  generations are dropped on arrival (the service call itself still runs)
- each rendered payload becomes a display handle that is revoked as soon as
  a newer image replaces it, or when the controller is closed
"""

import asyncio
import logging
from dataclasses import dataclass, field, replace
from typing import Callable, List, Optional, Set

from ..editor.models import EditRecipe
from ..exceptions import Superseded
from ..service import RenderServiceClient
from ..store import Store
from .handles import HandleRegistry
from .models import (
    DisplayHandle, GenerationPhase, PreviewPolicy, RenderOptions, RenderState
)
from .timer import DebounceTimer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderKey:
    """Inputs that define what should be on screen."""
    asset_id: Optional[str]
    recipe: Optional[EditRecipe]
    options: RenderOptions


@dataclass
class Generation:
    """One key and everything issued on its behalf."""
    number: int
    key: RenderKey
    phase: GenerationPhase = GenerationPhase.IDLE
    dimensions: List[int] = field(default_factory=list)
    handles: List[DisplayHandle] = field(default_factory=list)
    applied_dimension: int = 0
    final_done: bool = False
    failed: bool = False

    @property
    def final_dimension(self) -> Optional[int]:
        return self.dimensions[-1] if self.dimensions else None


def plan_dimensions(options: RenderOptions, policy: PreviewPolicy) -> List[int]:
    """
    Request sizes for one generation, fast pass first.

    Returns:
        ``[floor]`` in skip-high mode, ``[floor, target]`` for a progressive
        key whose target exceeds the floor, ``[target]`` otherwise
    """
    target = options.max_dimension or policy.default_max_dimension
    floor = options.progressive_floor or policy.default_progressive_floor
    fast = min(floor, target) if (options.progressive or options.skip_high) else target
    if options.skip_high:
        return [fast]
    if options.progressive and target > fast:
        return [fast, target]
    return [target]


class RenderRequestController:
    """
    Owns the request lifecycle and the display handles for one consumer.

    Must be driven from a running asyncio loop. Observers read ``state`` or
    ``subscribe`` to it; ``state.display_handle`` stays resolvable until a
    newer image replaces it or the controller is closed.
    """

    def __init__(self, client: RenderServiceClient, command: str = 'render_preview',
                 handles: Optional[HandleRegistry] = None,
                 policy: Optional[PreviewPolicy] = None):
        self.client = client
        self.command = command
        self.handles = handles or HandleRegistry()
        self.policy = policy or PreviewPolicy()

        self._store: Store[RenderState] = Store(RenderState())
        self._timer = DebounceTimer()
        self._generation_counter = 0
        self._current: Optional[Generation] = None
        self._displayed: Optional[DisplayHandle] = None
        self._tasks: Set[asyncio.Task] = set()
        self._closed = False

        self.stats = {
            'generations': 0,
            'requests_issued': 0,
            'results_applied': 0,
            'results_discarded': 0,
            'requests_failed': 0,
        }

    # Observation

    @property
    def state(self) -> RenderState:
        return self._store.get()

    def subscribe(self, listener: Callable[[RenderState, RenderState], None]) -> Callable[[], None]:
        return self._store.subscribe(listener)

    @property
    def generation(self) -> Optional[Generation]:
        return self._current

    @property
    def phase(self) -> GenerationPhase:
        return self._current.phase if self._current else GenerationPhase.IDLE

    @property
    def closed(self) -> bool:
        return self._closed

    # Key changes

    def update(self, asset_id: Optional[str], recipe: Optional[EditRecipe] = None,
               options: Optional[RenderOptions] = None) -> int:
        """
        Point the controller at a new key.

        An unchanged key is ignored. Otherwise the current generation is
        superseded at once and a new one starts debouncing.

        Returns:
            Number of the generation now current
        """
        if self._closed:
            raise RuntimeError("RenderRequestController is closed")

        key = RenderKey(asset_id, recipe, options or RenderOptions())
        if self._current is not None and self._current.key == key:
            return self._current.number
        return self._start(key)

    def retry(self) -> Optional[int]:
        """Re-issue the current key as a fresh generation (e.g. after an error)."""
        if self._closed:
            raise RuntimeError("RenderRequestController is closed")
        if self._current is None:
            return None
        return self._start(self._current.key)

    def _start(self, key: RenderKey) -> int:
        self._supersede_current()
        self._generation_counter += 1
        self.stats['generations'] += 1
        generation = Generation(self._generation_counter, key)
        self._current = generation

        if not key.asset_id:
            self._timer.cancel()
            generation.phase = GenerationPhase.SETTLED
            self._replace_display(None)
            self._set_state(display_handle=None, is_loading=False, error_message=None)
            return generation.number

        generation.phase = GenerationPhase.DEBOUNCING
        self._timer.schedule(key.options.debounce_ms, lambda: self._activate(generation))
        logger.debug(f"[{self.command}] generation {generation.number} debouncing "
                     f"{key.options.debounce_ms}ms for {key.asset_id}")
        return generation.number

    def _supersede_current(self):
        previous = self._current
        if previous is None:
            return
        previous.phase = GenerationPhase.SUPERSEDED
        for handle in previous.handles:
            if handle != self._displayed:
                self.handles.revoke(handle)

    def _is_current(self, generation: Generation) -> bool:
        return not self._closed and generation is self._current

    # Request lifecycle

    def _activate(self, generation: Generation):
        if not self._is_current(generation):
            return
        task = asyncio.ensure_future(self._load(generation))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _load(self, generation: Generation):
        if not self._is_current(generation):
            return
        options = generation.key.options
        generation.dimensions = plan_dimensions(options, self.policy)
        two_step = len(generation.dimensions) > 1
        generation.phase = (GenerationPhase.REQUESTING_LOW if two_step or options.skip_high
                            else GenerationPhase.REQUESTING_HIGH)
        self._set_state(is_loading=True, error_message=None)
        logger.debug(f"[{self.command}] generation {generation.number} requesting "
                     f"{generation.dimensions}")

        await asyncio.gather(*(
            self._fetch(generation, dimension) for dimension in generation.dimensions
        ))

        if not self._is_current(generation):
            return
        if generation.failed and not generation.final_done:
            generation.phase = GenerationPhase.ERRORED
        else:
            generation.phase = GenerationPhase.SETTLED
        self._set_state(is_loading=False)

    async def _fetch(self, generation: Generation, dimension: int):
        try:
            await self._fetch_pass(generation, dimension)
        except Superseded as e:
            self.stats['results_discarded'] += 1
            logger.debug(f"[{self.command}] dropped {dimension}px pass: {e}")

    def _ensure_current(self, generation: Generation):
        if not self._is_current(generation):
            raise Superseded(f"generation {generation.number} is no longer current")

    async def _fetch_pass(self, generation: Generation, dimension: int):
        key = generation.key
        self._ensure_current(generation)
        self.stats['requests_issued'] += 1
        try:
            payload = await self.client.render(self.command, key.asset_id, key.recipe, dimension)
        except Exception as e:
            self._ensure_current(generation)
            self.stats['requests_failed'] += 1
            if dimension < generation.applied_dimension:
                # A sharper image is already on screen
                logger.debug(f"[{self.command}] {dimension}px pass failed after a sharper result: {e}")
                return
            generation.failed = True
            logger.error(f"[{self.command}] {key.asset_id} at {dimension}px failed: {e}")
            self._set_state(error_message=str(e))
            return

        self._ensure_current(generation)
        if dimension < generation.applied_dimension:
            self.stats['results_discarded'] += 1
            logger.debug(f"[{self.command}] dropped {dimension}px result, "
                         f"{generation.applied_dimension}px already shown")
            return

        handle = self.handles.create(payload, dimension=dimension)
        generation.handles.append(handle)
        generation.applied_dimension = dimension
        self._replace_display(handle)
        self.stats['results_applied'] += 1

        changes = {'display_handle': handle}
        if dimension == generation.final_dimension:
            generation.final_done = True
            changes['error_message'] = None
        elif generation.phase == GenerationPhase.REQUESTING_LOW:
            generation.phase = GenerationPhase.REQUESTING_HIGH
        self._set_state(**changes)

    # Display state

    def _replace_display(self, handle: Optional[DisplayHandle]):
        previous = self._displayed
        self._displayed = handle
        if previous is not None and previous != handle:
            self.handles.revoke(previous)

    def _set_state(self, **changes):
        self._store.set(replace(self._store.get(), **changes))

    # Teardown

    def close(self):
        """
        Tear down: supersede the current generation and revoke every handle.

        In-flight service calls are left to finish; their results are dropped.
        """
        if self._closed:
            return
        self._timer.cancel()
        self._supersede_current()
        self._replace_display(None)
        self._closed = True
        self._set_state(display_handle=None, is_loading=False)
        logger.debug(f"[{self.command}] controller closed")

    async def aclose(self, timeout: Optional[float] = None):
        """Close and wait for outstanding service calls to come back."""
        self.close()
        if self._tasks:
            await asyncio.wait(set(self._tasks), timeout=timeout)

    async def wait_idle(self):
        """Wait until no debounce is pending and no request is in flight."""
        while self._timer.pending or self._tasks:
            if self._tasks:
                await asyncio.gather(*list(self._tasks), return_exceptions=True)
            else:
                await asyncio.sleep(0.001)


class PreviewLoader(RenderRequestController):
    """Controller for ``render_preview`` with the preview debounce as default."""

    def __init__(self, client: RenderServiceClient, handles: Optional[HandleRegistry] = None,
                 policy: Optional[PreviewPolicy] = None):
        super().__init__(client, 'render_preview', handles, policy)

    def request(self, asset_id: Optional[str], recipe: Optional[EditRecipe],
                max_dimension: Optional[int] = None, debounce_ms: Optional[int] = None,
                progressive: bool = False, progressive_floor: Optional[int] = None,
                skip_high: bool = False) -> int:
        if debounce_ms is None:
            debounce_ms = self.policy.debounce_ms['preview']
        return self.update(asset_id, recipe, RenderOptions(
            max_dimension=max_dimension,
            debounce_ms=debounce_ms,
            progressive=progressive,
            progressive_floor=progressive_floor,
            skip_high=skip_high,
        ))


class ThumbnailLoader(RenderRequestController):
    """Controller for ``get_thumbnail``: no recipe, no debounce."""

    def __init__(self, client: RenderServiceClient, handles: Optional[HandleRegistry] = None,
                 policy: Optional[PreviewPolicy] = None):
        super().__init__(client, 'get_thumbnail', handles, policy)

    def request(self, asset_id: Optional[str]) -> int:
        return self.update(asset_id, None, RenderOptions(
            debounce_ms=self.policy.debounce_ms['thumbnail'],
        ))
