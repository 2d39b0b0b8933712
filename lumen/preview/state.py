"""
Interaction state and the preview session.

``InteractionStore`` holds the view-side flags that shape a render request
(scrubbing, zoom, measured sizes). ``PreviewSession`` ties the interaction
store, the recipe store and a ``PreviewLoader`` together: any change on
either store re-runs the geometry resolver and hands the resulting key to
the controller.
"""

import logging
from dataclasses import dataclass, replace
from typing import Optional, Tuple

from ..editor.store import RecipeState, RecipeStore
from ..service import RenderServiceClient
from ..store import Store
from .geometry import PreviewGeometry, resolve as resolve_geometry, to_normalized
from .controller import PreviewLoader
from .handles import HandleRegistry
from .models import PreviewPolicy, RenderState, Size

logger = logging.getLogger(__name__)

DEFAULT_ZOOM_PERCENT = 50
ZOOM_RANGE = (10, 100)

HANDLE_NAMES = ('start', 'end')


@dataclass(frozen=True)
class InteractionState:
    """View-side inputs to the geometry resolver."""
    is_scrubbing: bool = False
    zoom_enabled: bool = False
    zoom_percent: float = DEFAULT_ZOOM_PERCENT
    viewport: Size = Size(0, 0)
    natural: Optional[Size] = None
    device_pixel_ratio: float = 1.0


class InteractionStore(Store[InteractionState]):
    """Write path for interaction flags."""

    def __init__(self, state: Optional[InteractionState] = None):
        super().__init__(state or InteractionState())

    def _update(self, **changes) -> InteractionState:
        state = self.get()
        if all(getattr(state, key) == value for key, value in changes.items()):
            return state
        return self.set(replace(state, **changes))

    def set_scrubbing(self, is_scrubbing: bool) -> InteractionState:
        return self._update(is_scrubbing=bool(is_scrubbing))

    def begin_scrub(self) -> InteractionState:
        return self.set_scrubbing(True)

    def end_scrub(self) -> InteractionState:
        return self.set_scrubbing(False)

    def set_viewport(self, width: float, height: float,
                     device_pixel_ratio: Optional[float] = None) -> InteractionState:
        changes = {'viewport': Size(width, height)}
        if device_pixel_ratio is not None:
            changes['device_pixel_ratio'] = device_pixel_ratio
        return self._update(**changes)

    def set_natural_size(self, size: Optional[Size]) -> InteractionState:
        return self._update(natural=size)

    def toggle_zoom(self) -> InteractionState:
        """Switch between fit-to-window and zoomed; zooming in starts at 50%."""
        if self.get().zoom_enabled:
            return self._update(zoom_enabled=False)
        return self._update(zoom_enabled=True, zoom_percent=DEFAULT_ZOOM_PERCENT)

    def set_zoom_percent(self, percent: float) -> InteractionState:
        """Set the zoom slider; any zoom value leaves fit-to-window."""
        low, high = ZOOM_RANGE
        return self._update(zoom_enabled=True, zoom_percent=min(high, max(low, percent)))

    def fit_to_window(self) -> InteractionState:
        return self._update(zoom_enabled=False)

    def reset_for_asset(self) -> InteractionState:
        """A new asset has an unknown natural size and starts fitted."""
        return self._update(natural=None, zoom_enabled=False, is_scrubbing=False)


class PreviewSession:
    """
    Live preview of the selected asset.

    The session owns its ``PreviewLoader`` and re-requests whenever the
    recipe, the interaction flags or the asset change. The natural image
    size is read from each newly displayed image so the geometry can switch
    from the raw viewport to the fitted size.
    """

    def __init__(self, client: RenderServiceClient, recipes: RecipeStore,
                 interaction: Optional[InteractionStore] = None,
                 policy: Optional[PreviewPolicy] = None,
                 handles: Optional[HandleRegistry] = None):
        self.recipes = recipes
        self.interaction = interaction or InteractionStore()
        self.policy = policy or PreviewPolicy()
        self.loader = PreviewLoader(client, handles=handles, policy=self.policy)
        self.asset_id: Optional[str] = None
        self._geometry: Optional[PreviewGeometry] = None

        self._unsubscribe = [
            self.recipes.subscribe(self._on_recipe_change),
            self.interaction.subscribe(self._on_interaction_change),
            self.loader.subscribe(self._on_render_change),
        ]

    @property
    def state(self) -> RenderState:
        return self.loader.state

    @property
    def geometry(self) -> PreviewGeometry:
        if self._geometry is None:
            self._geometry = self._resolve()
        return self._geometry

    def set_asset(self, asset_id: Optional[str]) -> int:
        """Switch the previewed asset."""
        if asset_id != self.asset_id:
            logger.info(f"Preview asset changed: {self.asset_id} -> {asset_id}")
            self.asset_id = asset_id
            self.interaction.reset_for_asset()
        return self.refresh()

    def refresh(self) -> int:
        """Resolve geometry for the current inputs and update the controller."""
        self._geometry = self._resolve()
        return self.loader.update(self.asset_id, self.recipes.recipe, self._geometry.options)

    def _resolve(self) -> PreviewGeometry:
        state = self.interaction.get()
        return resolve_geometry(
            viewport=state.viewport,
            natural=state.natural,
            zoom_enabled=state.zoom_enabled,
            zoom_percent=state.zoom_percent,
            device_pixel_ratio=state.device_pixel_ratio,
            is_scrubbing=state.is_scrubbing,
            policy=self.policy,
        )

    def drag_handle(self, handle: str, point: Tuple[float, float]) -> bool:
        """
        Move a gradient handle of the selected layer.

        Args:
            handle: 'start' or 'end'
            point: Viewport-relative position of the pointer

        Returns:
            True if the selected layer was updated
        """
        if handle not in HANDLE_NAMES:
            raise ValueError(f"Unknown gradient handle: {handle}")
        layer = self.recipes.selected_layer
        if layer is None or not layer.enabled:
            return False
        normalized = to_normalized(point, self.geometry.frame)
        if normalized is None:
            return False
        self.recipes.update_layer(layer.id, mask={handle: normalized})
        return True

    def _on_recipe_change(self, state: RecipeState, previous: RecipeState):
        if self.asset_id and state.recipe != previous.recipe:
            self.refresh()

    def _on_interaction_change(self, state: InteractionState, previous: InteractionState):
        if not self.loader.closed:
            self.refresh()

    def _on_render_change(self, state: RenderState, previous: RenderState):
        handle = state.display_handle
        if handle is None or handle == previous.display_handle:
            return
        size = self.loader.handles.natural_size(handle)
        if size is not None:
            self.interaction.set_natural_size(size)

    def close(self):
        for unsubscribe in self._unsubscribe:
            unsubscribe()
        self._unsubscribe = []
        self.loader.close()

    async def aclose(self, timeout: Optional[float] = None):
        self.close()
        await self.loader.aclose(timeout)
