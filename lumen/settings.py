"""
GPU acceleration settings.
"""

import logging
from dataclasses import dataclass, replace
from typing import Optional, Tuple

from .exceptions import RequestFailed
from .library.models import GpuAdapter
from .service import RenderServiceClient
from .store import Store

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SettingsState:
    gpu_acceleration: bool = False
    adapters: Tuple[GpuAdapter, ...] = ()
    selected_adapter_name: Optional[str] = None
    last_error: Optional[str] = None

    @property
    def selected_adapter(self) -> Optional[GpuAdapter]:
        for adapter in self.adapters:
            if adapter.name == self.selected_adapter_name:
                return adapter
        return None


class SettingsStore(Store[SettingsState]):
    """Settings plus the adapter detection action."""

    def __init__(self, client: RenderServiceClient):
        super().__init__(SettingsState())
        self.client = client

    def set_gpu_acceleration(self, enabled: bool) -> SettingsState:
        return self.set(replace(self.get(), gpu_acceleration=bool(enabled)))

    def select_adapter(self, name: Optional[str]) -> SettingsState:
        return self.set(replace(self.get(), selected_adapter_name=name))

    async def detect_adapters(self) -> SettingsState:
        """
        Ask the service for GPU adapters and select the first one.

        On failure the adapter list is cleared and ``last_error`` is set.
        """
        try:
            adapters = await self.client.detect_gpus()
        except RequestFailed as e:
            logger.warning(f"GPU detection failed: {e}")
            return self.set(replace(self.get(), adapters=(), last_error=str(e)))

        logger.info(f"Detected {len(adapters)} GPU adapter(s)")
        return self.set(replace(
            self.get(),
            adapters=tuple(adapters),
            selected_adapter_name=adapters[0].name if adapters else None,
            last_error=None,
        ))
