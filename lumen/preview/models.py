"""
Data models for the Lumen preview system.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from ..config import get_default_config


@dataclass(frozen=True)
class Size:
    """Width/height pair in CSS pixels (viewport) or image pixels (natural)."""
    width: float
    height: float

    @property
    def long_edge(self) -> float:
        return max(self.width, self.height)

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0


@dataclass(frozen=True)
class Frame:
    """On-screen placement of the preview inside the viewport."""
    width: float
    height: float
    left: float
    top: float


@dataclass(frozen=True)
class RenderOptions:
    """Per-request rendering options derived from geometry and interaction."""
    max_dimension: Optional[int] = None      # Target long edge
    debounce_ms: int = 0
    progressive: bool = False                # Floor pass before target pass
    progressive_floor: Optional[int] = None
    skip_high: bool = False                  # Floor pass only (scrubbing)


class GenerationPhase(Enum):
    """Lifecycle of one request generation inside the controller."""
    IDLE = "idle"
    DEBOUNCING = "debouncing"
    REQUESTING_LOW = "requesting_low"    # Nothing displayed yet for this generation
    REQUESTING_HIGH = "requesting_high"  # Target pass outstanding
    SETTLED = "settled"
    ERRORED = "errored"
    SUPERSEDED = "superseded"

    @property
    def is_terminal(self) -> bool:
        return self in (GenerationPhase.SETTLED, GenerationPhase.ERRORED, GenerationPhase.SUPERSEDED)


@dataclass(frozen=True)
class DisplayHandle:
    """Revocable reference to an encoded image payload."""
    uri: str
    media_type: str
    byte_size: int
    dimension: Optional[int] = None  # Requested long edge that produced it


@dataclass(frozen=True)
class RenderState:
    """What the view layer sees for one controller."""
    display_handle: Optional[DisplayHandle] = None
    is_loading: bool = False
    error_message: Optional[str] = None


@dataclass(frozen=True)
class PreviewPolicy:
    """
    Resolution and timing policy for preview requests.

    These are tuning choices rather than invariants; override them through
    the ``preview`` section of the configuration.
    """
    floor_resolution: int = 480
    overres_multiplier: float = 5.0
    interacting_cap: int = 960
    interacting_ratio: float = 0.7
    unmeasured_resolution: int = 1280
    unmeasured_interacting_resolution: int = 720
    progressive_floor_min: int = 420
    progressive_floor_ratio: float = 0.4
    default_max_dimension: int = 1440
    default_progressive_floor: int = 720
    debounce_ms: Dict[str, int] = field(default_factory=lambda: {
        'interacting': 8,
        'rest': 80,
        'preview': 120,
        'thumbnail': 0,
    })

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None) -> 'PreviewPolicy':
        """Build a policy from the ``preview`` configuration section."""
        section = dict(get_default_config()['preview'])
        section.update((config or {}).get('preview', {}))
        debounce = {**cls().debounce_ms, **section.pop('debounce_ms', {})}
        known = {name for name in cls.__dataclass_fields__ if name != 'debounce_ms'}
        values = {key: value for key, value in section.items() if key in known}
        return cls(debounce_ms=debounce, **values)
