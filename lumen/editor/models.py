"""
Data models for edit recipes.

Recipes travel to and from the rendering service as camelCase JSON, so every
model provides ``to_dict`` / ``from_dict`` using the service's wire keys.
All models are frozen: a recipe is changed by building a new one through
``RecipeStore``, never by mutating nested fields in place.
"""

import uuid
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Dict, Mapping, NamedTuple, Optional, Tuple

RECIPE_VERSION = 1

Point = Tuple[float, float]


def _wire_key(name: str) -> str:
    """exposure_ev -> exposureEv"""
    head, *rest = name.split('_')
    return head + ''.join(part.capitalize() for part in rest)


def clamp01(value: float) -> float:
    return min(1.0, max(0.0, float(value)))


def clamp_point(point) -> Point:
    """Clamp a normalized image-space point to [0, 1] on both axes."""
    x, y = point
    return (clamp01(x), clamp01(y))


class SliderRange(NamedTuple):
    """UI-declared range for a numeric adjustment."""
    min: float
    max: float
    step: float


# Producers clamp to these before writing; the store does not enforce them.
GLOBAL_RANGES: Dict[str, SliderRange] = {
    'exposure_ev': SliderRange(-3.0, 3.0, 0.1),
    'contrast': SliderRange(-100.0, 100.0, 1.0),
    'highlights': SliderRange(-100.0, 100.0, 1.0),
    'shadows': SliderRange(-100.0, 100.0, 1.0),
    'whites': SliderRange(-100.0, 100.0, 1.0),
    'blacks': SliderRange(-100.0, 100.0, 1.0),
    'temp': SliderRange(-100.0, 100.0, 1.0),
    'tint': SliderRange(-100.0, 100.0, 1.0),
    'vibrance': SliderRange(-100.0, 100.0, 1.0),
    'saturation': SliderRange(-100.0, 100.0, 1.0),
}

LOCAL_RANGES: Dict[str, SliderRange] = {
    'exposure_ev': SliderRange(-2.0, 2.0, 0.1),
    'temp': SliderRange(-50.0, 50.0, 1.0),
    'tint': SliderRange(-50.0, 50.0, 1.0),
    'saturation': SliderRange(-100.0, 100.0, 2.0),
}


def clamp_to_range(value: float, slider: SliderRange) -> float:
    return min(slider.max, max(slider.min, float(value)))


class _Adjustments:
    """Shared wire conversion for flat float adjustment groups."""

    @classmethod
    def field_names(cls) -> Tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    def to_dict(self) -> Dict[str, float]:
        return {_wire_key(name): getattr(self, name) for name in self.field_names()}

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]):
        data = data or {}
        values = {}
        for name in cls.field_names():
            key = _wire_key(name)
            if key in data and data[key] is not None:
                values[name] = float(data[key])
        return cls(**values)

    def merged(self, partial: Mapping[str, float]):
        """Return a copy with ``partial`` merged in, rejecting unknown fields."""
        unknown = set(partial) - set(self.field_names())
        if unknown:
            raise ValueError(
                f"Unknown {type(self).__name__} field(s): {', '.join(sorted(unknown))}"
            )
        return replace(self, **{k: float(v) for k, v in partial.items()})


@dataclass(frozen=True)
class GlobalAdjustments(_Adjustments):
    """Whole-image sliders."""
    exposure_ev: float = 0.0  # EV
    contrast: float = 0.0
    highlights: float = 0.0
    shadows: float = 0.0
    whites: float = 0.0
    blacks: float = 0.0
    temp: float = 0.0
    tint: float = 0.0
    vibrance: float = 0.0
    saturation: float = 0.0

    def blend(self, target: 'GlobalAdjustments', intensity: float) -> 'GlobalAdjustments':
        """
        Move every field toward ``target`` by ``intensity`` (unclamped).

        current + (target - current) * t, written as (1 - t) * current + t * target
        so that t=0 and t=1 land exactly on the endpoints.
        """
        t = float(intensity)
        return GlobalAdjustments(**{
            name: (1.0 - t) * getattr(self, name) + t * getattr(target, name)
            for name in self.field_names()
        })


@dataclass(frozen=True)
class LocalAdjustments(_Adjustments):
    """Sliders scoped to one adjustment layer."""
    exposure_ev: float = 0.0
    temp: float = 0.0
    tint: float = 0.0
    saturation: float = 0.0


class MaskType(Enum):
    """Available mask shapes."""
    LINEAR_GRADIENT = "linear_gradient"


@dataclass(frozen=True)
class Mask:
    """Linear gradient mask in normalized image coordinates."""
    mask_type: MaskType = MaskType.LINEAR_GRADIENT
    start: Point = (0.35, 0.2)
    end: Point = (0.65, 0.8)
    feather: float = 0.35  # 0-1, gradient softness
    invert: bool = False

    def merged(self, partial: Mapping[str, Any]) -> 'Mask':
        """Merge ``partial`` field by field; start/end are clamped to [0, 1]."""
        allowed = {f.name for f in fields(self)}
        unknown = set(partial) - allowed
        if unknown:
            raise ValueError(f"Unknown Mask field(s): {', '.join(sorted(unknown))}")
        changes = dict(partial)
        for key in ('start', 'end'):
            if key in changes:
                changes[key] = clamp_point(changes[key])
        if 'mask_type' in changes:
            changes['mask_type'] = MaskType(changes['mask_type'])
        if 'feather' in changes:
            changes['feather'] = float(changes['feather'])
        if 'invert' in changes:
            changes['invert'] = bool(changes['invert'])
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'maskType': self.mask_type.value,
            'start': list(self.start),
            'end': list(self.end),
            'feather': self.feather,
            'invert': self.invert,
        }

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> 'Mask':
        data = data or {}
        default = cls()
        return cls(
            mask_type=MaskType(data.get('maskType', default.mask_type.value)),
            start=clamp_point(data.get('start', default.start)),
            end=clamp_point(data.get('end', default.end)),
            feather=float(data.get('feather', default.feather)),
            invert=bool(data.get('invert', default.invert)),
        )


def new_layer_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class AdjustmentLayer:
    """A masked local adjustment with its own opacity and enable flag."""
    id: str = field(default_factory=new_layer_id)
    name: str = "Gradient"
    enabled: bool = True
    opacity: float = 1.0  # 0-1
    mask: Mask = field(default_factory=Mask)
    adjustments: LocalAdjustments = field(default_factory=LocalAdjustments)

    def has_adjustments(self) -> bool:
        """Check if layer has any non-zero adjustments."""
        return any(abs(v) > 0.001 for v in self.adjustments.to_dict().values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'enabled': self.enabled,
            'opacity': self.opacity,
            'mask': self.mask.to_dict(),
            'adjustments': self.adjustments.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'AdjustmentLayer':
        return cls(
            id=str(data.get('id') or new_layer_id()),
            name=data.get('name', "Gradient"),
            enabled=bool(data.get('enabled', True)),
            opacity=float(data.get('opacity', 1.0)),
            mask=Mask.from_dict(data.get('mask')),
            adjustments=LocalAdjustments.from_dict(data.get('adjustments')),
        )


@dataclass(frozen=True)
class EditRecipe:
    """Global and per-layer adjustments describing how to render one asset."""
    version: int = RECIPE_VERSION
    globals: GlobalAdjustments = field(default_factory=GlobalAdjustments)
    layers: Tuple[AdjustmentLayer, ...] = ()

    def layer(self, layer_id: Optional[str]) -> Optional[AdjustmentLayer]:
        for layer in self.layers:
            if layer.id == layer_id:
                return layer
        return None

    @property
    def layer_ids(self) -> Tuple[str, ...]:
        return tuple(layer.id for layer in self.layers)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'version': self.version,
            'globals': self.globals.to_dict(),
            'layers': [layer.to_dict() for layer in self.layers],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'EditRecipe':
        return cls(
            version=int(data.get('version', RECIPE_VERSION)),
            globals=GlobalAdjustments.from_dict(data.get('globals')),
            layers=tuple(AdjustmentLayer.from_dict(layer) for layer in data.get('layers') or ()),
        )


@dataclass(frozen=True)
class Preset:
    """Named look applied to the global adjustments. Never stored in a recipe."""
    name: str
    mood: str
    notes: str
    globals: GlobalAdjustments
