"""
Data models for folders, assets and service-side metadata.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple


@dataclass(frozen=True)
class AssetSummary:
    """One image file registered by the rendering service."""
    id: str
    file_name: str
    extension: str
    path: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'AssetSummary':
        return cls(
            id=data['id'],
            file_name=data.get('fileName', ''),
            extension=data.get('extension', ''),
            path=data.get('path', ''),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'fileName': self.file_name,
            'extension': self.extension,
            'path': self.path,
        }


@dataclass(frozen=True)
class FolderIndex:
    """Assets found in an opened folder, sorted by file name."""
    id: str
    path: str
    assets: Tuple[AssetSummary, ...] = ()

    def find(self, asset_id: Optional[str]) -> Optional[AssetSummary]:
        for asset in self.assets:
            if asset.id == asset_id:
                return asset
        return None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'FolderIndex':
        return cls(
            id=data['id'],
            path=data.get('path', ''),
            assets=tuple(AssetSummary.from_dict(a) for a in data.get('assets') or ()),
        )


@dataclass(frozen=True)
class Metadata:
    """Capture details shown under the preview. Every field is optional."""
    camera: Optional[str] = None
    lens: Optional[str] = None
    iso: Optional[str] = None
    shutter: Optional[str] = None
    aperture: Optional[str] = None
    focal: Optional[str] = None
    date: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> 'Metadata':
        data = data or {}
        return cls(**{key: data.get(key) for key in cls.__dataclass_fields__})

    def summary(self) -> str:
        """Single-line description, skipping unknown fields."""
        parts = [self.camera, self.lens, self.focal, self.aperture, self.shutter,
                 f"ISO {self.iso}" if self.iso else None]
        return " · ".join(part for part in parts if part)


@dataclass(frozen=True)
class GpuAdapter:
    """GPU adapter reported by the rendering service."""
    name: str
    backend: str = ""
    device_type: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'GpuAdapter':
        return cls(
            name=data['name'],
            backend=data.get('backend', ''),
            device_type=data.get('deviceType', ''),
        )
