"""Build-time registry of known placements.

The registry is loaded once by the composition root and handed to the static
tier; it is read-only afterwards.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional

logger = logging.getLogger(__name__)

PACKAGED_REGISTRY = "static_registry.json"


@dataclass(frozen=True)
class RegistryEntry:
    logical_id: str
    cdn_object_id: str
    width: Optional[int] = None
    height: Optional[int] = None
    resource_type: Optional[str] = None
    title: Optional[str] = None
    alt_text: Optional[str] = None
    area: Optional[str] = None
    default_options: Mapping[str, Any] = field(default_factory=dict)


def _entry(logical_id: str, raw: Mapping[str, Any]) -> RegistryEntry:
    object_id = raw.get("cdnObjectId") or raw.get("publicId")
    if not object_id:
        raise ValueError(f"registry entry {logical_id!r} has no cdnObjectId")
    dimensions = raw.get("dimensions") or {}
    return RegistryEntry(
        logical_id=logical_id,
        cdn_object_id=object_id,
        width=dimensions.get("width") or None,
        height=dimensions.get("height") or None,
        resource_type=raw.get("resourceType"),
        title=raw.get("title") or raw.get("description"),
        alt_text=raw.get("altText"),
        area=raw.get("area"),
        default_options=MappingProxyType(dict(raw.get("defaultOptions") or {})),
    )


class StaticRegistry:
    def __init__(self, entries: Mapping[str, Mapping[str, Any]] | None = None) -> None:
        self._entries: dict[str, RegistryEntry] = {
            logical_id: _entry(logical_id, raw) for logical_id, raw in (entries or {}).items()
        }

    @classmethod
    def from_json(cls, text: str) -> "StaticRegistry":
        return cls(json.loads(text))

    @classmethod
    def load(cls, path: str | Path | None = None) -> "StaticRegistry":
        """Load from ``path``, or from the registry shipped with the package."""
        if path:
            text = Path(path).read_text(encoding="utf-8")
            source = str(path)
        else:
            packaged = resources.files("sitemedia.media").joinpath("data").joinpath(PACKAGED_REGISTRY)
            text = packaged.read_text(encoding="utf-8")
            source = PACKAGED_REGISTRY
        registry = cls.from_json(text)
        logger.info("Static registry loaded.", extra={"source": source, "entries": len(registry)})
        return registry

    def get(self, logical_id: str) -> Optional[RegistryEntry]:
        return self._entries.get(logical_id)

    def __contains__(self, logical_id: object) -> bool:
        return logical_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._entries))
