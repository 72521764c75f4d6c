from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional


class ResourceType(str, Enum):
    IMAGE = "image"
    VIDEO = "video"


@dataclass(frozen=True)
class TransformationSpec:
    width: Optional[int] = None
    height: Optional[int] = None
    crop: Optional[str] = None
    gravity: Optional[str] = None
    quality: str = "auto"
    format: str = "auto"
    effect: Optional[str] = None
    responsive_breakpoints: Optional[tuple[int, ...]] = None

    def __post_init__(self) -> None:
        # Accept lists from callers while keeping the transformation hashable.
        if self.responsive_breakpoints is not None and not isinstance(
            self.responsive_breakpoints, tuple
        ):
            object.__setattr__(
                self, "responsive_breakpoints", tuple(self.responsive_breakpoints)
            )
        for name in ("quality", "format"):
            value = getattr(self, name)
            object.__setattr__(self, name, "auto" if value is None or value == "" else str(value))

    def with_defaults(self, defaults: dict[str, Any] | None) -> "TransformationSpec":
        """Fill fields that are still unset from a defaults mapping."""
        if not defaults:
            return self
        changes: dict[str, Any] = {}
        for name in ("width", "height", "crop", "gravity", "effect"):
            if getattr(self, name) is None and defaults.get(name) is not None:
                changes[name] = defaults[name]
        if self.quality == "auto" and defaults.get("quality") is not None:
            changes["quality"] = str(defaults["quality"])
        if self.format == "auto" and defaults.get("format") is not None:
            changes["format"] = str(defaults["format"])
        if self.responsive_breakpoints is None and defaults.get("breakpoints"):
            changes["responsive_breakpoints"] = tuple(defaults["breakpoints"])
        return replace(self, **changes) if changes else self


@dataclass(frozen=True)
class AssetRecord:
    cdn_object_id: str
    resource_type: ResourceType = ResourceType.IMAGE
    width: Optional[int] = None
    height: Optional[int] = None
    format: Optional[str] = None
    title: Optional[str] = None
    alt_text: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)
    tier: str = ""

    @property
    def is_video(self) -> bool:
        return self.resource_type is ResourceType.VIDEO


@dataclass(frozen=True)
class ResolutionFailure:
    logical_id: str
    reason: str
    tiers_tried: tuple[str, ...] = ()


@dataclass
class FolderNode:
    name: str
    path: str
    children: list["FolderNode"] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "path": self.path,
            "children": [child.to_dict() for child in self.children],
        }


@dataclass(frozen=True)
class ResolvedMedia:
    logical_id: str
    record: AssetRecord
    spec: TransformationSpec
    url: str
    srcset: str = ""
    variants: tuple[tuple[int, str], ...] = ()
    poster_url: Optional[str] = None

    @property
    def resource_type(self) -> ResourceType:
        return self.record.resource_type

    @property
    def is_video(self) -> bool:
        return self.record.is_video
