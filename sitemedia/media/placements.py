from __future__ import annotations

from typing import Any, Mapping, Optional

from sitemedia.media.models import AssetRecord, TransformationSpec

# Default framing per site area.
PLACEMENTS: Mapping[str, Mapping[str, Any]] = {
    "hero": {"width": 1920, "height": 1080, "crop": "fill", "gravity": "auto"},
    "article": {"width": 1200, "height": 675, "crop": "fill", "gravity": "auto"},
    "service": {"width": 800, "height": 600, "crop": "fill", "gravity": "auto"},
    "team": {"width": 600, "height": 800, "crop": "fill", "gravity": "face"},
    "gallery": {"width": 800, "height": 600, "crop": "fill", "gravity": "auto"},
    "logo": {"width": 200, "crop": "scale"},
    "video-thumbnail": {"width": 1280, "height": 720, "crop": "fill", "gravity": "auto"},
}

_SIZE_KEYS = ("width", "height")
_TEXT_KEYS = ("crop", "gravity", "effect", "format")


def _positive_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def clean_defaults(raw: Any) -> dict[str, Any]:
    """Keep only well-formed transformation defaults from stored metadata.

    Stored rows and the bulk endpoint are not trusted: non-mapping values are
    dropped, sizes are coerced to positive ints and anything unusable is
    skipped rather than raised.
    """
    if not isinstance(raw, Mapping):
        return {}
    cleaned: dict[str, Any] = {}
    for key in _SIZE_KEYS:
        size = _positive_int(raw.get(key))
        if size:
            cleaned[key] = size
    for key in _TEXT_KEYS:
        value = raw.get(key)
        if isinstance(value, str) and value.strip():
            cleaned[key] = value.strip()
    quality = raw.get("quality")
    if isinstance(quality, (str, int)) and not isinstance(quality, bool) and str(quality).strip():
        cleaned["quality"] = str(quality).strip()
    breakpoints = raw.get("breakpoints")
    if isinstance(breakpoints, (list, tuple)):
        widths = [width for width in map(_positive_int, breakpoints) if width]
        if widths:
            cleaned["breakpoints"] = widths
    return cleaned


def placement_for(area: Any) -> dict[str, Any]:
    if not isinstance(area, str):
        return {}
    return dict(PLACEMENTS.get(area.strip(), {}))


def effective_spec(
    record: AssetRecord,
    spec: TransformationSpec | None = None,
    area: Optional[str] = None,
) -> TransformationSpec:
    """Caller options first, then the record's stored defaults, then the area preset."""
    spec = spec or TransformationSpec()
    stored_area = record.metadata.get("area")
    layers = (
        clean_defaults(record.metadata.get("default_options")),
        placement_for(area if isinstance(area, str) and area else stored_area),
    )
    for defaults in layers:
        if not defaults:
            continue
        if spec.width or spec.height:
            # A caller-chosen size keeps its own aspect ratio.
            defaults.pop("width", None)
            defaults.pop("height", None)
        spec = spec.with_defaults(defaults)
    return spec
