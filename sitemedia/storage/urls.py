"""CDN delivery URL construction.

Everything here is pure: identical inputs always produce byte-identical URLs,
nothing touches the network, and bad input degrades to
``PLACEHOLDER_DATA_URI`` instead of raising.

URL shape::

    https://<host>/<cloud_name>/<resource_type>/upload/<segment>/[v<version>/]<object id>
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, Optional, Sequence
from urllib.parse import quote, unquote

from sitemedia.core.errors import InvalidIdentifier
from sitemedia.core.settings import DEFAULT_VIDEO_EXTENSIONS, Settings
from sitemedia.media.models import ResourceType, TransformationSpec

PLACEHOLDER_DATA_URI = (
    "data:image/svg+xml;base64,"
    "PHN2ZyB3aWR0aD0iMjAwIiBoZWlnaHQ9IjE1MCIgeG1sbnM9Imh0dHA6Ly93d3cudzMub3JnLzIwMDAvc3ZnIj48"
    "cmVjdCB3aWR0aD0iMjAwIiBoZWlnaHQ9IjE1MCIgZmlsbD0iI2YwZjBmMCIvPjx0ZXh0IHg9IjUwJSIgeT0iNTAl"
    "IiBmb250LWZhbWlseT0iQXJpYWwiIGZvbnQtc2l6ZT0iMTQiIHRleHQtYW5jaG9yPSJtaWRkbGUiIGZpbGw9IiM4"
    "ODgiPk5vIEltYWdlPC90ZXh0Pjwvc3ZnPg=="
)

DEFAULT_BREAKPOINTS = (320, 640, 960, 1280, 1920)

# Crop modes that honour a gravity parameter; everything else drops g_.
GRAVITY_CROPS = frozenset({"fill", "lfill", "fill_pad", "crop", "thumb", "auto", "auto_pad"})

_TRANSFORMATION_PREFIXES = frozenset(
    {
        "a", "ac", "af", "ar", "b", "bo", "br", "c", "co", "cs", "d", "dl", "dn", "dpr",
        "du", "e", "eo", "f", "fl", "fn", "fps", "g", "h", "ki", "l", "o", "p", "pg",
        "q", "r", "so", "sp", "t", "u", "vc", "vs", "w", "x", "y", "z",
    }
)
_VERSION_RE = re.compile(r"^v\d+$")


class UrlStrategy(str, Enum):
    STANDARD = "standard"
    SIMPLIFIED = "simplified"
    BARE = "bare"


@dataclass(frozen=True)
class CdnConfig:
    cloud_name: str = "demo"
    delivery_host: str = "res.cloudinary.com"
    default_version: Optional[str] = None
    video_extensions: tuple[str, ...] = DEFAULT_VIDEO_EXTENSIONS

    @classmethod
    def from_settings(cls, settings: Settings) -> "CdnConfig":
        return cls(
            cloud_name=settings.CLOUDINARY_CLOUD_NAME,
            delivery_host=settings.CLOUDINARY_DELIVERY_HOST,
            default_version=settings.CLOUDINARY_DEFAULT_VERSION,
            video_extensions=settings.VIDEO_EXTENSIONS,
        )

    @property
    def base_url(self) -> str:
        return f"https://{self.delivery_host}/{self.cloud_name}"


def is_placeholder(url: str) -> bool:
    return url == PLACEHOLDER_DATA_URI


def _is_transformation(segment: str) -> bool:
    parts = segment.split(",")
    for part in parts:
        prefix, sep, _ = part.partition("_")
        if not sep or prefix not in _TRANSFORMATION_PREFIXES:
            return False
    return True


def _require_object_id(value: str) -> str:
    cleaned = (value or "").strip().strip("/")
    if not cleaned:
        raise InvalidIdentifier("empty CDN object id")
    if any(ch.isspace() for ch in cleaned):
        raise InvalidIdentifier(f"CDN object id contains whitespace: {value!r}")
    return cleaned


def is_delivery_url(value: str) -> bool:
    return value.startswith(("http://", "https://")) and "/upload/" in value


def normalize_public_id(value: str) -> str:
    """Return the bare object id, stripping a delivery URL down to its id.

    ``https://res.cloudinary.com/demo/image/upload/f_auto,q_auto/v12/hero/a.jpg``
    becomes ``hero/a.jpg``. Plain ids are returned stripped of slashes.
    """
    if not value:
        return ""
    if not is_delivery_url(value):
        return value.strip().strip("/")
    tail = value.split("/upload/")[-1].split("?")[0]
    segments = [segment for segment in tail.split("/") if segment]
    while segments and _is_transformation(segments[0]):
        segments.pop(0)
    if segments and _VERSION_RE.match(segments[0]):
        segments.pop(0)
    return unquote("/".join(segments))


def resolve_crop(spec: TransformationSpec) -> str:
    if spec.crop:
        return spec.crop
    if spec.width and spec.height:
        return "fill"
    return "scale"


def resolve_gravity(spec: TransformationSpec, crop: str) -> Optional[str]:
    if crop not in GRAVITY_CROPS:
        return None
    return spec.gravity or "auto"


def transformation_segment(
    spec: TransformationSpec, strategy: UrlStrategy = UrlStrategy.STANDARD
) -> str:
    if strategy is UrlStrategy.BARE:
        return ""
    parts = [f"f_{spec.format or 'auto'}", f"q_{spec.quality or 'auto'}"]
    if spec.width:
        parts.append(f"w_{int(spec.width)}")
    if strategy is UrlStrategy.SIMPLIFIED:
        return ",".join(parts)
    if spec.height:
        parts.append(f"h_{int(spec.height)}")
    crop = resolve_crop(spec)
    parts.append(f"c_{crop}")
    gravity = resolve_gravity(spec, crop)
    if gravity:
        parts.append(f"g_{gravity}")
    if spec.effect:
        parts.append(f"e_{spec.effect}")
    return ",".join(parts)


def build_url(
    cdn_object_id: str,
    spec: TransformationSpec | None = None,
    *,
    resource_type: ResourceType | None = None,
    strategy: UrlStrategy = UrlStrategy.STANDARD,
    config: CdnConfig | None = None,
) -> str:
    """Build a delivery URL for ``cdn_object_id``.

    Returns ``PLACEHOLDER_DATA_URI`` for a blank or malformed id. Absolute
    URLs that are not CDN delivery URLs are returned unchanged. The object id
    is percent-encoded; slashes stay as path separators.
    """
    if cdn_object_id and cdn_object_id.startswith(("http://", "https://")):
        if not is_delivery_url(cdn_object_id):
            return cdn_object_id
        cdn_object_id = normalize_public_id(cdn_object_id)
    try:
        object_id = _require_object_id(cdn_object_id)
    except InvalidIdentifier:
        return PLACEHOLDER_DATA_URI

    config = config or CdnConfig()
    spec = spec or TransformationSpec()
    kind = (resource_type or ResourceType.IMAGE).value

    path = [config.base_url, kind, "upload"]
    segment = transformation_segment(spec, strategy)
    if segment:
        path.append(segment)
    first = object_id.split("/", 1)[0]
    if (
        strategy is UrlStrategy.STANDARD
        and config.default_version
        and not _VERSION_RE.match(first)
    ):
        path.append(f"v{config.default_version.lstrip('v')}")
    path.append(quote(object_id, safe="/"))
    return "/".join(path)


def filter_responsive_widths(
    widths: Iterable[int], base_width: Optional[int] = None
) -> list[int]:
    """Deduplicate and sort widths, dropping anything over twice the base."""
    unique = sorted({int(width) for width in widths if width and int(width) > 0})
    if not base_width:
        return unique
    limit = 2 * int(base_width)
    return [width for width in unique if width <= limit]


def _variant_spec(spec: TransformationSpec, width: int) -> TransformationSpec:
    height = None
    if spec.width and spec.height:
        height = max(1, round(spec.height * width / spec.width))
    return replace(spec, width=width, height=height, responsive_breakpoints=None)


def build_responsive_set(
    cdn_object_id: str,
    widths: Sequence[int] | None = None,
    spec: TransformationSpec | None = None,
    *,
    resource_type: ResourceType | None = None,
    strategy: UrlStrategy = UrlStrategy.STANDARD,
    config: CdnConfig | None = None,
) -> list[tuple[int, str]]:
    """Return ``(width, url)`` pairs, ascending by width.

    Heights scale with the base aspect ratio when the transformation fixes both
    dimensions. A blank id yields no variants.
    """
    spec = spec or TransformationSpec()
    if widths is None:
        widths = spec.responsive_breakpoints or DEFAULT_BREAKPOINTS
    url = build_url(
        cdn_object_id, spec, resource_type=resource_type, strategy=strategy, config=config
    )
    if is_placeholder(url):
        return []
    return [
        (
            width,
            build_url(
                cdn_object_id,
                _variant_spec(spec, width),
                resource_type=resource_type,
                strategy=strategy,
                config=config,
            ),
        )
        for width in filter_responsive_widths(widths, spec.width)
    ]


def build_srcset(
    cdn_object_id: str,
    widths: Sequence[int] | None = None,
    spec: TransformationSpec | None = None,
    **kwargs,
) -> str:
    variants = build_responsive_set(cdn_object_id, widths, spec, **kwargs)
    return ", ".join(f"{url} {width}w" for width, url in variants)


def _strip_video_extension(object_id: str, extensions: Iterable[str]) -> str:
    lowered = object_id.lower()
    for ext in extensions:
        if lowered.endswith(ext):
            return object_id[: -len(ext)]
    return object_id


def build_video_poster_url(
    cdn_object_id: str,
    spec: TransformationSpec | None = None,
    *,
    config: CdnConfig | None = None,
) -> str:
    """Still frame of a video, served as JPEG from the video resource."""
    config = config or CdnConfig()
    object_id = normalize_public_id(cdn_object_id)
    if not object_id:
        return PLACEHOLDER_DATA_URI
    base = _strip_video_extension(object_id, config.video_extensions)
    poster_spec = replace(spec or TransformationSpec(), format="jpg")
    return build_url(
        f"{base}.jpg", poster_spec, resource_type=ResourceType.VIDEO, config=config
    )


def _media_query(width: int) -> str:
    if width <= 480:
        return "(max-width: 480px)"
    if width <= 720:
        return "(max-width: 720px)"
    return "(min-width: 721px)"


def build_video_sources(
    cdn_object_id: str,
    formats: Sequence[str] = ("mp4", "webm"),
    widths: Sequence[int] = (480, 720, 1080),
    spec: TransformationSpec | None = None,
    *,
    config: CdnConfig | None = None,
) -> list[dict[str, str]]:
    base_spec = spec or TransformationSpec()
    sources = []
    for fmt in formats:
        for width in filter_responsive_widths(widths):
            url = build_url(
                cdn_object_id,
                replace(base_spec, format=fmt, width=width, height=None),
                resource_type=ResourceType.VIDEO,
                config=config,
            )
            if is_placeholder(url):
                return []
            sources.append({"src": url, "type": f"video/{fmt}", "media": _media_query(width)})
    return sources
