from __future__ import annotations

from typing import Iterable, Union

from sitemedia.core.settings import DEFAULT_VIDEO_EXTENSIONS
from sitemedia.media.models import ResourceType

ResourceTypeHint = Union[ResourceType, str, None]

VIDEO_PATH_MARKERS = ("video", "videos")
VIDEO_QUERY_MARKER = "resource_type=video"


def _coerce_hint(hint: ResourceTypeHint) -> ResourceType | None:
    if isinstance(hint, ResourceType):
        return hint
    if isinstance(hint, str):
        try:
            return ResourceType(hint.strip().lower())
        except ValueError:
            # "auto", "raw" and friends carry no decision.
            return None
    return None


def classify(
    cdn_object_id: str,
    hint: ResourceTypeHint = None,
    *,
    video_extensions: Iterable[str] = DEFAULT_VIDEO_EXTENSIONS,
    video_markers: Iterable[str] = VIDEO_PATH_MARKERS,
) -> ResourceType:
    """Decide whether an object id names an image or a video.

    Stored hint first, then the file extension, then a ``video``/``videos``
    directory or ``resource_type=video`` marker. Anything else is an image.
    """
    explicit = _coerce_hint(hint)
    if explicit is not None:
        return explicit
    if not cdn_object_id:
        return ResourceType.IMAGE

    lowered = cdn_object_id.strip().lower()
    path, _, query = lowered.partition("?")
    if any(path.endswith(ext.lower()) for ext in video_extensions):
        return ResourceType.VIDEO

    directories = [segment for segment in path.split("/")[:-1] if segment]
    markers = {marker.lower() for marker in video_markers}
    if any(segment in markers for segment in directories):
        return ResourceType.VIDEO
    if VIDEO_QUERY_MARKER in query or VIDEO_QUERY_MARKER in path:
        return ResourceType.VIDEO
    return ResourceType.IMAGE


def is_video(cdn_object_id: str, hint: ResourceTypeHint = None, **kwargs) -> bool:
    return classify(cdn_object_id, hint, **kwargs) is ResourceType.VIDEO
