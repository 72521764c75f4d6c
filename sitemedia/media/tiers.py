"""Lookup tiers consulted by the placeholder resolver, in priority order.

Every tier exposes ``name`` and a blocking ``lookup(logical_id)`` that returns
an ``AssetRecord`` or raises ``LookupMiss`` / ``TransientIOError``.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional, Protocol

import requests

from sitemedia.core.errors import LookupMiss, TransientIOError
from sitemedia.core.settings import DEFAULT_VIDEO_EXTENSIONS
from sitemedia.db.queries import get_media_asset
from sitemedia.media.models import AssetRecord
from sitemedia.media.registry import StaticRegistry
from sitemedia.storage.classify import classify

logger = logging.getLogger(__name__)


class AssetTier(Protocol):
    name: str

    def lookup(self, logical_id: str) -> AssetRecord: ...


def _int_or_none(value: Any) -> Optional[int]:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def _text(*values: Any) -> Optional[str]:
    for value in values:
        if isinstance(value, str) and value.strip():
            return value
    return None


def build_record(
    cdn_object_id: str,
    metadata: Mapping[str, Any] | None,
    *,
    tier: str,
    type_hint: Any = None,
    video_extensions: Iterable[str] = DEFAULT_VIDEO_EXTENSIONS,
    **fields: Any,
) -> AssetRecord:
    metadata = dict(metadata) if isinstance(metadata, Mapping) else {}
    hint = type_hint or metadata.get("resource_type") or metadata.get("resourceType")
    return AssetRecord(
        cdn_object_id=cdn_object_id,
        resource_type=classify(cdn_object_id, hint, video_extensions=video_extensions),
        width=_int_or_none(fields.get("width") or metadata.get("width")),
        height=_int_or_none(fields.get("height") or metadata.get("height")),
        format=_text(fields.get("format"), metadata.get("format")),
        title=_text(fields.get("title"), metadata.get("title")),
        alt_text=_text(fields.get("alt_text"), metadata.get("alt_text"), metadata.get("altText")),
        metadata=metadata,
        tier=tier,
    )


class PrimaryStoreTier:
    """Row lookup in the Supabase ``media_assets`` table."""

    name = "primary"

    def __init__(self, client, video_extensions: Iterable[str] = DEFAULT_VIDEO_EXTENSIONS) -> None:
        self.client = client
        self.video_extensions = tuple(video_extensions)

    def lookup(self, logical_id: str) -> AssetRecord:
        if self.client is None:
            raise LookupMiss(self.name, logical_id, "store not configured")
        try:
            row = get_media_asset(self.client, logical_id)
        except Exception as exc:
            raise TransientIOError(self.name, logical_id, str(exc)) from exc
        if not row or not row.get("cloudinary_id"):
            raise LookupMiss(self.name, logical_id)
        return build_record(
            row["cloudinary_id"],
            row.get("metadata"),
            tier=self.name,
            type_hint=row.get("type"),
            video_extensions=self.video_extensions,
            width=row.get("width"),
            height=row.get("height"),
            format=row.get("format"),
            title=row.get("title"),
            alt_text=row.get("alt_text"),
        )


class BulkFallbackTier:
    """Whole-site asset map served by the site's media-assets endpoint."""

    name = "bulk"

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 10.0,
        session: requests.Session | None = None,
        video_extensions: Iterable[str] = DEFAULT_VIDEO_EXTENSIONS,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()
        self.video_extensions = tuple(video_extensions)

    def fetch_all(self) -> dict[str, Any]:
        response = self.session.get(self.url, timeout=self.timeout)
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            raise ValueError(f"expected an object, got {type(payload).__name__}")
        return payload

    def lookup(self, logical_id: str) -> AssetRecord:
        if not self.url:
            raise LookupMiss(self.name, logical_id, "endpoint not configured")
        try:
            assets = self.fetch_all()
        except (requests.RequestException, ValueError) as exc:
            raise TransientIOError(self.name, logical_id, str(exc)) from exc
        entry = assets.get(logical_id)
        if not isinstance(entry, dict):
            raise LookupMiss(self.name, logical_id)
        object_id = entry.get("cdnObjectId") or entry.get("cloudinaryPublicId")
        if not object_id:
            raise LookupMiss(self.name, logical_id, "entry has no object id")
        return build_record(
            object_id,
            entry.get("metadata"),
            tier=self.name,
            type_hint=entry.get("resourceType"),
            video_extensions=self.video_extensions,
        )


class StaticRegistryTier:
    name = "static"

    def __init__(
        self, registry: StaticRegistry, video_extensions: Iterable[str] = DEFAULT_VIDEO_EXTENSIONS
    ) -> None:
        self.registry = registry
        self.video_extensions = tuple(video_extensions)

    def lookup(self, logical_id: str) -> AssetRecord:
        entry = self.registry.get(logical_id)
        if entry is None:
            raise LookupMiss(self.name, logical_id)
        metadata: dict[str, Any] = {"default_options": dict(entry.default_options)}
        if entry.area:
            metadata["area"] = entry.area
        return build_record(
            entry.cdn_object_id,
            metadata,
            tier=self.name,
            type_hint=entry.resource_type,
            video_extensions=self.video_extensions,
            width=entry.width,
            height=entry.height,
            title=entry.title,
            alt_text=entry.alt_text,
        )
