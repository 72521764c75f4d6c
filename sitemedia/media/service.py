from __future__ import annotations

import logging
from typing import Optional, Union

from sitemedia.media.models import (
    AssetRecord,
    ResolutionFailure,
    ResolvedMedia,
    ResourceType,
    TransformationSpec,
)
from sitemedia.media.placements import effective_spec
from sitemedia.media.render import Probe, RenderSession
from sitemedia.media.resolver import PlaceholderResolver
from sitemedia.media.tiers import build_record
from sitemedia.storage.urls import (
    CdnConfig,
    build_responsive_set,
    build_url,
    build_video_poster_url,
)

logger = logging.getLogger(__name__)


class MediaService:
    """Page-facing entry point: logical id in, render-ready URLs out."""

    def __init__(
        self,
        resolver: PlaceholderResolver,
        config: CdnConfig,
        probe: Probe,
        fallback_url: str,
    ) -> None:
        self.resolver = resolver
        self.config = config
        self.probe = probe
        self.fallback_url = fallback_url

    def media_for_record(
        self,
        logical_id: str,
        record: AssetRecord,
        options: TransformationSpec | None = None,
        *,
        area: Optional[str] = None,
        responsive: bool = False,
    ) -> ResolvedMedia:
        spec = effective_spec(record, options, area)
        url = build_url(
            record.cdn_object_id, spec, resource_type=record.resource_type, config=self.config
        )
        variants: tuple[tuple[int, str], ...] = ()
        poster = None
        if record.is_video:
            poster = build_video_poster_url(record.cdn_object_id, spec, config=self.config)
        elif responsive:
            variants = tuple(
                build_responsive_set(
                    record.cdn_object_id,
                    None,
                    spec,
                    resource_type=ResourceType.IMAGE,
                    config=self.config,
                )
            )
        return ResolvedMedia(
            logical_id=logical_id,
            record=record,
            spec=spec,
            url=url,
            srcset=", ".join(f"{variant_url} {width}w" for width, variant_url in variants),
            variants=variants,
            poster_url=poster,
        )

    async def resolve_media(
        self,
        logical_id: str,
        options: TransformationSpec | None = None,
        *,
        area: Optional[str] = None,
        responsive: bool = False,
    ) -> Union[ResolvedMedia, ResolutionFailure]:
        resolution = await self.resolver.resolve(logical_id, options)
        if isinstance(resolution, ResolutionFailure):
            return resolution
        return self.media_for_record(
            logical_id, resolution, options, area=area, responsive=responsive
        )

    def media_for_object(
        self,
        cdn_object_id: str,
        options: TransformationSpec | None = None,
        *,
        resource_type: ResourceType | None = None,
        area: Optional[str] = None,
        responsive: bool = False,
    ) -> ResolvedMedia:
        """Bypass resolution for an already-known CDN object id."""
        record = build_record(
            cdn_object_id,
            None,
            tier="direct",
            type_hint=resource_type,
            video_extensions=self.config.video_extensions,
        )
        return self.media_for_record(
            cdn_object_id, record, options, area=area, responsive=responsive
        )

    def session(self, **kwargs) -> RenderSession:
        kwargs.setdefault("probe", self.probe)
        kwargs.setdefault("fallback_url", self.fallback_url)
        return RenderSession(resolver=self.resolver, config=self.config, **kwargs)
