"""Rendering adapter: turn an asset into a displayable element, with retries.

One ``RenderSession`` belongs to one view instance. ``load()`` walks a
bounded state machine::

    LOADING -> LOADED
            -> RETRY_1 -> LOADED
                       -> RETRY_2 -> LOADED
                                  -> FAILED (static fallback image)

Each attempt builds its URL with a different ``UrlStrategy`` so a CDN that
rejects one URL shape is not asked for an equivalent one again. Changing the
source or closing the session makes any in-flight result stale; stale results
are dropped instead of applied.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Union

import requests

from sitemedia.core.errors import RenderLoadFailure
from sitemedia.media.models import (
    AssetRecord,
    ResolutionFailure,
    ResourceType,
    TransformationSpec,
)
from sitemedia.media.placements import effective_spec
from sitemedia.media.tiers import build_record
from sitemedia.storage.urls import (
    PLACEHOLDER_DATA_URI,
    CdnConfig,
    UrlStrategy,
    build_srcset,
    build_url,
    build_video_poster_url,
)

logger = logging.getLogger(__name__)

MAX_RETRIES = 2
ATTEMPT_STRATEGIES = (UrlStrategy.STANDARD, UrlStrategy.SIMPLIFIED, UrlStrategy.BARE)

Probe = Callable[[str], Awaitable[None]]


class RenderState(str, Enum):
    LOADING = "loading"
    RETRY_1 = "retry_1"
    RETRY_2 = "retry_2"
    LOADED = "loaded"
    FAILED = "failed"


RETRY_STATES = (RenderState.RETRY_1, RenderState.RETRY_2)


@dataclass(frozen=True)
class RenderedElement:
    tag: str
    src: str
    srcset: str = ""
    sizes: str = ""
    alt: str = ""
    width: Optional[int] = None
    height: Optional[int] = None
    poster: Optional[str] = None

    def attributes(self) -> dict[str, Any]:
        attrs: dict[str, Any] = {"src": self.src}
        if self.tag == "img":
            attrs["alt"] = self.alt
        for key in ("srcset", "sizes", "width", "height", "poster"):
            value = getattr(self, key)
            if value:
                attrs[key] = value
        return attrs


@dataclass(frozen=True)
class RenderFailure:
    logical_id: Optional[str]
    cdn_object_id: Optional[str]
    reason: str
    attempts: int


class HttpProbe:
    """Checks that a URL loads by issuing a HEAD request."""

    def __init__(self, timeout: float = 10.0, session: requests.Session | None = None) -> None:
        self.timeout = timeout
        self.session = session or requests.Session()

    async def __call__(self, url: str) -> None:
        if url.startswith("data:"):
            return
        await asyncio.to_thread(self._check, url)

    def _check(self, url: str) -> None:
        try:
            response = self.session.head(url, allow_redirects=True, timeout=self.timeout)
        except requests.RequestException as exc:
            raise RenderLoadFailure(url, str(exc)) from exc
        if response.status_code >= 400:
            raise RenderLoadFailure(url, f"HTTP {response.status_code}")


class RenderSession:
    def __init__(
        self,
        *,
        probe: Probe,
        resolver=None,
        config: CdnConfig | None = None,
        fallback_url: str = "/images/global/placeholder-image.jpg",
        logical_id: Optional[str] = None,
        cdn_object_id: Optional[str] = None,
        spec: TransformationSpec | None = None,
        area: Optional[str] = None,
        resource_type: ResourceType | None = None,
        responsive: bool = False,
        sizes: str = "100vw",
        alt: str = "",
        on_load: Callable[[RenderedElement], Any] | None = None,
        on_error: Callable[[RenderFailure], Any] | None = None,
        on_state_change: Callable[[RenderState], Any] | None = None,
    ) -> None:
        self.probe = probe
        self.resolver = resolver
        self.config = config or CdnConfig()
        self.fallback_url = fallback_url
        self.responsive = responsive
        self.sizes = sizes
        self.alt = alt
        self.on_load = on_load
        self.on_error = on_error
        self.on_state_change = on_state_change

        self._generation = 0
        self._closed = False
        self._reset(logical_id, cdn_object_id, spec, area, resource_type)

    def _reset(self, logical_id, cdn_object_id, spec, area, resource_type) -> None:
        self.logical_id = logical_id
        self.cdn_object_id = cdn_object_id
        self.spec = spec
        self.area = area
        self.resource_type = resource_type
        self.state = RenderState.LOADING
        self.history: list[RenderState] = [RenderState.LOADING]
        self.attempts = 0
        self.attempted_urls: list[str] = []
        self.failure: Optional[RenderFailure] = None
        self.record: Optional[AssetRecord] = None
        self._resolution: Union[AssetRecord, ResolutionFailure, None] = None
        self.element = self._placeholder_element()

    @property
    def is_active(self) -> bool:
        return not self._closed

    def set_source(
        self,
        *,
        logical_id: Optional[str] = None,
        cdn_object_id: Optional[str] = None,
        spec: TransformationSpec | None = None,
        area: Optional[str] = None,
        resource_type: ResourceType | None = None,
    ) -> None:
        """Point the session at a new asset; in-flight work becomes stale."""
        self._generation += 1
        self._reset(logical_id, cdn_object_id, spec, area, resource_type)

    def close(self) -> None:
        self._generation += 1
        self._closed = True

    def _is_current(self, generation: int) -> bool:
        return not self._closed and generation == self._generation

    def _placeholder_element(self) -> RenderedElement:
        width = self.spec.width if self.spec else None
        height = self.spec.height if self.spec else None
        return RenderedElement(tag="img", src=PLACEHOLDER_DATA_URI, alt=self.alt, width=width, height=height)

    def _fallback_element(self, spec: TransformationSpec | None) -> RenderedElement:
        spec = spec or self.spec
        return RenderedElement(
            tag="img",
            src=self.fallback_url or PLACEHOLDER_DATA_URI,
            alt=self.alt,
            width=spec.width if spec else None,
            height=spec.height if spec else None,
        )

    def _transition(self, state: RenderState) -> None:
        self.state = state
        self.history.append(state)
        self._notify(self.on_state_change, state)

    def _notify(self, callback, payload) -> None:
        if callback is None:
            return
        try:
            callback(payload)
        except Exception:
            logger.exception("Render callback raised.", extra={"logical_id": self.logical_id})

    async def _resolve(self, generation: int) -> Union[AssetRecord, ResolutionFailure]:
        if self._resolution is not None:
            return self._resolution
        if self.cdn_object_id:
            self._resolution = build_record(
                self.cdn_object_id,
                None,
                tier="direct",
                type_hint=self.resource_type,
                video_extensions=self.config.video_extensions,
            )
        elif self.logical_id and self.resolver is not None:
            resolution = await self.resolver.resolve(self.logical_id, self.spec)
            # A source change while resolving leaves the memo to the new source.
            if not self._is_current(generation):
                return resolution
            self._resolution = resolution
        else:
            self._resolution = ResolutionFailure(
                logical_id=self.logical_id or "", reason="no media source provided"
            )
        return self._resolution

    def _element_for(
        self, record: AssetRecord, spec: TransformationSpec, strategy: UrlStrategy
    ) -> RenderedElement:
        width = spec.width or record.width
        height = spec.height or (record.height if not spec.width else None)
        alt = self.alt or record.alt_text or record.title or ""
        if record.is_video:
            return RenderedElement(
                tag="video",
                src=build_url(
                    record.cdn_object_id,
                    spec,
                    resource_type=ResourceType.VIDEO,
                    strategy=strategy,
                    config=self.config,
                ),
                alt=alt,
                width=width,
                height=height,
                poster=build_video_poster_url(record.cdn_object_id, spec, config=self.config),
            )
        srcset = ""
        if self.responsive:
            srcset = build_srcset(
                record.cdn_object_id,
                None,
                spec,
                resource_type=ResourceType.IMAGE,
                strategy=strategy,
                config=self.config,
            )
        return RenderedElement(
            tag="img",
            src=build_url(
                record.cdn_object_id,
                spec,
                resource_type=ResourceType.IMAGE,
                strategy=strategy,
                config=self.config,
            ),
            srcset=srcset,
            sizes=self.sizes if srcset else "",
            alt=alt,
            width=width,
            height=height,
        )

    def _fail(self, reason: str, spec: TransformationSpec | None) -> RenderedElement:
        self.element = self._fallback_element(spec)
        self.failure = RenderFailure(
            logical_id=self.logical_id,
            cdn_object_id=self.record.cdn_object_id if self.record else self.cdn_object_id,
            reason=reason,
            attempts=self.attempts,
        )
        self._transition(RenderState.FAILED)
        logger.error(
            "Media render failed; showing fallback image.",
            extra={"logical_id": self.logical_id, "reason": reason, "attempts": self.attempts},
        )
        self._notify(self.on_error, self.failure)
        return self.element

    async def load(self) -> RenderedElement:
        """Resolve and load the current source, returning the element to display."""
        generation = self._generation
        if self.state in (RenderState.LOADED, RenderState.FAILED):
            return self.element

        resolution = await self._resolve(generation)
        if not self._is_current(generation):
            logger.debug("Discarded stale resolution.", extra={"logical_id": self.logical_id})
            return self.element
        if isinstance(resolution, ResolutionFailure):
            return self._fail(resolution.reason, self.spec)

        self.record = resolution
        spec = effective_spec(resolution, self.spec, self.area)
        last_error = "no attempt made"

        for index, strategy in enumerate(ATTEMPT_STRATEGIES[: MAX_RETRIES + 1]):
            if index:
                self._transition(RETRY_STATES[index - 1])
            candidate = self._element_for(resolution, spec, strategy)
            self.attempts += 1
            self.attempted_urls.append(candidate.src)
            try:
                await self.probe(candidate.src)
            except RenderLoadFailure as exc:
                last_error = str(exc)
                logger.warning(
                    "Media failed to load.",
                    extra={
                        "logical_id": self.logical_id,
                        "attempt": self.attempts,
                        "strategy": strategy,
                        "url": candidate.src,
                    },
                )
                if not self._is_current(generation):
                    return self.element
                continue
            except Exception as exc:
                last_error = f"probe error: {exc}"
                logger.exception("Media probe raised.", extra={"logical_id": self.logical_id})
                if not self._is_current(generation):
                    return self.element
                continue

            if not self._is_current(generation):
                logger.debug("Discarded stale load result.", extra={"logical_id": self.logical_id})
                return self.element
            self.element = candidate
            self._transition(RenderState.LOADED)
            self._notify(self.on_load, candidate)
            return candidate

        return self._fail(last_error, spec)
