"""
Shared pytest fixtures and fakes for sitemedia tests.
"""

import pytest
import requests

from sitemedia.core.errors import LookupMiss, RenderLoadFailure
from sitemedia.media.models import AssetRecord, ResourceType
from sitemedia.media.registry import StaticRegistry
from sitemedia.media.resolver import PlaceholderResolver
from sitemedia.media.service import MediaService
from sitemedia.storage.urls import CdnConfig


BASE = "https://res.cloudinary.com/practice"


# ============================================================================
# Fakes
# ============================================================================

class FakeTier:
    """Tier double that returns a fixed record or raises a fixed error."""

    def __init__(self, name, records=None, error=None):
        self.name = name
        self.records = records or {}
        self.error = error
        self.calls = []

    def lookup(self, logical_id):
        self.calls.append(logical_id)
        if self.error is not None:
            raise self.error
        record = self.records.get(logical_id)
        if record is None:
            raise LookupMiss(self.name, logical_id)
        return record


class FakeProbe:
    """Async probe double; fails the first ``failures`` calls (all when None)."""

    def __init__(self, failures=None):
        self.failures = failures
        self.urls = []

    async def __call__(self, url):
        self.urls.append(url)
        if self.failures is None or len(self.urls) <= self.failures:
            raise RenderLoadFailure(url, "HTTP 404")


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    """requests.Session double keyed by URL (and ``next_cursor`` when paging)."""

    def __init__(self, routes=None, error=None):
        self.routes = routes or {}
        self.error = error
        self.auth = None
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, dict(params or {})))
        if self.error is not None:
            raise self.error
        cursor = (params or {}).get("next_cursor")
        key = (url, cursor) if cursor else url
        if key not in self.routes:
            return FakeResponse(404, {"error": "not found"})
        value = self.routes[key]
        if isinstance(value, FakeResponse):
            return value
        return FakeResponse(200, value)

    def head(self, url, allow_redirects=True, timeout=None):
        self.calls.append((url, {}))
        if self.error is not None:
            raise self.error
        return self.routes.get(url, FakeResponse(404))


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def cdn_config():
    return CdnConfig(cloud_name="practice")


@pytest.fixture
def registry():
    return StaticRegistry(
        {
            "hero-home": {
                "cdnObjectId": "hero/home-hero",
                "area": "hero",
                "description": "Main Homepage Hero Image",
                "dimensions": {"width": 1920, "height": 1080},
                "defaultOptions": {"width": 1920, "quality": 85},
            },
            "hero-video": {
                "cdnObjectId": "videos/backgrounds/hero-loop.mp4",
                "area": "hero",
                "resourceType": "video",
                "dimensions": {"width": 1920, "height": 1080},
                "defaultOptions": {"width": 1920},
            },
        }
    )


@pytest.fixture
def bulk_record():
    return AssetRecord(
        cdn_object_id="hero/reviews-hero",
        resource_type=ResourceType.IMAGE,
        metadata={"source": "bulk"},
        tier="bulk",
    )


@pytest.fixture
def make_service(cdn_config):
    def _make(tiers, probe=None):
        return MediaService(
            resolver=PlaceholderResolver(tiers),
            config=cdn_config,
            probe=probe or FakeProbe(failures=0),
            fallback_url="/images/global/placeholder-image.jpg",
        )

    return _make
