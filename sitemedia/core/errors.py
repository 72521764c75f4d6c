"""Error taxonomy for media resolution and rendering.

Lookup errors never leave the resolver: a tier raises them and the resolver
logs them and moves on. ``RenderLoadFailure`` drives the render retry state
machine. Exhausted retries are a render state, not an exception.
"""

from __future__ import annotations


class MediaError(Exception):
    """Base class for every error raised by sitemedia."""


class AssetLookupError(MediaError):
    def __init__(self, tier: str, logical_id: str, detail: str = "") -> None:
        self.tier = tier
        self.logical_id = logical_id
        self.detail = detail
        message = f"{tier}: {logical_id!r}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class LookupMiss(AssetLookupError):
    """The tier answered and holds nothing for the id."""


class TransientIOError(AssetLookupError):
    """The tier could not answer (network, storage, malformed payload)."""


class InvalidIdentifier(MediaError, ValueError):
    """Blank or malformed logical id / CDN object id."""


class RenderLoadFailure(MediaError):
    def __init__(self, url: str, detail: str = "") -> None:
        self.url = url
        self.detail = detail
        super().__init__(f"failed to load {url}" + (f": {detail}" if detail else ""))


class FolderListingError(MediaError):
    """The CDN admin API could not list folders."""
