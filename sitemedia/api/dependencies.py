"""Composition root: builds every collaborator once and hands it to the routes."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Request

from sitemedia.core.settings import Settings
from sitemedia.db.supabase_client import create_supabase_client
from sitemedia.media.registry import StaticRegistry
from sitemedia.media.render import HttpProbe
from sitemedia.media.resolver import PlaceholderResolver
from sitemedia.media.service import MediaService
from sitemedia.media.tiers import BulkFallbackTier, PrimaryStoreTier, StaticRegistryTier
from sitemedia.storage.folders import CloudinaryFolderClient, MediaDirectory
from sitemedia.storage.urls import CdnConfig

logger = logging.getLogger(__name__)


@dataclass
class Container:
    settings: Settings
    media: MediaService
    directory: MediaDirectory


def bulk_endpoint_url(settings: Settings) -> str:
    endpoint = settings.MEDIA_ASSETS_ENDPOINT
    if endpoint.startswith(("http://", "https://")):
        return endpoint
    if not settings.SITE_URL:
        return ""
    return f"{settings.SITE_URL.rstrip('/')}/{endpoint.lstrip('/')}"


def build_container(settings: Settings) -> Container:
    config = CdnConfig.from_settings(settings)
    extensions = settings.VIDEO_EXTENSIONS

    tiers = [
        PrimaryStoreTier(create_supabase_client(settings), video_extensions=extensions),
        BulkFallbackTier(
            bulk_endpoint_url(settings),
            timeout=settings.HTTP_TIMEOUT_SECONDS,
            video_extensions=extensions,
        ),
        StaticRegistryTier(StaticRegistry.load(settings.STATIC_REGISTRY_PATH), video_extensions=extensions),
    ]
    media = MediaService(
        resolver=PlaceholderResolver(tiers),
        config=config,
        probe=HttpProbe(timeout=settings.HTTP_TIMEOUT_SECONDS),
        fallback_url=settings.FALLBACK_IMAGE_URL,
    )

    folder_client = None
    if settings.cloudinary_admin_configured:
        folder_client = CloudinaryFolderClient.from_settings(settings)
    else:
        logger.warning("Cloudinary admin credentials missing; folder listing disabled.")
    directory = MediaDirectory(folder_client, settings.FOLDER_PRIORITY)

    logger.info(
        "Media container built.",
        extra={"tiers": [tier.name for tier in tiers], "cloud_name": config.cloud_name},
    )
    return Container(settings=settings, media=media, directory=directory)


def get_container(request: Request) -> Container:
    return request.app.state.container


def get_media_service(request: Request) -> MediaService:
    return get_container(request).media


def get_directory(request: Request) -> MediaDirectory:
    return get_container(request).directory
