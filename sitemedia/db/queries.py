from __future__ import annotations

from typing import Any, Optional

MEDIA_ASSETS_TABLE = "media_assets"
MEDIA_ASSET_COLUMNS = "placeholder_id, cloudinary_id, metadata, width, height, format, title, alt_text, type"


def get_media_asset(client, placeholder_id: str) -> Optional[dict[str, Any]]:
    """Return the ``media_assets`` row for a placeholder id, if any."""
    response = (
        client.table(MEDIA_ASSETS_TABLE)
        .select(MEDIA_ASSET_COLUMNS)
        .eq("placeholder_id", placeholder_id)
        .limit(1)
        .execute()
    )
    rows = response.data or []
    return rows[0] if rows else None
