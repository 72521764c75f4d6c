from __future__ import annotations

import asyncio
import logging
from typing import Sequence, Union

from sitemedia.core.errors import LookupMiss, TransientIOError
from sitemedia.media.models import AssetRecord, ResolutionFailure, TransformationSpec
from sitemedia.media.tiers import AssetTier

logger = logging.getLogger(__name__)

Resolution = Union[AssetRecord, ResolutionFailure]


class PlaceholderResolver:
    """Map a logical asset id to an ``AssetRecord`` through ordered tiers.

    Tiers run one at a time in the order given; the first hit wins and later
    tiers are never consulted. A miss, an I/O failure or an unexpected error
    inside a tier all mean "try the next one". When every tier misses the
    caller gets a ``ResolutionFailure`` naming the id.

    The resolver keeps no state between calls. Memoizing a result for the
    lifetime of a view is the caller's job (see ``RenderSession``).
    """

    def __init__(self, tiers: Sequence[AssetTier]) -> None:
        self.tiers = tuple(tiers)

    async def resolve(
        self, logical_id: str, options: TransformationSpec | None = None
    ) -> Resolution:
        # options only shape URLs later on; lookups ignore them.
        if not logical_id or not logical_id.strip():
            logger.warning("Rejected blank logical asset id.")
            return ResolutionFailure(logical_id=logical_id or "", reason="invalid identifier")

        tried: list[str] = []
        for tier in self.tiers:
            tried.append(tier.name)
            try:
                record = await asyncio.to_thread(tier.lookup, logical_id)
            except LookupMiss as exc:
                logger.info(
                    "Asset lookup miss.",
                    extra={"logical_id": logical_id, "tier": tier.name, "detail": exc.detail},
                )
                continue
            except TransientIOError as exc:
                logger.warning(
                    "Asset lookup failed; falling through to next tier.",
                    extra={"logical_id": logical_id, "tier": tier.name, "detail": exc.detail},
                )
                continue
            except Exception:
                logger.exception(
                    "Unexpected error in asset tier.",
                    extra={"logical_id": logical_id, "tier": tier.name},
                )
                continue

            logger.info(
                "Asset resolved.",
                extra={
                    "logical_id": logical_id,
                    "tier": tier.name,
                    "cdn_object_id": record.cdn_object_id,
                    "resource_type": record.resource_type,
                },
            )
            return record

        logger.warning(
            "Asset resolution exhausted all tiers.",
            extra={"logical_id": logical_id, "tiers_tried": tried},
        )
        return ResolutionFailure(
            logical_id=logical_id, reason="not found in any tier", tiers_tried=tuple(tried)
        )

    async def resolve_many(self, logical_ids: Sequence[str]) -> dict[str, Resolution]:
        """Resolve independent ids concurrently."""
        unique = list(dict.fromkeys(logical_ids))
        results = await asyncio.gather(*(self.resolve(logical_id) for logical_id in unique))
        return dict(zip(unique, results))
