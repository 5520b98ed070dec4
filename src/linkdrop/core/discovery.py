"""
Object Discovery - finds the owned objects to hand out.

Pages through the signer's owned objects of one struct type, up to a limit.
"""

from typing import AsyncIterator, Optional, Tuple

import structlog

from linkdrop.chain.interface import ChainClient, ChainError, OwnedObjectsPage
from linkdrop.core.types import TargetAsset

logger = structlog.get_logger(__name__)

# Largest page the fullnode serves for owned-object queries
MAX_PAGE_SIZE = 50


class DiscoveryError(Exception):
    """Raised when the owned-object listing cannot be completed."""
    pass


class ObjectDiscovery:
    """
    Enumerates owned objects matching a type filter.

    Discovery never mutates chain state, so it can be repeated freely
    before the funding step.
    """

    def __init__(self, client: ChainClient, page_size: int = MAX_PAGE_SIZE):
        """
        Initialize discovery.

        Args:
            client: Chain client used for listing
            page_size: Maximum items requested per page
        """
        if not 1 <= page_size <= MAX_PAGE_SIZE:
            raise ValueError(f"page_size must be between 1 and {MAX_PAGE_SIZE}")
        self.client = client
        self.page_size = page_size

    async def iter_pages(
        self,
        owner: str,
        type_filter: str,
        limit: int,
    ) -> AsyncIterator[OwnedObjectsPage]:
        """
        Yield listing pages until the limit is reached or no pages remain.

        Each request asks for ``min(page_size, limit - count_so_far)`` items.
        """
        cursor: Optional[str] = None
        remaining = limit

        while remaining > 0:
            page = await self.client.list_owned_objects(
                owner,
                type_filter,
                cursor,
                min(self.page_size, remaining),
            )
            yield page

            remaining -= len(page.items)
            if not page.has_next_page or not page.items:
                break
            cursor = page.next_cursor

    async def discover(
        self,
        owner: str,
        type_filter: str,
        limit: int,
    ) -> Tuple[TargetAsset, ...]:
        """
        Collect up to ``limit`` owned objects of ``type_filter``.

        Args:
            owner: Owner address
            type_filter: Struct type tag
            limit: Maximum number of objects (0 returns immediately)

        Returns:
            Discovered assets in listing order

        Raises:
            DiscoveryError: If any page request fails
        """
        if limit < 0:
            raise ValueError(f"limit must be non-negative, got {limit}")

        assets: Tuple[TargetAsset, ...] = ()
        pages = 0

        try:
            async for page in self.iter_pages(owner, type_filter, limit):
                pages += 1
                assets += tuple(TargetAsset.from_owned_object(obj) for obj in page.items)
        except ChainError as e:
            logger.error("discovery_failed", owner=owner, pages=pages, error=str(e))
            raise DiscoveryError(f"Owned object listing failed: {e}") from e

        assets = assets[:limit]
        missing = sum(1 for asset in assets if not asset.has_data)

        logger.info(
            "discovery_complete",
            object_type=type_filter,
            count=len(assets),
            pages=pages,
            missing_data=missing,
        )
        return assets
