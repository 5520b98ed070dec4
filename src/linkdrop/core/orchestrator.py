"""
Submission Orchestrator - runs the link factory across all pairs.

Every pair runs as its own task, bounded by a semaphore; the batch always
waits for every task and records one outcome per asset.
"""

import asyncio
from typing import List, Optional, Sequence, Tuple

import structlog

from linkdrop.core.factory import LinkFactory
from linkdrop.core.types import (
    ClaimFailure,
    ClaimLink,
    ClaimOutcome,
    ClaimPair,
    OutcomeCallback,
)

logger = structlog.get_logger(__name__)


class SubmissionOrchestrator:
    """Fans out claim submissions and aggregates their outcomes."""

    def __init__(self, factory: LinkFactory, concurrency_limit: int = 0):
        """
        Args:
            factory: Link factory invoked once per pair
            concurrency_limit: Maximum submissions in flight (0 = unbounded)
        """
        if concurrency_limit < 0:
            raise ValueError(f"concurrency_limit must be non-negative, got {concurrency_limit}")
        self.factory = factory
        self.concurrency_limit = concurrency_limit

    async def _create(
        self,
        pair: ClaimPair,
        semaphore: Optional[asyncio.Semaphore],
    ) -> ClaimOutcome:
        if semaphore is None:
            return await self.factory.create_link(pair)
        async with semaphore:
            return await self.factory.create_link(pair)

    async def _run_one(
        self,
        pair: ClaimPair,
        semaphore: Optional[asyncio.Semaphore],
        on_outcome: Optional[OutcomeCallback],
    ) -> ClaimOutcome:
        try:
            outcome = await self._create(pair, semaphore)
        except Exception as e:
            logger.error(
                "claim_task_error",
                asset_id=pair.asset.object_id,
                error=repr(e),
            )
            outcome = ClaimFailure(
                asset_id=pair.asset.object_id,
                reason=str(e) or type(e).__name__,
                coin_id=pair.coin.object_id,
            )

        if on_outcome is not None:
            on_outcome(outcome)
        return outcome

    async def submit_all(
        self,
        pairs: Sequence[ClaimPair],
        on_outcome: Optional[OutcomeCallback] = None,
    ) -> Tuple[List[ClaimLink], List[ClaimFailure]]:
        """
        Create a link for every pair.

        A task raising an exception is recorded as a failure for its asset;
        it never cancels or discards the other tasks.

        Args:
            pairs: Pairing table rows
            on_outcome: Called with each outcome as soon as its task finishes

        Returns:
            (links, failures), in pair order
        """
        if not pairs:
            return [], []

        semaphore = asyncio.Semaphore(self.concurrency_limit) if self.concurrency_limit else None

        logger.info(
            "submission_started",
            count=len(pairs),
            concurrency_limit=self.concurrency_limit or "unbounded",
        )

        outcomes = await asyncio.gather(
            *(self._run_one(pair, semaphore, on_outcome) for pair in pairs)
        )

        links = [o for o in outcomes if isinstance(o, ClaimLink)]
        failures = [o for o in outcomes if isinstance(o, ClaimFailure)]

        logger.info("submission_complete", links=len(links), failures=len(failures))
        return links, failures
