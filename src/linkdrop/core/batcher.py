"""
Main Link Batcher orchestrator.

Coordinates all components to turn owned objects into claim links.
"""

from typing import Callable, Optional, Sequence, Tuple

import structlog

from linkdrop.config import LinkdropConfig, get_config
from linkdrop.chain.interface import ChainClient
from linkdrop.chain.rpc import SuiRpcClient
from linkdrop.core.allocator import GasAllocator
from linkdrop.core.discovery import ObjectDiscovery
from linkdrop.core.factory import LinkBuilderFactory, LinkFactory
from linkdrop.core.orchestrator import SubmissionOrchestrator
from linkdrop.core.types import (
    BatchResult,
    FundingCoin,
    OutcomeCallback,
    TargetAsset,
    pair_assets_with_coins,
)
from linkdrop.tx.signer import TransactionSigner

logger = structlog.get_logger(__name__)

AssetsCallback = Callable[[Sequence[TargetAsset]], None]
CoinsCallback = Callable[[Sequence[FundingCoin]], None]


class LinkBatcher:
    """
    Main link generation orchestrator.

    Runs the pipeline strictly in order:
    - Owned object discovery
    - Funding coin allocation (one transaction)
    - Pairing of assets with coins
    - Concurrent claim submission

    Usage:
        ```python
        batcher = LinkBatcher(config)
        await batcher.initialize()
        try:
            result = await batcher.run()
        finally:
            await batcher.shutdown()
        ```
    """

    def __init__(
        self,
        config: Optional[LinkdropConfig] = None,
        client: Optional[ChainClient] = None,
        signer: Optional[TransactionSigner] = None,
        builder_factory: Optional[LinkBuilderFactory] = None,
    ):
        """
        Initialize the batcher.

        Args:
            config: Link generator configuration
            client: Custom chain client (JSON-RPC client if not provided)
            signer: Preloaded signer (loaded from config if not provided)
            builder_factory: Custom link builder factory
        """
        self.config = config or get_config()
        self.client = client or SuiRpcClient(self.config)
        self.signer = signer or TransactionSigner(self.config)

        self._builder_factory = builder_factory
        self._discovery: Optional[ObjectDiscovery] = None
        self._allocator: Optional[GasAllocator] = None
        self._orchestrator: Optional[SubmissionOrchestrator] = None
        self._initialized = False

    @property
    def signer_address(self) -> Optional[str]:
        return self.signer.address

    async def initialize(self) -> None:
        """
        Validate configuration, load the signer and connect.

        Raises:
            ConfigurationError: If a required setting is missing
        """
        if self._initialized:
            return

        self.config.validate_for_run()
        if not self.signer.is_loaded:
            self.signer.load_from_config()

        await self.client.connect()

        self._discovery = ObjectDiscovery(self.client)
        self._allocator = GasAllocator(self.client, self.signer, self.config)
        factory = LinkFactory(
            self.client,
            self.signer,
            self.config,
            builder_factory=self._builder_factory,
        )
        self._orchestrator = SubmissionOrchestrator(
            factory,
            concurrency_limit=self.config.concurrency_limit,
        )

        self._initialized = True
        logger.info("batcher_initialized", signer=self.signer.address, network=self.config.network.value)

    async def shutdown(self) -> None:
        """Release the chain connection."""
        await self.client.disconnect()
        self._initialized = False
        logger.info("batcher_shutdown")

    async def discover(self) -> Tuple[TargetAsset, ...]:
        """Discover the assets a run would hand out."""
        if not self._initialized:
            await self.initialize()

        return await self._discovery.discover(
            self.signer.address,
            self.config.object_type,
            self.config.limit,
        )

    async def run(
        self,
        on_discovered: Optional[AssetsCallback] = None,
        on_funded: Optional[CoinsCallback] = None,
        on_outcome: Optional[OutcomeCallback] = None,
    ) -> BatchResult:
        """
        Run one complete generation.

        The callbacks see each stage as soon as it completes, so a caller
        can report progress before the whole batch is done.

        Args:
            on_discovered: Called with the assets right after discovery
            on_funded: Called with the funding coins right after allocation
            on_outcome: Called with each link or failure as it is produced

        Returns:
            Links and per-asset failures

        Raises:
            DiscoveryError: If listing fails (nothing was spent)
            FundingError: If the funding transaction fails (no claims attempted)
            PairingError: If coin and asset counts differ
        """
        if not self._initialized:
            await self.initialize()

        result = BatchResult(signer_address=self.signer.address)

        assets = await self.discover()
        result.asset_count = len(assets)
        if on_discovered is not None:
            on_discovered(assets)

        coins = await self._allocator.allocate(len(assets), self.config.coin_value)
        result.coin_count = len(coins)
        if on_funded is not None:
            on_funded(coins)

        pairs = pair_assets_with_coins(assets, coins)
        result.links, result.failures = await self._orchestrator.submit_all(
            pairs,
            on_outcome=on_outcome,
        )

        logger.info(
            "run_complete",
            assets=result.asset_count,
            coins=result.coin_count,
            links=result.link_count,
            failures=len(result.failures),
        )
        return result
