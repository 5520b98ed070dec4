"""
Link Factory - produces one claim link per funded asset.
"""

from typing import Callable, Optional

import structlog

from linkdrop.chain.interface import ChainClient, ChainError, ExecutionOptions
from linkdrop.config import LinkdropConfig, get_config
from linkdrop.core.links import LinkBuilder, ZkSendLinkBuilder
from linkdrop.core.types import ClaimFailure, ClaimLink, ClaimOutcome, ClaimPair
from linkdrop.tx.signer import TransactionSigner

logger = structlog.get_logger(__name__)

LinkBuilderFactory = Callable[[], LinkBuilder]


class LinkFactory:
    """
    Builds, signs and submits the claim transaction for one asset.

    Each call uses a fresh link builder (and so a fresh credential).
    The paired funding coin is the sole gas payment; its value covers the
    gas budget plus the tip split off inside the transaction.
    """

    def __init__(
        self,
        client: ChainClient,
        signer: TransactionSigner,
        config: Optional[LinkdropConfig] = None,
        builder_factory: Optional[LinkBuilderFactory] = None,
    ):
        """
        Initialize the factory.

        Args:
            client: Chain client
            signer: Operator's signer (sender and gas owner)
            config: Link generator configuration
            builder_factory: Creates a link builder per asset (zkSend by default)
        """
        self.client = client
        self.signer = signer
        self.config = config or get_config()
        self.builder_factory = builder_factory or self._default_builder

    def _default_builder(self) -> LinkBuilder:
        return ZkSendLinkBuilder(
            sender=self.signer.address,
            client=self.client,
            network=self.config.network,
            host=self.config.link_host,
            path=self.config.link_path,
        )

    async def create_link(self, pair: ClaimPair) -> ClaimOutcome:
        """
        Attempt to produce the claim link for one asset.

        Args:
            pair: Asset and its funding coin

        Returns:
            ClaimLink on success, ClaimFailure otherwise
        """
        asset, coin = pair.asset, pair.coin
        tip = self.config.gas_tips

        if not asset.has_data:
            logger.warning("asset_skipped", index=pair.index, error=asset.error)
            return ClaimFailure(
                asset_id=None,
                reason=f"missing object data: {asset.error}",
                coin_id=coin.object_id,
            )

        builder = self.builder_factory()
        builder.add_claimable_object(asset.object_id, asset.ref)
        builder.add_claimable_mist(tip)

        tx = await builder.create_send_transaction()
        tx.set_gas_payment([coin.ref])
        tx.set_sender(self.signer.address)
        tx.set_gas_owner(self.signer.address)
        tx.set_gas_budget(self.config.gas_budget)

        try:
            result = await self.client.sign_and_execute(
                tx,
                self.signer,
                ExecutionOptions(show_effects=True),
            )
        except ChainError as e:
            # The transaction may have been broadcast; keep the credential
            logger.error("claim_outcome_unknown", asset_id=asset.object_id, error=str(e))
            return ClaimFailure(
                asset_id=asset.object_id,
                reason=str(e) or type(e).__name__,
                coin_id=coin.object_id,
                url=builder.get_link(),
            )

        if not result.succeeded:
            logger.warning(
                "claim_failed",
                asset_id=asset.object_id,
                digest=result.digest,
                status=result.status,
                error=result.error,
            )
            return ClaimFailure(
                asset_id=asset.object_id,
                reason=result.error or f"status {result.status}",
                coin_id=coin.object_id,
                digest=result.digest,
            )

        link = ClaimLink(
            asset_id=asset.object_id,
            tip_amount=tip,
            url=builder.get_link(),
            digest=result.digest,
        )
        logger.info("claim_link_created", asset_id=asset.object_id, digest=result.digest)
        return link
