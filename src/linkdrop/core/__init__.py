"""
Core link generation components.

This module contains the data model, the pipeline stages, and the
main batcher orchestration.
"""

from linkdrop.core.types import (
    BatchResult,
    ClaimFailure,
    ClaimLink,
    ClaimPair,
    FundingCoin,
    PairingError,
    TargetAsset,
    pair_assets_with_coins,
)
from linkdrop.core.discovery import DiscoveryError, ObjectDiscovery
from linkdrop.core.allocator import FundingError, GasAllocator
from linkdrop.core.links import LinkBuilder, LinkBuilderError, ZkSendLinkBuilder
from linkdrop.core.factory import LinkFactory
from linkdrop.core.orchestrator import SubmissionOrchestrator
from linkdrop.core.batcher import LinkBatcher

__all__ = [
    "BatchResult",
    "ClaimFailure",
    "ClaimLink",
    "ClaimPair",
    "FundingCoin",
    "PairingError",
    "TargetAsset",
    "pair_assets_with_coins",
    "DiscoveryError",
    "ObjectDiscovery",
    "FundingError",
    "GasAllocator",
    "LinkBuilder",
    "LinkBuilderError",
    "ZkSendLinkBuilder",
    "LinkFactory",
    "SubmissionOrchestrator",
    "LinkBatcher",
]
