"""
Sui Linkdrop

Hands out owned Sui objects in bulk through shareable claim links.
Each link bundles one object with a fixed SUI tip, funded by a coin
split off the operator's balance in a single transaction.
"""

__version__ = "0.1.0"

from linkdrop.core.batcher import LinkBatcher
from linkdrop.core.types import BatchResult, ClaimFailure, ClaimLink, TargetAsset

__all__ = [
    "LinkBatcher",
    "BatchResult",
    "ClaimFailure",
    "ClaimLink",
    "TargetAsset",
]
