"""
Transaction module.

Handles transaction construction, serialisation and signing.
"""

from linkdrop.tx.transaction import (
    Argument,
    ObjectRef,
    SplitCoins,
    TransactionBlock,
    TransactionBuildError,
    TransferObjects,
)
from linkdrop.tx.signer import TransactionSigner, generate_key

__all__ = [
    "Argument",
    "ObjectRef",
    "SplitCoins",
    "TransactionBlock",
    "TransactionBuildError",
    "TransferObjects",
    "TransactionSigner",
    "generate_key",
]
