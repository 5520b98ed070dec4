"""
Chain Integration Layer.

Provides abstracted access to Sui ledger data and transaction execution.
"""

from linkdrop.chain.interface import (
    ChainClient,
    ChainConnectionError,
    ChainError,
    ChainRequestError,
)
from linkdrop.chain.rpc import SuiRpcClient

__all__ = [
    "ChainClient",
    "ChainConnectionError",
    "ChainError",
    "ChainRequestError",
    "SuiRpcClient",
]
