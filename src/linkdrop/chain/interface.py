"""
Abstract interface for Sui chain access.

Defines the contract for ledger access that all chain clients must implement.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, List, Optional

from linkdrop.tx.signer import TransactionSigner
from linkdrop.tx.transaction import ObjectRef, TransactionBlock

SUI_COIN_TYPE = "0x2::sui::SUI"


@dataclass
class OwnedObject:
    """One entry of an owned-objects listing."""
    object_id: Optional[str]
    version: Optional[int] = None
    digest: Optional[str] = None
    object_type: Optional[str] = None
    error: Optional[Any] = None      # Set when the node returned no object data


@dataclass
class OwnedObjectsPage:
    """A page of owned objects."""
    items: List[OwnedObject]
    has_next_page: bool
    next_cursor: Optional[str] = None


@dataclass
class Coin:
    """A coin object with its balance."""
    object_id: str
    version: int
    digest: str
    balance: int
    coin_type: str = SUI_COIN_TYPE


@dataclass
class CoinsPage:
    """A page of coins."""
    items: List[Coin]
    has_next_page: bool
    next_cursor: Optional[str] = None


@dataclass
class ObjectChange:
    """An object change reported by transaction execution."""
    change_type: str                   # created, mutated, deleted, transferred, ...
    object_id: Optional[str] = None
    version: Optional[int] = None
    digest: Optional[str] = None
    object_type: Optional[str] = None


@dataclass
class ExecutionOptions:
    """What to include in an execution response."""
    show_effects: bool = True
    show_object_changes: bool = False


@dataclass
class ExecutionResult:
    """Outcome of an executed transaction."""
    digest: str
    status: str                        # "success" or "failure"
    error: Optional[str] = None
    object_changes: List[ObjectChange] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status == "success"

    def created_objects(self) -> List[ObjectChange]:
        """Created objects, in the order the node reported them."""
        return [c for c in self.object_changes if c.change_type == "created"]


class ChainClient(ABC):
    """
    Abstract interface for Sui chain access.

    This interface defines all ledger operations needed by the generator:
    - Owned object listing
    - Coin and balance queries
    - Transaction signing and execution
    """

    @abstractmethod
    async def connect(self) -> None:
        """
        Establish connection to the fullnode.

        Raises:
            ChainConnectionError: If connection cannot be established
        """
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Close connection to the fullnode."""
        pass

    @abstractmethod
    async def list_owned_objects(
        self,
        owner: str,
        type_filter: str,
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> OwnedObjectsPage:
        """
        List one page of objects owned by an address.

        Args:
            owner: Owner address
            type_filter: Struct type tag the objects must have
            cursor: Cursor returned by the previous page
            limit: Maximum items in this page

        Returns:
            The requested page
        """
        pass

    @abstractmethod
    async def get_object_ref(self, object_id: str) -> ObjectRef:
        """
        Get the current version and digest of an object.

        Raises:
            ChainRequestError: If the object does not exist
        """
        pass

    @abstractmethod
    async def get_coins(
        self,
        owner: str,
        coin_type: str = SUI_COIN_TYPE,
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> CoinsPage:
        """
        List one page of coins owned by an address.

        Args:
            owner: Owner address
            coin_type: Coin type (SUI by default)
            cursor: Cursor returned by the previous page
            limit: Maximum items in this page

        Returns:
            The requested page
        """
        pass

    @abstractmethod
    async def get_balance(self, owner: str, coin_type: str = SUI_COIN_TYPE) -> int:
        """Get the total balance of a coin type owned by an address."""
        pass

    @abstractmethod
    async def get_reference_gas_price(self) -> int:
        """Get the reference gas price of the current epoch."""
        pass

    @abstractmethod
    async def sign_and_execute(
        self,
        tx: TransactionBlock,
        signer: TransactionSigner,
        options: Optional[ExecutionOptions] = None,
    ) -> ExecutionResult:
        """
        Sign a transaction and execute it, waiting for local execution.

        Args:
            tx: Transaction to execute (sender and gas payment already set)
            signer: Signer whose key signs the transaction
            options: Response content

        Returns:
            Execution status and requested changes

        Raises:
            ChainError: If the node rejects or cannot process the request
        """
        pass

    async def prepare_transaction(self, tx: TransactionBlock) -> TransactionBlock:
        """
        Fill in the gas price if the caller left it unset.

        Args:
            tx: Transaction to prepare

        Returns:
            The same transaction
        """
        if tx.gas_price is None:
            tx.set_gas_price(await self.get_reference_gas_price())
        return tx

    async def get_all_coins(self, owner: str, coin_type: str = SUI_COIN_TYPE) -> List[Coin]:
        """Get every coin of a type owned by an address."""
        coins: List[Coin] = []
        cursor = None

        while True:
            page = await self.get_coins(owner, coin_type, cursor)
            coins.extend(page.items)
            if not page.has_next_page:
                break
            cursor = page.next_cursor

        return coins


class ChainError(Exception):
    """Base class for chain access failures."""
    pass


class ChainConnectionError(ChainError):
    """Raised when the fullnode cannot be reached or answers with an HTTP error."""
    pass


class ChainRequestError(ChainError):
    """Raised when the fullnode answers with a JSON-RPC error."""

    def __init__(self, message: str, error_code: Optional[int] = None):
        super().__init__(message)
        self.error_code = error_code
