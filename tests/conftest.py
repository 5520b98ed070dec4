"""
Pytest configuration and shared fixtures for the test suite.
"""

import hashlib
from typing import List, Optional, Set, Tuple

import base58
import pytest

from linkdrop.config import LinkdropConfig, NetworkType
from linkdrop.chain.interface import (
    SUI_COIN_TYPE,
    ChainClient,
    ChainRequestError,
    Coin,
    CoinsPage,
    ExecutionOptions,
    ExecutionResult,
    ObjectChange,
    OwnedObject,
    OwnedObjectsPage,
)
from linkdrop.core.types import ClaimPair, FundingCoin, TargetAsset
from linkdrop.tx.signer import TransactionSigner, generate_key
from linkdrop.tx.transaction import ObjectRef, SplitCoins, TransactionBlock

OBJECT_TYPE = "0xabc::nft::Ticket"

# Fixed test seed so addresses are stable across runs
TEST_SECRET_KEY = "11" * 32


# ============================================================================
# Test Data Generators
# ============================================================================

def generate_test_object_id(index: int, prefix: str = "aa") -> str:
    """Generate a deterministic object id."""
    return "0x" + prefix * 28 + f"{index:08x}"


def generate_test_digest(index: int) -> str:
    """Generate a deterministic base58 object digest."""
    return base58.b58encode(hashlib.sha256(f"digest-{index}".encode()).digest()).decode()


def expected_object_ref_bytes(ref: ObjectRef) -> bytes:
    """Wire layout of an ObjectRef: id, version (u64 LE), length-prefixed digest."""
    digest = base58.b58decode(ref.digest)
    return (
        bytes.fromhex(ref.object_id[2:].rjust(64, "0"))
        + ref.version.to_bytes(8, "little")
        + bytes([len(digest)])
        + digest
    )


def make_owned_object(index: int, object_type: str = OBJECT_TYPE) -> OwnedObject:
    return OwnedObject(
        object_id=generate_test_object_id(index),
        version=index + 1,
        digest=generate_test_digest(index),
        object_type=object_type,
    )


def make_asset(index: int) -> TargetAsset:
    return TargetAsset.from_owned_object(make_owned_object(index))


def make_funding_coin(index: int, value: int = 11_000_000) -> FundingCoin:
    return FundingCoin(
        object_id=generate_test_object_id(index, prefix="cc"),
        version=7,
        digest=generate_test_digest(10_000 + index),
        value=value,
    )


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def test_config() -> LinkdropConfig:
    """Create a test configuration."""
    return LinkdropConfig(
        _env_file=None,
        network=NetworkType.TESTNET,
        secret_key=TEST_SECRET_KEY,
        object_type=OBJECT_TYPE,
        limit=5,
        gas_budget=10_000_000,
        gas_tips=1_000_000,
        funding_gas_budget=50_000_000,
        concurrency_limit=4,
        log_level="DEBUG",
    )


@pytest.fixture
def test_signer(test_config) -> TransactionSigner:
    """Create a signer from the fixed test key."""
    signer = TransactionSigner(test_config)
    signer.load_from_config()
    return signer


# ============================================================================
# Mock Chain Client
# ============================================================================

class MockChainClient(ChainClient):
    """
    In-memory chain client for testing.

    Transactions are really built and signed, so serialisation errors
    surface in tests; execution outcomes are scripted.
    """

    def __init__(self, gas_price: int = 1_000):
        self.owned: List[OwnedObject] = []
        self.coins: List[Coin] = []
        self.gas_price = gas_price

        self.list_calls: List[Tuple[Optional[str], Optional[int]]] = []
        self.executed: List[TransactionBlock] = []
        self.created_coin_ids: Set[str] = set()

        # Scripted failures
        self.fail_listing = False
        self.fail_funding = False
        self.failing_gas_coins: Set[str] = set()
        self.raising_gas_coins: Set[str] = set()

        self._connected = False
        self._counter = 0

    async def connect(self) -> None:
        self._connected = True

    async def disconnect(self) -> None:
        self._connected = False

    async def list_owned_objects(
        self,
        owner: str,
        type_filter: str,
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> OwnedObjectsPage:
        self.list_calls.append((cursor, limit))
        if self.fail_listing:
            raise ChainRequestError("listing unavailable", error_code=-32000)

        matching = [o for o in self.owned if o.object_type == type_filter]
        start = int(cursor) if cursor else 0
        end = start + (limit or 50)
        return OwnedObjectsPage(
            items=matching[start:end],
            has_next_page=end < len(matching),
            next_cursor=str(end) if end < len(matching) else None,
        )

    async def get_object_ref(self, object_id: str) -> ObjectRef:
        for obj in self.owned:
            if obj.object_id == object_id:
                return ObjectRef(obj.object_id, obj.version, obj.digest)
        raise ChainRequestError(f"Object {object_id} not found")

    async def get_coins(
        self,
        owner: str,
        coin_type: str = SUI_COIN_TYPE,
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> CoinsPage:
        return CoinsPage(items=list(self.coins), has_next_page=False)

    async def get_balance(self, owner: str, coin_type: str = SUI_COIN_TYPE) -> int:
        return sum(c.balance for c in self.coins)

    async def get_reference_gas_price(self) -> int:
        return self.gas_price

    async def sign_and_execute(
        self,
        tx: TransactionBlock,
        signer: TransactionSigner,
        options: Optional[ExecutionOptions] = None,
    ) -> ExecutionResult:
        await self.prepare_transaction(tx)
        signer.sign_transaction(tx.build())
        self.executed.append(tx)
        self._counter += 1
        digest = generate_test_digest(50_000 + self._counter)

        gas_ids = {ref.object_id for ref in tx.gas_payment}
        if gas_ids & self.created_coin_ids:
            return self._execute_claim(gas_ids, digest)
        return self._execute_funding(tx, digest)

    def _execute_funding(self, tx: TransactionBlock, digest: str) -> ExecutionResult:
        if self.fail_funding:
            return ExecutionResult(
                digest=digest,
                status="failure",
                error="InsufficientCoinBalance",
            )

        count = sum(len(c.amounts) for c in tx.commands if isinstance(c, SplitCoins))
        changes = [ObjectChange(change_type="mutated", object_id=tx.gas_payment[0].object_id)]
        for i in range(count):
            object_id = generate_test_object_id(self._counter * 1_000 + i, prefix="cc")
            self.created_coin_ids.add(object_id)
            changes.append(ObjectChange(
                change_type="created",
                object_id=object_id,
                version=self._counter,
                digest=generate_test_digest(self._counter * 1_000 + i),
                object_type="0x2::coin::Coin<0x2::sui::SUI>",
            ))
        return ExecutionResult(digest=digest, status="success", object_changes=changes)

    def _execute_claim(self, gas_ids: Set[str], digest: str) -> ExecutionResult:
        if gas_ids & self.raising_gas_coins:
            raise ChainRequestError("connection reset during execution")
        if gas_ids & self.failing_gas_coins:
            return ExecutionResult(digest=digest, status="failure", error="MoveAbort")
        return ExecutionResult(digest=digest, status="success")

    def add_owned_objects(self, count: int, object_type: str = OBJECT_TYPE) -> None:
        """Add ``count`` owned objects of a type."""
        start = len(self.owned)
        for i in range(start, start + count):
            self.owned.append(make_owned_object(i, object_type))

    def add_coin(self, balance: int) -> Coin:
        """Give the owner a SUI coin."""
        coin = Coin(
            object_id=generate_test_object_id(len(self.coins), prefix="ee"),
            version=3,
            digest=generate_test_digest(90_000 + len(self.coins)),
            balance=balance,
        )
        self.coins.append(coin)
        return coin

    @property
    def funding_transactions(self) -> List[TransactionBlock]:
        return [
            tx for tx in self.executed
            if not {ref.object_id for ref in tx.gas_payment} & self.created_coin_ids
        ]


@pytest.fixture
def mock_client() -> MockChainClient:
    """Create a mock chain client."""
    return MockChainClient()


@pytest.fixture
def funded_client(mock_client) -> MockChainClient:
    """Mock client with 3 matching objects and a well-funded signer."""
    mock_client.add_owned_objects(3)
    mock_client.add_owned_objects(2, object_type="0xabc::nft::Other")
    mock_client.add_coin(10_000_000_000)
    return mock_client


@pytest.fixture
def sample_pairs(mock_client) -> List[ClaimPair]:
    """Three owned assets paired with funding coins known to the mock client."""
    mock_client.add_owned_objects(3)
    pairs = [
        ClaimPair(index=i, asset=make_asset(i), coin=make_funding_coin(i))
        for i in range(3)
    ]
    mock_client.created_coin_ids.update(p.coin.object_id for p in pairs)
    return pairs


@pytest.fixture
def ephemeral_key() -> TransactionSigner:
    return generate_key()
