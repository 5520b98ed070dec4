"""
Link builders - turn an asset plus a tip into a claimable link.

A link is backed by a fresh ephemeral key: the send transaction moves the
asset and the tip to that key's address, and the link carries the key.
"""

import base64
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

import structlog

from linkdrop.chain.interface import ChainClient
from linkdrop.config import NetworkType
from linkdrop.tx.signer import TransactionSigner, generate_key
from linkdrop.tx.transaction import ObjectRef, TransactionBlock

logger = structlog.get_logger(__name__)

DEFAULT_LINK_HOST = "https://zksend.com"
DEFAULT_LINK_PATH = "/claim"


class LinkBuilderError(Exception):
    """Raised when a link cannot be built or finalized."""
    pass


class LinkBuilder(ABC):
    """
    Abstract base class for claim link builders.

    Implementations decide how claimable content is stored and how the
    resulting link is encoded.
    """

    @abstractmethod
    def add_claimable_object(self, object_id: str, ref: Optional[ObjectRef] = None) -> None:
        """Add an owned object to the link."""
        pass

    @abstractmethod
    def add_claimable_mist(self, amount: int) -> None:
        """Add an amount of SUI (in MIST) to the link."""
        pass

    @abstractmethod
    async def create_send_transaction(self) -> TransactionBlock:
        """
        Build the unsigned transaction storing the claimable content.

        Gas payment is left to the caller.
        """
        pass

    @abstractmethod
    def get_link(self) -> str:
        """Finalize the shareable link. Only valid once the send transaction executed."""
        pass


class ZkSendLinkBuilder(LinkBuilder):
    """
    zkSend-style link builder.

    Content is transferred to an ephemeral Ed25519 address; the link's
    fragment is the base64 secret seed of that address.
    """

    def __init__(
        self,
        sender: str,
        client: ChainClient,
        network: NetworkType = NetworkType.MAINNET,
        host: str = DEFAULT_LINK_HOST,
        path: str = DEFAULT_LINK_PATH,
        keypair: Optional[TransactionSigner] = None,
    ):
        """
        Initialize the builder.

        Args:
            sender: Address that owns the content and sends the transaction
            client: Chain client used to resolve object refs
            network: Network the link is valid on
            host: Claim page host
            path: Claim page path
            keypair: Ephemeral key (a new one is generated if not provided)
        """
        self.sender = sender
        self.client = client
        self.network = NetworkType(network)
        self.host = host.rstrip("/")
        self.path = path if path.startswith("/") else "/" + path
        self.keypair = keypair or generate_key()

        self._objects: List[Tuple[str, Optional[ObjectRef]]] = []
        self._mist = 0
        self._transaction_created = False

    @property
    def claim_address(self) -> str:
        """Ephemeral address the content is sent to."""
        return self.keypair.address

    def add_claimable_object(self, object_id: str, ref: Optional[ObjectRef] = None) -> None:
        if not object_id:
            raise LinkBuilderError("Claimable object id is empty")
        self._objects.append((object_id, ref))

    def add_claimable_mist(self, amount: int) -> None:
        if amount < 0:
            raise LinkBuilderError(f"Claimable amount must be non-negative, got {amount}")
        self._mist += amount

    async def _resolve_refs(self) -> List[ObjectRef]:
        refs = []
        for object_id, ref in self._objects:
            if ref is None:
                ref = await self.client.get_object_ref(object_id)
            refs.append(ref)
        return refs

    async def create_send_transaction(self) -> TransactionBlock:
        if not self._objects and not self._mist:
            raise LinkBuilderError("Link has no claimable content")

        refs = await self._resolve_refs()

        tx = TransactionBlock()
        tx.set_sender(self.sender)

        receiver = tx.pure_address(self.claim_address)
        objects = [tx.object(ref) for ref in refs]
        if self._mist:
            objects.extend(tx.split_coins(tx.gas, [tx.pure_u64(self._mist)]))
        tx.transfer_objects(objects, receiver)

        self._transaction_created = True
        logger.debug(
            "send_transaction_created",
            objects=len(self._objects),
            mist=self._mist,
            claim_address=self.claim_address,
        )
        return tx

    def get_link(self) -> str:
        if not self._transaction_created:
            raise LinkBuilderError("Send transaction has not been created")

        secret = base64.b64encode(self.keypair.secret_seed).decode("ascii")
        query = ""
        if self.network != NetworkType.MAINNET:
            query = f"?network={self.network.value}"
        return f"{self.host}{self.path}{query}#{secret}"
