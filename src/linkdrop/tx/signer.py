"""
Transaction Signer - handles transaction signing.

Manages the Ed25519 signing key and produces Sui serialized signatures
over transaction bytes.
"""

import base64
from typing import Optional

import structlog

from pysui.abstracts.client_keypair import SignatureScheme
from pysui.sui.sui_crypto import SuiKeyPairED25519, create_new_keypair
from pysui.sui.sui_types.address import SuiAddress

from linkdrop.config import LinkdropConfig, get_config

logger = structlog.get_logger(__name__)


class TransactionSigner:
    """
    Handles transaction signing with the operator's key.

    Keys are 32-byte Ed25519 seeds, loaded from hex (configuration)
    or raw bytes. Configuration is only read by ``load_from_config``.
    """

    def __init__(self, config: Optional[LinkdropConfig] = None):
        """
        Initialize the transaction signer.

        Args:
            config: Link generator configuration (global config if not provided)
        """
        self.config = config
        self._keypair: Optional[SuiKeyPairED25519] = None
        self._address: Optional[str] = None

    def load_keypair(self, keypair: SuiKeyPairED25519) -> None:
        """Use an existing Ed25519 keypair."""
        self._keypair = keypair
        self._address = SuiAddress.from_keypair_string(keypair.serialize()).address

    def load_key_from_bytes(self, seed: bytes) -> None:
        """
        Load signing key from a raw 32-byte seed.

        Args:
            seed: Ed25519 secret key seed
        """
        if len(seed) != 32:
            raise ValueError(f"Ed25519 seed must be 32 bytes, got {len(seed)}")
        self.load_keypair(SuiKeyPairED25519.from_bytes(seed))

    def load_key_from_hex(self, secret_hex: str) -> None:
        """
        Load signing key from a hex string.

        Args:
            secret_hex: Hex-encoded 32-byte seed, optionally 0x-prefixed
        """
        if secret_hex.startswith("0x"):
            secret_hex = secret_hex[2:]
        self.load_key_from_bytes(bytes.fromhex(secret_hex))

        logger.info("signing_key_loaded", address=self._address)

    def load_from_config(self) -> None:
        """Load signing key from configuration."""
        config = self.config or get_config()
        if not config.secret_key:
            raise ValueError("No signing key configured")
        self.load_key_from_hex(config.secret_key)

    @property
    def public_key(self) -> bytes:
        if not self._keypair:
            raise RuntimeError("No signing key loaded")
        return self._keypair.public_key.to_bytes()

    @property
    def secret_seed(self) -> bytes:
        if not self._keypair:
            raise RuntimeError("No signing key loaded")
        return self._keypair.private_key.to_bytes()

    @property
    def address(self) -> Optional[str]:
        """Get the signer's address."""
        return self._address

    @property
    def is_loaded(self) -> bool:
        """Check if a signing key is loaded."""
        return self._keypair is not None

    def sign_transaction(self, tx_bytes: bytes) -> str:
        """
        Sign serialized transaction data with the transaction intent.

        Args:
            tx_bytes: BCS TransactionData bytes

        Returns:
            Base64 serialized signature (flag || signature || public key)
        """
        if not self._keypair:
            raise RuntimeError("No signing key loaded")

        signature = self._keypair.new_sign_secure(
            base64.b64encode(tx_bytes).decode("ascii")
        )

        logger.debug("transaction_signed", size=len(tx_bytes))
        return signature.value


def generate_key(config: Optional[LinkdropConfig] = None) -> TransactionSigner:
    """
    Generate a new random signing key.

    Used for the ephemeral credential behind each claim link, and in tests.
    No configuration is read.

    Returns:
        TransactionSigner with a new random key
    """
    _, keypair = create_new_keypair(SignatureScheme.ED25519)
    signer = TransactionSigner(config)
    signer.load_keypair(keypair)
    return signer
