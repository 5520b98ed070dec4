"""
Link generation data model.

Assets to hand out, the coins funding them, and the per-asset outcomes.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Sequence, Union

from linkdrop.chain.interface import OwnedObject
from linkdrop.tx.transaction import ObjectRef


class PairingError(Exception):
    """Raised when assets and funding coins cannot be paired one to one."""
    pass


@dataclass(frozen=True)
class TargetAsset:
    """
    An owned object to bundle into a claim link.

    Attributes:
        object_id: Ledger-assigned id (None if the listing returned an error entry)
        object_type: Struct type tag
        version: Object version at discovery time
        digest: Object digest at discovery time
        error: Error returned by the node instead of object data
    """

    object_id: Optional[str]
    object_type: Optional[str] = None
    version: Optional[int] = None
    digest: Optional[str] = None
    error: Optional[Any] = None

    @classmethod
    def from_owned_object(cls, obj: OwnedObject) -> "TargetAsset":
        return cls(
            object_id=obj.object_id,
            object_type=obj.object_type,
            version=obj.version,
            digest=obj.digest,
            error=obj.error,
        )

    @property
    def has_data(self) -> bool:
        return bool(self.object_id)

    @property
    def ref(self) -> Optional[ObjectRef]:
        """Object ref, if the listing supplied version and digest."""
        if not self.object_id or self.version is None or not self.digest:
            return None
        return ObjectRef(self.object_id, self.version, self.digest)


@dataclass(frozen=True)
class FundingCoin:
    """A SUI coin earmarked to pay for exactly one claim transaction."""

    object_id: str
    version: int
    digest: str
    value: int

    @property
    def ref(self) -> ObjectRef:
        return ObjectRef(self.object_id, self.version, self.digest)


@dataclass(frozen=True)
class ClaimPair:
    """One row of the pairing table: an asset and the coin funding it."""

    index: int
    asset: TargetAsset
    coin: FundingCoin


@dataclass(frozen=True)
class ClaimLink:
    """A shareable link redeeming one asset plus the tip."""

    asset_id: str
    tip_amount: int
    url: str
    digest: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "asset_id": self.asset_id,
            "tip_amount": self.tip_amount,
            "url": self.url,
            "digest": self.digest,
        }


@dataclass(frozen=True)
class ClaimFailure:
    """
    An asset for which no link was produced.

    ``url`` is set when the submission outcome is unknown (the claim may
    have landed), so the link can still be tried or audited.
    """

    asset_id: Optional[str]
    reason: str
    coin_id: Optional[str] = None
    digest: Optional[str] = None
    url: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "asset_id": self.asset_id,
            "reason": self.reason,
            "coin_id": self.coin_id,
            "digest": self.digest,
            "url": self.url,
        }


ClaimOutcome = Union[ClaimLink, ClaimFailure]

OutcomeCallback = Callable[[ClaimOutcome], None]


@dataclass
class BatchResult:
    """Result of a generation run."""

    signer_address: str
    asset_count: int = 0
    coin_count: int = 0
    links: List[ClaimLink] = field(default_factory=list)
    failures: List[ClaimFailure] = field(default_factory=list)

    @property
    def link_count(self) -> int:
        return len(self.links)

    def summary(self) -> str:
        """Human-readable summary of the run."""
        lines = [
            f"Signer: {self.signer_address}",
            f"Objects discovered: {self.asset_count}",
            f"Funding coins created: {self.coin_count}",
            f"Links generated: {self.link_count}",
        ]
        if self.failures:
            lines.append(f"Failed: {len(self.failures)}")
        return "\n".join(lines)

    def to_dict(self) -> dict:
        return {
            "signer_address": self.signer_address,
            "asset_count": self.asset_count,
            "coin_count": self.coin_count,
            "links": [link.to_dict() for link in self.links],
            "failures": [failure.to_dict() for failure in self.failures],
        }


def pair_assets_with_coins(
    assets: Sequence[TargetAsset],
    coins: Sequence[FundingCoin],
) -> List[ClaimPair]:
    """
    Build the pairing table: asset[i] is funded by coin[i].

    Raises:
        PairingError: If the two lists differ in length
    """
    if len(assets) != len(coins):
        raise PairingError(
            f"Cannot pair {len(assets)} assets with {len(coins)} funding coins"
        )
    return [
        ClaimPair(index=i, asset=asset, coin=coin)
        for i, (asset, coin) in enumerate(zip(assets, coins))
    ]
