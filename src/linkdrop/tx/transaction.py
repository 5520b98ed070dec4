"""
Transaction Block - programmable transaction construction.

Collects inputs and commands, carries the gas configuration, and serialises
the whole thing to TransactionData bytes through the pysui BCS types.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import List, Optional, Sequence, Tuple, Union

import canoser
import structlog

from pysui.sui.sui_types import bcs

logger = structlog.get_logger(__name__)

# Largest number of coins a single transaction may use as gas payment
MAX_GAS_OBJECTS = 256

ADDRESS_HEX_LENGTH = 64


class TransactionBuildError(Exception):
    """Raised when a transaction cannot be serialised."""
    pass


def normalize_address(address: str) -> str:
    """Normalize a hex address or object id to 0x + 64 lowercase hex chars."""
    value = address.lower()
    if value.startswith("0x"):
        value = value[2:]
    if not value or len(value) > ADDRESS_HEX_LENGTH:
        raise TransactionBuildError(f"Invalid address: {address!r}")
    try:
        int(value, 16)
    except ValueError:
        raise TransactionBuildError(f"Invalid address: {address!r}")
    return "0x" + value.rjust(ADDRESS_HEX_LENGTH, "0")


def _address(address: str) -> bcs.Address:
    return bcs.Address.from_str(normalize_address(address))


@dataclass(frozen=True)
class ObjectRef:
    """Reference to a specific version of an owned object."""
    object_id: str
    version: int
    digest: str

    def to_bcs(self) -> bcs.ObjectReference:
        return bcs.ObjectReference(
            _address(self.object_id),
            self.version,
            bcs.Digest.from_str(self.digest),
        )


class ArgumentKind(IntEnum):
    """Argument variants."""
    GAS_COIN = 0
    INPUT = 1
    RESULT = 2
    NESTED_RESULT = 3


@dataclass(frozen=True)
class Argument:
    """Reference to a value inside the transaction."""
    kind: ArgumentKind
    index: int = 0
    result_index: int = 0

    def to_bcs(self) -> bcs.Argument:
        if self.kind == ArgumentKind.GAS_COIN:
            return bcs.Argument("GasCoin")
        if self.kind == ArgumentKind.NESTED_RESULT:
            return bcs.Argument("NestedResult", bcs.NestedResult(self.index, self.result_index))
        if self.kind == ArgumentKind.RESULT:
            return bcs.Argument("Result", self.index)
        return bcs.Argument("Input", self.index)


@dataclass(frozen=True)
class TransferObjects:
    """Command::TransferObjects"""
    objects: Tuple[Argument, ...]
    recipient: Argument

    def to_bcs(self) -> bcs.Command:
        return bcs.Command(
            "TransferObjects",
            bcs.TransferObjects([arg.to_bcs() for arg in self.objects], self.recipient.to_bcs()),
        )


@dataclass(frozen=True)
class SplitCoins:
    """Command::SplitCoins"""
    coin: Argument
    amounts: Tuple[Argument, ...]

    def to_bcs(self) -> bcs.Command:
        return bcs.Command(
            "SplitCoin",
            bcs.SplitCoin(self.coin.to_bcs(), [arg.to_bcs() for arg in self.amounts]),
        )


Command = Union[TransferObjects, SplitCoins]


class TransactionBlock:
    """
    Builder for a single programmable transaction.

    Usage:
        ```python
        tx = TransactionBlock()
        coins = tx.split_coins(tx.gas, [tx.pure_u64(1_000)] * 3)
        tx.transfer_objects(coins, tx.pure_address(owner))
        tx.set_sender(owner)
        tx.set_gas_budget(10_000_000)
        ```
    """

    def __init__(self):
        self._inputs: List[bcs.CallArg] = []
        self._commands: List[Command] = []
        self.sender: Optional[str] = None
        self.gas_owner: Optional[str] = None
        self.gas_payment: List[ObjectRef] = []
        self.gas_price: Optional[int] = None
        self.gas_budget: Optional[int] = None

    # Inputs

    @property
    def gas(self) -> Argument:
        """The merged gas coin."""
        return Argument(ArgumentKind.GAS_COIN)

    def _add_input(self, call_arg: bcs.CallArg) -> Argument:
        self._inputs.append(call_arg)
        return Argument(ArgumentKind.INPUT, len(self._inputs) - 1)

    def pure(self, value: bytes) -> Argument:
        """Add a pure input holding already BCS-encoded bytes."""
        return self._add_input(bcs.CallArg("Pure", list(value)))

    def pure_u64(self, value: int) -> Argument:
        if value < 0 or value >= 1 << 64:
            raise TransactionBuildError(f"{value} does not fit in u64")
        return self.pure(canoser.Uint64.encode(value))

    def pure_address(self, address: str) -> Argument:
        return self.pure(_address(address).serialize())

    def object(self, ref: ObjectRef) -> Argument:
        """Add an owned (or immutable) object input."""
        return self._add_input(
            bcs.CallArg("Object", bcs.ObjectArg("ImmOrOwnedObject", ref.to_bcs()))
        )

    # Commands

    def split_coins(self, coin: Argument, amounts: Sequence[Argument]) -> List[Argument]:
        """
        Split ``coin`` into one new coin per amount.

        Returns:
            One argument per created coin, in the order of ``amounts``
        """
        command_index = len(self._commands)
        self._commands.append(SplitCoins(coin, tuple(amounts)))
        return [
            Argument(ArgumentKind.NESTED_RESULT, command_index, i)
            for i in range(len(amounts))
        ]

    def transfer_objects(self, objects: Sequence[Argument], recipient: Argument) -> None:
        """Transfer ``objects`` to the address held by ``recipient``."""
        if not objects:
            raise TransactionBuildError("transfer_objects needs at least one object")
        self._commands.append(TransferObjects(tuple(objects), recipient))

    # Gas configuration

    def set_sender(self, address: str) -> None:
        self.sender = normalize_address(address)

    def set_gas_owner(self, address: str) -> None:
        self.gas_owner = normalize_address(address)

    def set_gas_payment(self, coins: Sequence[ObjectRef]) -> None:
        if len(coins) > MAX_GAS_OBJECTS:
            raise TransactionBuildError(
                f"At most {MAX_GAS_OBJECTS} gas coins allowed, got {len(coins)}"
            )
        self.gas_payment = list(coins)

    def set_gas_price(self, price: int) -> None:
        self.gas_price = price

    def set_gas_budget(self, budget: int) -> None:
        self.gas_budget = budget

    @property
    def commands(self) -> Tuple[Command, ...]:
        return tuple(self._commands)

    @property
    def inputs(self) -> Tuple[bcs.CallArg, ...]:
        return tuple(self._inputs)

    def build(self) -> bytes:
        """
        Serialise to TransactionData (V1) bytes.

        Raises:
            TransactionBuildError: If sender or any gas field is missing
        """
        if not self.sender:
            raise TransactionBuildError("Transaction sender not set")
        if not self.gas_payment:
            raise TransactionBuildError("Transaction gas payment not set")
        if self.gas_price is None:
            raise TransactionBuildError("Transaction gas price not set")
        if self.gas_budget is None:
            raise TransactionBuildError("Transaction gas budget not set")

        kind = bcs.TransactionKind(
            "ProgrammableTransaction",
            bcs.ProgrammableTransaction(
                list(self._inputs),
                [command.to_bcs() for command in self._commands],
            ),
        )
        gas_data = bcs.GasData(
            [ref.to_bcs() for ref in self.gas_payment],
            _address(self.gas_owner or self.sender),
            self.gas_price,
            self.gas_budget,
        )
        data = bcs.TransactionData(
            "V1",
            bcs.TransactionDataV1(
                kind,
                _address(self.sender),
                gas_data,
                bcs.TransactionExpiration("None"),
            ),
        ).serialize()

        logger.debug(
            "transaction_built",
            inputs=len(self._inputs),
            commands=len(self._commands),
            size=len(data),
        )
        return data
