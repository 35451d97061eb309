"""
Command Dispatcher - one command name in, one executed operation out.

Per command:
1. look up the operation (UnknownCommand)
2. resolve the contract address, except for deploy (NoContractDeployed)
3. source arguments and payment from an ArgumentSource
4. build the request
5. execute it through the gateway client
6. record the new address after a successful deploy

Persisting the registry is the caller's scope (``Registry.open``), so it
runs whatever happens here.
"""

from __future__ import annotations

import enum
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Protocol, Sequence

from .errors import ArgumentMismatch, EncodingError
from .pneuma import tx
from .pneuma.catalog import CallKind, Operation, PaymentKind, lookup
from .pneuma.codec import (
    Address,
    ArgType,
    BigInt,
    BigUInt,
    Bool,
    Buffer,
    ListOf,
    MultiValue,
    OptionalValue,
    Struct,
    UInt,
    Variadic,
)
from .pneuma.rpc import GatewayClient, Outcome
from .sigil import address as address_codec
from .sigil.wallet import Wallet
from .state import Registry

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Argument sources
# ---------------------------------------------------------------------------


class ArgumentSource(Protocol):
    """Supplies the concrete argument values and payment for one operation."""

    def arguments(self, operation: Operation) -> list[Any]:
        ...

    def payment(self, operation: Operation) -> Optional[tx.Payment]:
        ...


@dataclass(frozen=True)
class CliArguments:
    """
    Arguments parsed from command-line text, one token per slot.

    An optional slot may be left out; a variadic slot takes every
    remaining token.
    """

    tokens: Sequence[str] = ()
    payment_text: Optional[str] = None
    egld_amount: Optional[int] = None

    def arguments(self, operation: Operation) -> list[Any]:
        slots = operation.descriptor.slots
        remaining = list(self.tokens)
        values: list[Any] = []

        for slot in slots:
            slot_type = slot.type
            if isinstance(slot_type, Variadic):
                values.append([slot_type.item.parse(t) for t in remaining])
                remaining = []
            elif isinstance(slot_type, OptionalValue):
                values.append(slot_type.parse(remaining.pop(0)) if remaining else None)
            elif remaining:
                values.append(slot_type.parse(remaining.pop(0)))
            else:
                raise ArgumentMismatch(f"{operation.command}: missing argument '{slot}'")

        if remaining:
            raise ArgumentMismatch(
                f"{operation.command}: {len(remaining)} unexpected argument(s): {' '.join(remaining)}"
            )
        return values

    def payment(self, operation: Operation) -> Optional[tx.Payment]:
        if self.egld_amount is not None:
            if self.payment_text is not None:
                raise ArgumentMismatch("give either --payment or --egld, not both")
            return tx.Payment.egld(self.egld_amount)
        if self.payment_text is None:
            return None
        return tx.Payment.parse(self.payment_text)


def placeholder(arg_type: ArgType) -> Any:
    """Zero / empty value of a type."""
    if isinstance(arg_type, (UInt, BigUInt, BigInt)):
        return 0
    if isinstance(arg_type, Bool):
        return False
    if isinstance(arg_type, Buffer):
        return ""
    if isinstance(arg_type, Address):
        return address_codec.ZERO_ADDRESS
    if isinstance(arg_type, OptionalValue):
        return placeholder(arg_type.item)
    if isinstance(arg_type, Variadic):
        return [placeholder(arg_type.item)]
    if isinstance(arg_type, MultiValue):
        return tuple(placeholder(item) for item in arg_type.items)
    if isinstance(arg_type, ListOf):
        return []
    if isinstance(arg_type, Struct):
        return {name: placeholder(field_type) for name, field_type in arg_type.fields}
    raise EncodingError(f"no placeholder for {arg_type.name}")


@dataclass(frozen=True)
class PlaceholderArguments:
    """Zero values for every slot and a zero payment where one is required."""

    def arguments(self, operation: Operation) -> list[Any]:
        return [placeholder(slot.type) for slot in operation.descriptor.slots]

    def payment(self, operation: Operation) -> Optional[tx.Payment]:
        descriptor = operation.descriptor
        if descriptor.kind is not CallKind.MUTATING:
            return None
        if descriptor.payment is PaymentKind.EGLD:
            return tx.Payment.egld(0)
        if descriptor.payment is PaymentKind.ESDT:
            return tx.Payment("", 0, 0)
        return None


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------


class DispatchState(enum.Enum):
    IDLE = "idle"
    EXECUTING = "executing"


@dataclass
class Dispatcher:
    """
    Runs one command against the registry's contract.

    Attributes:
        registry: Owned endpoint registry
        gateway: Gateway client used to execute requests
        wallet: Sender identity (queries may run without one)
        code_loader: Returns the contract bytecode for deploy
        wallet_loader: Returns the sender identity on first use, after the
            contract address and arguments are resolved
    """

    registry: Registry
    gateway: GatewayClient
    wallet: Optional[Wallet] = None
    code_loader: Optional[Callable[[], bytes]] = None
    wallet_loader: Optional[Callable[[], Optional[Wallet]]] = None
    state: DispatchState = field(default=DispatchState.IDLE, init=False)

    def dispatch(
        self,
        command: str,
        source: ArgumentSource,
        gas_limit: Optional[int] = None,
    ) -> Outcome:
        operation = lookup(command)

        if self.state is DispatchState.EXECUTING:
            raise RuntimeError("dispatcher is already executing a command")
        self.state = DispatchState.EXECUTING
        try:
            return self._execute(operation, source, gas_limit)
        finally:
            self.state = DispatchState.IDLE

    def _execute(
        self,
        operation: Operation,
        source: ArgumentSource,
        gas_limit: Optional[int],
    ) -> Outcome:
        is_deploy = operation.kind is CallKind.DEPLOY
        receiver = None if is_deploy else self.registry.current_address()

        raw_args = source.arguments(operation)
        payment = source.payment(operation) if operation.kind is CallKind.MUTATING else None

        code = None
        if is_deploy:
            if self.code_loader is None:
                raise EncodingError("deploy requires a contract code loader")
            code = self.code_loader()

        sender = self._sender(operation)
        request = tx.build(
            operation,
            sender,
            receiver,
            raw_args,
            payment,
            code=code,
            gas_limit=gas_limit,
        )
        logger.info("executing %s (%s) on %s", request.command, request.kind.value, request.receiver)

        outcome = self.gateway.execute(request, self.wallet)

        if is_deploy and outcome.contract_address:
            self.registry.set_address(outcome.contract_address)
        return outcome

    def _load_wallet(self) -> Optional[Wallet]:
        if self.wallet is None and self.wallet_loader is not None:
            self.wallet = self.wallet_loader()
            self.wallet_loader = None
        return self.wallet

    def _sender(self, operation: Operation) -> str:
        if self._load_wallet() is not None:
            return self.wallet.address
        if operation.kind is CallKind.READ_ONLY:
            return address_codec.ZERO_ADDRESS
        raise ArgumentMismatch(f"{operation.command} is a transaction and needs a wallet")


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def format_value(value: Any) -> str:
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, default=lambda v: v.hex() if isinstance(v, bytes) else str(v))
    if isinstance(value, bytes):
        return value.hex()
    return str(value)


def render(command: str, outcome: Outcome) -> str:
    if lookup(command).kind is CallKind.DEPLOY:
        return f"new address: {outcome.contract_address}"
    return f"Result: {format_value(outcome.value)}"
