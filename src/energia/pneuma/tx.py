"""
Transaction Builder - Build requests and sign MultiversX transactions.

``build`` turns one catalog operation plus its raw argument values into a
self-describing ``BuiltRequest``.  Anything downstream (the gateway client)
can submit the request without consulting the catalog again.

Wire format of the ``data`` field:
- plain call:       endpoint@arg1@arg2
- fungible ESDT:    ESDTTransfer@token@amount@endpoint@args   (to the contract)
- SFT / meta-ESDT:  ESDTNFTTransfer@token@nonce@amount@contract@endpoint@args
                    (to the sender itself)
- deploy:           code@0500@metadata@args                    (to the zero address)
EGLD payments travel in the ``value`` field.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from multiversx_sdk import Transaction, TransactionComputer

from ..errors import ArgumentMismatch, EncodingError
from ..sigil import address as address_codec
from ..sigil.wallet import Wallet
from .catalog import CallKind, Operation, PaymentKind
from .codec import BIG_UINT, TOKEN_IDENTIFIER, ArgType, hex_args

logger = logging.getLogger(__name__)

_computer = TransactionComputer()

EGLD = "EGLD"
TX_VERSION = 1

# Upgradeable + readable, payable by smart contracts
DEFAULT_CODE_METADATA = b"\x05\x04"


@dataclass(frozen=True)
class Payment:
    """A single token transfer attached to a call."""

    token_identifier: str
    token_nonce: int
    amount: int

    @property
    def is_egld(self) -> bool:
        return self.token_identifier == EGLD

    @classmethod
    def parse(cls, text: str) -> "Payment":
        """Parse ``TOKEN:NONCE:AMOUNT`` (e.g. ``MEX-455c57:0:1000``)."""
        parts = text.split(":")
        if len(parts) != 3:
            raise EncodingError(f"payment must be TOKEN:NONCE:AMOUNT, got {text!r}")
        token, nonce, amount = parts
        try:
            return cls(token.strip(), int(nonce), int(amount))
        except ValueError:
            raise EncodingError(f"payment nonce and amount must be integers: {text!r}") from None

    @classmethod
    def egld(cls, amount: int) -> "Payment":
        return cls(EGLD, 0, amount)

    def __str__(self) -> str:
        return f"{self.amount} {self.token_identifier} (nonce {self.token_nonce})"


@dataclass(frozen=True)
class BuiltRequest:
    """One fully-parameterised operation, ready for submission."""

    command: str
    endpoint: str
    kind: CallKind
    sender: str
    receiver: str
    args: tuple[bytes, ...]
    gas_limit: int
    payment: Optional[Payment] = None
    result: Optional[ArgType] = None
    code: Optional[bytes] = None
    code_metadata: bytes = DEFAULT_CODE_METADATA

    @property
    def is_deploy(self) -> bool:
        return self.kind is CallKind.DEPLOY

    @property
    def is_query(self) -> bool:
        return self.kind is CallKind.READ_ONLY

    @property
    def _is_nft_transfer(self) -> bool:
        return self.payment is not None and not self.payment.is_egld and self.payment.token_nonce > 0

    def transaction_receiver(self) -> str:
        """Multi-token transfers are sent to the sender itself."""
        if self._is_nft_transfer:
            return self.sender
        return self.receiver

    def transaction_value(self) -> int:
        if self.payment is not None and self.payment.is_egld:
            return self.payment.amount
        return 0

    def transaction_data(self) -> bytes:
        args = hex_args(self.args)

        if self.is_deploy:
            parts = [self.code.hex(), address_codec.WASM_VM_TYPE.hex(), self.code_metadata.hex(), *args]
        elif self.payment is None or self.payment.is_egld:
            parts = [self.endpoint, *args]
        else:
            token = TOKEN_IDENTIFIER.top_encode(self.payment.token_identifier).hex()
            amount = BIG_UINT.top_encode(self.payment.amount).hex()
            endpoint = self.endpoint.encode("ascii").hex()
            if self._is_nft_transfer:
                nonce = BIG_UINT.top_encode(self.payment.token_nonce).hex()
                contract = address_codec.decode(self.receiver).hex()
                parts = ["ESDTNFTTransfer", token, nonce, amount, contract, endpoint, *args]
            else:
                parts = ["ESDTTransfer", token, amount, endpoint, *args]

        return "@".join(parts).encode("ascii")

    def query_payload(self) -> dict[str, Any]:
        """Body of a gateway ``vm-values/query`` request."""
        return {
            "scAddress": self.receiver,
            "funcName": self.endpoint,
            "caller": self.sender,
            "value": "0",
            "args": hex_args(self.args),
        }

    def decode_result(self, parts: Sequence[bytes]) -> Any:
        if self.result is None:
            return [p.hex() for p in parts] if parts else None
        return self.result.decode(parts)


def build(
    operation: Operation,
    sender: str,
    receiver: Optional[str],
    raw_args: Sequence[Any],
    payment: Optional[Payment] = None,
    code: Optional[bytes] = None,
    gas_limit: Optional[int] = None,
) -> BuiltRequest:
    """
    Assemble one operation into a request.

    Args:
        operation: Catalog operation
        sender: bech32 address of the signer
        receiver: Contract address, or None for deploy ("create new account")
        raw_args: One value per argument slot (None for an absent optional,
                  a sequence for a variadic slot)
        payment: Single token transfer for payable endpoints
        code: Contract bytecode (deploy only)
        gas_limit: Override of the operation's default gas limit

    Returns:
        BuiltRequest

    Raises:
        ArgumentMismatch: Wrong number of arguments or payment misuse
        EncodingError: An argument does not fit its slot type
    """
    descriptor = operation.descriptor
    address_codec.decode(sender)

    if len(raw_args) != len(descriptor.slots):
        raise ArgumentMismatch(
            f"{descriptor.command} expects {len(descriptor.slots)} arguments "
            f"({', '.join(str(s) for s in descriptor.slots) or 'none'}), got {len(raw_args)}"
        )

    args: list[bytes] = []
    for slot, value in zip(descriptor.slots, raw_args):
        try:
            args.extend(slot.type.encode(value))
        except EncodingError as exc:
            raise EncodingError(f"{descriptor.command}: argument '{slot.name}': {exc}") from exc

    if descriptor.kind is CallKind.DEPLOY:
        if receiver is not None:
            raise ArgumentMismatch("deploy creates a new account and takes no receiver")
        if not code:
            raise EncodingError("deploy requires the contract bytecode")
        receiver = address_codec.ZERO_ADDRESS
    else:
        if receiver is None:
            raise ArgumentMismatch(f"{descriptor.command} requires a contract address")
        address_codec.decode(receiver)

    if descriptor.kind is not CallKind.READ_ONLY:
        _check_payment(descriptor.command, descriptor.payment, payment)

    request = BuiltRequest(
        command=descriptor.command,
        endpoint=descriptor.endpoint,
        kind=descriptor.kind,
        sender=sender,
        receiver=receiver,
        args=tuple(args),
        gas_limit=descriptor.gas_limit if gas_limit is None else gas_limit,
        payment=payment,
        result=descriptor.result,
        code=code if descriptor.kind is CallKind.DEPLOY else None,
    )
    logger.debug("built %s request to %s with %d args", request.command, request.receiver, len(args))
    return request


def _check_payment(command: str, kind: PaymentKind, payment: Optional[Payment]) -> None:
    if kind is PaymentKind.NONE:
        if payment is not None:
            raise ArgumentMismatch(f"{command} does not accept a payment")
        return
    if payment is None:
        raise ArgumentMismatch(f"{command} requires a {kind.value.upper()} payment")
    if payment.amount < 0 or payment.token_nonce < 0:
        raise EncodingError(f"payment amount and nonce must be non-negative: {payment}")
    if kind is PaymentKind.EGLD and not payment.is_egld:
        raise ArgumentMismatch(f"{command} accepts only EGLD, got {payment.token_identifier}")
    if kind is PaymentKind.ESDT and payment.is_egld:
        raise ArgumentMismatch(f"{command} expects an ESDT payment, got EGLD")


# ---------------------------------------------------------------------------
# Signing
# ---------------------------------------------------------------------------


def to_transaction(
    request: BuiltRequest,
    *,
    nonce: int,
    gas_price: int,
    chain_id: str,
) -> Transaction:
    """Build the unsigned SDK transaction for a request."""
    return Transaction(
        sender=address_codec.parse(request.sender),
        receiver=address_codec.parse(request.transaction_receiver()),
        gas_limit=request.gas_limit,
        chain_id=chain_id,
        nonce=nonce,
        value=request.transaction_value(),
        gas_price=gas_price,
        data=request.transaction_data(),
        version=TX_VERSION,
    )


def sign_transaction(transaction: Transaction, wallet: Wallet) -> Transaction:
    """
    Sign a transaction in place with the sender wallet.

    Raises:
        ArgumentMismatch: If the transaction sender is not the wallet
    """
    sender = transaction.sender.to_bech32()
    if sender != wallet.address:
        raise ArgumentMismatch(f"transaction sender {sender} is not the wallet {wallet.address}")
    transaction.signature = wallet.sign(_computer.compute_bytes_for_signing(transaction))
    return transaction


def transaction_payload(transaction: Transaction) -> dict[str, Any]:
    """
    Body of a gateway ``transaction/send`` request.

    Field order matches the signing serialization.
    """
    payload: dict[str, Any] = {
        "nonce": transaction.nonce,
        "value": str(transaction.value),
        "receiver": transaction.receiver.to_bech32(),
        "sender": transaction.sender.to_bech32(),
        "gasPrice": transaction.gas_price,
        "gasLimit": transaction.gas_limit,
    }
    if transaction.data:
        payload["data"] = base64.b64encode(bytes(transaction.data)).decode("ascii")
    payload["chainID"] = transaction.chain_id
    payload["version"] = transaction.version
    if transaction.options:
        payload["options"] = transaction.options
    if transaction.signature:
        payload["signature"] = bytes(transaction.signature).hex()
    return payload
