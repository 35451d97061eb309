__all__ = [
    # Catalog
    "CallKind",
    "Operation",
    "OperationDescriptor",
    "PaymentKind",
    "lookup",
    # Requests
    "BuiltRequest",
    "Payment",
    "build",
    # Gateway
    "GatewayClient",
    "Outcome",
    # Dispatch
    "CliArguments",
    "Dispatcher",
    "PlaceholderArguments",
    # State
    "Registry",
    # Identity
    "Wallet",
    "load_wallet",
    # Errors
    "ArgumentMismatch",
    "ArtifactError",
    "CorruptState",
    "DecodeError",
    "EncodingError",
    "GatewayError",
    "InteractError",
    "MalformedAddress",
    "NoContractDeployed",
    "TransactionFailed",
    "UnknownCommand",
    "WalletError",
]

from .errors import (
    ArgumentMismatch,
    ArtifactError,
    CorruptState,
    DecodeError,
    EncodingError,
    GatewayError,
    InteractError,
    MalformedAddress,
    NoContractDeployed,
    TransactionFailed,
    UnknownCommand,
    WalletError,
)
from .pneuma.catalog import CallKind, Operation, OperationDescriptor, PaymentKind, lookup
from .pneuma.tx import BuiltRequest, Payment, build
from .pneuma.rpc import GatewayClient, Outcome
from .sigil.wallet import Wallet, load_wallet
from .state import Registry
from .dispatch import CliArguments, Dispatcher, PlaceholderArguments
