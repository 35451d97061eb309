"""Error types raised by the interaction layer.

Every error carries the process exit code the CLI uses when it aborts.
"""

from __future__ import annotations


class InteractError(RuntimeError):
    exit_code: int = 1


class UnknownCommand(InteractError):
    exit_code = 2

    def __init__(self, command: str) -> None:
        super().__init__(f"unknown command: {command}")
        self.command = command


class NoContractDeployed(InteractError):
    exit_code = 3

    def __init__(self, message: str = "no known contract, deploy first") -> None:
        super().__init__(message)


class MalformedAddress(InteractError, ValueError):
    exit_code = 4


class CorruptState(InteractError):
    exit_code = 4


class ArgumentMismatch(InteractError):
    exit_code = 5


class EncodingError(InteractError):
    exit_code = 5


class WalletError(InteractError):
    exit_code = 6


class ArtifactError(InteractError):
    exit_code = 6


class GatewayError(InteractError):
    """The gateway could not be reached or answered with an error."""

    exit_code = 7


class TransactionFailed(InteractError):
    """The transaction was executed but rejected on chain."""

    exit_code = 8

    def __init__(self, message: str, *, tx_hash: str | None = None) -> None:
        super().__init__(message)
        self.tx_hash = tx_hash


class DecodeError(InteractError):
    """Returned data does not match the expected result shape."""

    exit_code = 8


__all__ = [
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
