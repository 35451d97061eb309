"""
Operation Catalog - the closed set of energy-factory endpoints.

Each ``Operation`` member carries its descriptor: endpoint name, call kind,
ordered argument slots, payment requirement, result shape and default gas.
Slot order must match the contract exactly; reordering produces a different
call.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

from ..errors import UnknownCommand
from .codec import (
    ADDRESS,
    BIG_INT,
    BIG_UINT,
    BOOL,
    BUFFER,
    TOKEN_IDENTIFIER,
    U32,
    U64,
    ArgType,
    ListOf,
    MultiValue,
    OptionalValue,
    Struct,
    Variadic,
)


class CallKind(enum.Enum):
    DEPLOY = "deploy"
    MUTATING = "mutating"
    READ_ONLY = "read-only"


class PaymentKind(enum.Enum):
    NONE = "none"
    ESDT = "esdt"
    EGLD = "egld"


@dataclass(frozen=True)
class Slot:
    name: str
    type: ArgType

    def __str__(self) -> str:
        return f"{self.name}: {self.type.name}"


@dataclass(frozen=True)
class OperationDescriptor:
    command: str
    endpoint: str
    kind: CallKind
    slots: tuple[Slot, ...] = ()
    payment: PaymentKind = PaymentKind.NONE
    result: Optional[ArgType] = None
    gas_limit: int = 20_000_000

    @property
    def is_query(self) -> bool:
        return self.kind is CallKind.READ_ONLY

    def signature(self) -> str:
        args = ", ".join(str(s) for s in self.slots)
        out = f" -> {self.result.name}" if self.result is not None else ""
        return f"{self.endpoint}({args}){out}"


# ---------------------------------------------------------------------------
# Contract types
# ---------------------------------------------------------------------------

ENERGY = Struct(
    "Energy",
    [("amount", BIG_INT), ("last_update_epoch", U64), ("total_locked_tokens", BIG_UINT)],
)
EPOCH_AMOUNT_PAIR = Struct("EpochAmountPair", [("epoch", U64), ("amount", BIG_UINT)])
UNLOCK_EPOCH_AMOUNT_PAIRS = Struct(
    "UnlockEpochAmountPairs", [("pairs", ListOf(EPOCH_AMOUNT_PAIR))]
)
ESDT_TOKEN_PAYMENT = Struct(
    "EsdtTokenPayment",
    [("token_identifier", TOKEN_IDENTIFIER), ("token_nonce", U64), ("amount", BIG_UINT)],
)
LOCK_OPTION = Struct("LockOption", [("lock_epochs", U64), ("penalty_start_percentage", U64)])

# (lock_epochs, penalty_start_percentage) pairs as passed to init / addLockOptions
LOCK_OPTIONS = Variadic(MultiValue(U64, U64))


def _mutating(command: str, *slots: Slot, **kwargs) -> OperationDescriptor:
    return OperationDescriptor(command, command, CallKind.MUTATING, tuple(slots), **kwargs)


def _view(command: str, *slots: Slot, result: ArgType) -> OperationDescriptor:
    return OperationDescriptor(
        command, command, CallKind.READ_ONLY, tuple(slots), result=result, gas_limit=0
    )


class Operation(enum.Enum):
    DEPLOY = OperationDescriptor(
        "deploy",
        "init",
        CallKind.DEPLOY,
        (
            Slot("base_asset_token_id", TOKEN_IDENTIFIER),
            Slot("legacy_token_id", TOKEN_IDENTIFIER),
            Slot("old_locked_asset_factory_address", ADDRESS),
            Slot("min_migrated_token_locked_period", U64),
            Slot("lock_options", LOCK_OPTIONS),
        ),
        gas_limit=150_000_000,
    )

    LOCK_TOKENS = _mutating(
        "lockTokens",
        Slot("lock_epochs", U64),
        Slot("opt_destination", OptionalValue(ADDRESS)),
        payment=PaymentKind.ESDT,
        result=ESDT_TOKEN_PAYMENT,
    )
    UNLOCK_TOKENS = _mutating(
        "unlockTokens", payment=PaymentKind.ESDT, result=ESDT_TOKEN_PAYMENT
    )
    EXTEND_LOCK_PERIOD = _mutating(
        "extendLockPeriod",
        Slot("lock_epochs", U64),
        Slot("user", ADDRESS),
        payment=PaymentKind.ESDT,
        result=ESDT_TOKEN_PAYMENT,
    )
    ISSUE_LOCKED_TOKEN = _mutating(
        "issueLockedToken",
        Slot("token_display_name", BUFFER),
        Slot("token_ticker", BUFFER),
        Slot("num_decimals", U32),
        payment=PaymentKind.EGLD,
        gas_limit=100_000_000,
    )
    GET_LOCKED_TOKEN_ID = _view("getLockedTokenId", result=TOKEN_IDENTIFIER)
    GET_BASE_ASSET_TOKEN_ID = _view("getBaseAssetTokenId", result=TOKEN_IDENTIFIER)
    GET_LEGACY_LOCKED_TOKEN_ID = _view("getLegacyLockedTokenId", result=TOKEN_IDENTIFIER)
    GET_ENERGY_ENTRY_FOR_USER = _view(
        "getEnergyEntryForUser", Slot("user", ADDRESS), result=ENERGY
    )
    GET_ENERGY_AMOUNT_FOR_USER = _view(
        "getEnergyAmountForUser", Slot("user", ADDRESS), result=BIG_UINT
    )
    ADD_LOCK_OPTIONS = _mutating("addLockOptions", Slot("new_lock_options", LOCK_OPTIONS))
    GET_LOCK_OPTIONS = _view("getLockOptions", result=Variadic(LOCK_OPTION))
    UNLOCK_EARLY = _mutating("unlockEarly", payment=PaymentKind.ESDT)
    REDUCE_LOCK_PERIOD = _mutating(
        "reduceLockPeriod",
        Slot("new_lock_period", U64),
        payment=PaymentKind.ESDT,
        result=ESDT_TOKEN_PAYMENT,
    )
    GET_PENALTY_AMOUNT = _view(
        "getPenaltyAmount",
        Slot("token_amount", BIG_UINT),
        Slot("prev_lock_epochs", U64),
        Slot("new_lock_epochs", U64),
        result=BIG_UINT,
    )
    SET_TOKEN_UNSTAKE_ADDRESS = _mutating(
        "setTokenUnstakeAddress", Slot("sc_address", ADDRESS)
    )
    REVERT_UNSTAKE = _mutating(
        "revertUnstake",
        Slot("user", ADDRESS),
        Slot("new_energy", ENERGY),
        payment=PaymentKind.ESDT,
    )
    GET_TOKEN_UNSTAKE_SC_ADDRESS = _view("getTokenUnstakeScAddress", result=ADDRESS)
    SET_ENERGY_FOR_OLD_TOKENS = _mutating(
        "setEnergyForOldTokens",
        Slot("users_energy", Variadic(MultiValue(ADDRESS, BIG_UINT, BIG_INT))),
    )
    UPDATE_ENERGY_AFTER_OLD_TOKEN_UNLOCK = _mutating(
        "updateEnergyAfterOldTokenUnlock",
        Slot("original_caller", ADDRESS),
        Slot("initial_epoch_amount_pairs", UNLOCK_EPOCH_AMOUNT_PAIRS),
        Slot("final_epoch_amount_pairs", UNLOCK_EPOCH_AMOUNT_PAIRS),
    )
    MIGRATE_OLD_TOKENS = _mutating(
        "migrateOldTokens",
        payment=PaymentKind.ESDT,
        result=Variadic(ESDT_TOKEN_PAYMENT),
    )
    PAUSE = _mutating("pause")
    UNPAUSE = _mutating("unpause")
    IS_PAUSED = _view("isPaused", result=BOOL)
    SET_TRANSFER_ROLE_LOCKED_TOKEN = _mutating(
        "setTransferRoleLockedToken",
        Slot("opt_address", OptionalValue(ADDRESS)),
        gas_limit=60_000_000,
    )
    SET_BURN_ROLE_LOCKED_TOKEN = _mutating(
        "setBurnRoleLockedToken", Slot("address", ADDRESS), gas_limit=60_000_000
    )
    MERGE_TOKENS = _mutating(
        "mergeTokens",
        Slot("opt_original_caller", OptionalValue(ADDRESS)),
        payment=PaymentKind.ESDT,
        result=ESDT_TOKEN_PAYMENT,
    )
    LOCK_VIRTUAL = _mutating(
        "lockVirtual",
        Slot("token_id", TOKEN_IDENTIFIER),
        Slot("amount", BIG_UINT),
        Slot("lock_epochs", U64),
        Slot("dest_address", ADDRESS),
        Slot("energy_address", ADDRESS),
        result=ESDT_TOKEN_PAYMENT,
    )
    ADD_SC_ADDRESS_TO_WHITELIST = _mutating(
        "addSCAddressToWhitelist", Slot("address", ADDRESS)
    )
    REMOVE_SC_ADDRESS_FROM_WHITELIST = _mutating(
        "removeSCAddressFromWhitelist", Slot("address", ADDRESS)
    )
    IS_SC_ADDRESS_WHITELISTED = _view(
        "isSCAddressWhitelisted", Slot("address", ADDRESS), result=BOOL
    )
    ADD_TO_TOKEN_TRANSFER_WHITELIST = _mutating(
        "addToTokenTransferWhitelist", Slot("sc_addresses", Variadic(ADDRESS))
    )
    REMOVE_FROM_TOKEN_TRANSFER_WHITELIST = _mutating(
        "removeFromTokenTransferWhitelist", Slot("sc_addresses", Variadic(ADDRESS))
    )
    SET_USER_ENERGY_AFTER_LOCKED_TOKEN_TRANSFER = _mutating(
        "setUserEnergyAfterLockedTokenTransfer",
        Slot("user", ADDRESS),
        Slot("energy", ENERGY),
    )

    @property
    def descriptor(self) -> OperationDescriptor:
        return self.value

    @property
    def command(self) -> str:
        return self.value.command

    @property
    def kind(self) -> CallKind:
        return self.value.kind


_BY_COMMAND: dict[str, Operation] = {op.command: op for op in Operation}


def lookup(command: str) -> Operation:
    """
    Resolve a command name to its operation.

    Raises:
        UnknownCommand: If the name is not in the catalog
    """
    try:
        return _BY_COMMAND[command]
    except KeyError:
        raise UnknownCommand(command) from None


def command_names() -> list[str]:
    """Command names in catalog order."""
    return [op.command for op in Operation]
