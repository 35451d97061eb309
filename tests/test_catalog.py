"""Unit tests for the operation catalog."""

from __future__ import annotations

import pytest

from energia.errors import UnknownCommand
from energia.pneuma.catalog import CallKind, Operation, PaymentKind, command_names, lookup

MUTATING = {
    "lockTokens",
    "unlockTokens",
    "extendLockPeriod",
    "issueLockedToken",
    "addLockOptions",
    "unlockEarly",
    "reduceLockPeriod",
    "setTokenUnstakeAddress",
    "revertUnstake",
    "setEnergyForOldTokens",
    "updateEnergyAfterOldTokenUnlock",
    "migrateOldTokens",
    "pause",
    "unpause",
    "setTransferRoleLockedToken",
    "setBurnRoleLockedToken",
    "mergeTokens",
    "lockVirtual",
    "addSCAddressToWhitelist",
    "removeSCAddressFromWhitelist",
    "addToTokenTransferWhitelist",
    "removeFromTokenTransferWhitelist",
    "setUserEnergyAfterLockedTokenTransfer",
}

READ_ONLY = {
    "getLockedTokenId",
    "getBaseAssetTokenId",
    "getLegacyLockedTokenId",
    "getEnergyEntryForUser",
    "getEnergyAmountForUser",
    "getLockOptions",
    "getPenaltyAmount",
    "getTokenUnstakeScAddress",
    "isPaused",
    "isSCAddressWhitelisted",
}

ESDT_PAYABLE = {
    "lockTokens",
    "unlockTokens",
    "extendLockPeriod",
    "unlockEarly",
    "reduceLockPeriod",
    "revertUnstake",
    "migrateOldTokens",
    "mergeTokens",
}


class TestLookup:
    """Command name resolution."""

    def test_every_name_resolves(self) -> None:
        for name in ["deploy", *MUTATING, *READ_ONLY]:
            assert lookup(name).command == name

    def test_catalog_is_closed(self) -> None:
        assert set(command_names()) == {"deploy"} | MUTATING | READ_ONLY
        assert len(command_names()) == len(set(command_names()))

    @pytest.mark.parametrize("name", ["frobnicate", "", "Pause", "init"])
    def test_unknown(self, name: str) -> None:
        with pytest.raises(UnknownCommand) as exc_info:
            lookup(name)
        assert exc_info.value.command == name
        assert exc_info.value.exit_code == 2


class TestDescriptors:
    """Call kinds, payments and slot order."""

    def test_kinds(self) -> None:
        assert lookup("deploy").kind is CallKind.DEPLOY
        for name in MUTATING:
            assert lookup(name).kind is CallKind.MUTATING, name
        for name in READ_ONLY:
            assert lookup(name).kind is CallKind.READ_ONLY, name

    def test_payments(self) -> None:
        for op in Operation:
            descriptor = op.descriptor
            if descriptor.command in ESDT_PAYABLE:
                assert descriptor.payment is PaymentKind.ESDT, descriptor.command
            elif descriptor.command == "issueLockedToken":
                assert descriptor.payment is PaymentKind.EGLD
            else:
                assert descriptor.payment is PaymentKind.NONE, descriptor.command

    def test_deploy_calls_init(self) -> None:
        descriptor = Operation.DEPLOY.descriptor
        assert descriptor.endpoint == "init"
        assert [s.name for s in descriptor.slots] == [
            "base_asset_token_id",
            "legacy_token_id",
            "old_locked_asset_factory_address",
            "min_migrated_token_locked_period",
            "lock_options",
        ]

    def test_slot_order(self) -> None:
        assert [s.name for s in lookup("lockVirtual").descriptor.slots] == [
            "token_id",
            "amount",
            "lock_epochs",
            "dest_address",
            "energy_address",
        ]
        assert [s.name for s in lookup("getPenaltyAmount").descriptor.slots] == [
            "token_amount",
            "prev_lock_epochs",
            "new_lock_epochs",
        ]

    def test_views_have_results(self) -> None:
        for name in READ_ONLY:
            assert lookup(name).descriptor.result is not None, name

    def test_signature(self) -> None:
        assert lookup("getEnergyAmountForUser").descriptor.signature() == (
            "getEnergyAmountForUser(user: Address) -> BigUint"
        )
        assert lookup("pause").descriptor.signature() == "pause()"
