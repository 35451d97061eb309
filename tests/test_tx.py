"""Unit tests for request building and transaction signing."""

from __future__ import annotations

import base64
import json

import pytest
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from energia.errors import ArgumentMismatch, EncodingError, MalformedAddress
from energia.pneuma.catalog import CallKind, Operation
from energia.pneuma.tx import (
    EGLD,
    Payment,
    build,
    sign_transaction,
    to_transaction,
    transaction_payload,
)
from energia.sigil import address as address_codec
from energia.sigil.wallet import Wallet

CODE = b"\x00asm\x01\x00\x00\x00"


class TestPayment:
    """TOKEN:NONCE:AMOUNT parsing."""

    def test_parse(self) -> None:
        assert Payment.parse("MEX-455c57:0:1000") == Payment("MEX-455c57", 0, 1000)

    @pytest.mark.parametrize("text", ["MEX-455c57:1000", "MEX:x:1", ""])
    def test_parse_rejects(self, text: str) -> None:
        with pytest.raises(EncodingError):
            Payment.parse(text)

    def test_egld(self) -> None:
        assert Payment.egld(5).is_egld
        assert Payment.egld(5).token_identifier == EGLD


class TestBuild:
    """Assembling operations into requests."""

    def test_view_without_arguments(self, wallet: Wallet, contract: str) -> None:
        request = build(Operation.GET_LOCKED_TOKEN_ID, wallet.address, contract, [])
        assert request.kind is CallKind.READ_ONLY
        assert request.args == ()
        assert request.payment is None
        assert request.query_payload() == {
            "scAddress": contract,
            "funcName": "getLockedTokenId",
            "caller": wallet.address,
            "value": "0",
            "args": [],
        }

    def test_view_arguments(self, wallet: Wallet, contract: str) -> None:
        request = build(Operation.GET_PENALTY_AMOUNT, wallet.address, contract, [1000, 720, 360])
        assert request.query_payload()["args"] == ["03e8", "02d0", "0168"]

    def test_plain_call(self, wallet: Wallet, contract: str) -> None:
        request = build(Operation.PAUSE, wallet.address, contract, [])
        assert request.transaction_data() == b"pause"
        assert request.transaction_receiver() == contract
        assert request.transaction_value() == 0

    def test_esdt_transfer(self, wallet: Wallet, contract: str) -> None:
        request = build(
            Operation.LOCK_TOKENS,
            wallet.address,
            contract,
            [720, None],
            Payment("MEX-455c57", 0, 1000),
        )
        data = request.transaction_data().decode("ascii")
        assert data == "@".join(
            ["ESDTTransfer", b"MEX-455c57".hex(), "03e8", b"lockTokens".hex(), "02d0"]
        )
        assert data.count("ESDTTransfer") == 1
        assert request.transaction_receiver() == contract
        assert request.transaction_value() == 0

    def test_nft_transfer_goes_to_sender(self, wallet: Wallet, contract: str) -> None:
        request = build(
            Operation.UNLOCK_TOKENS,
            wallet.address,
            contract,
            [],
            Payment("XMEX-fda355", 12, 500),
        )
        data = request.transaction_data().decode("ascii")
        assert data == "@".join(
            [
                "ESDTNFTTransfer",
                b"XMEX-fda355".hex(),
                "0c",
                "01f4",
                address_codec.decode(contract).hex(),
                b"unlockTokens".hex(),
            ]
        )
        assert request.transaction_receiver() == wallet.address

    def test_egld_payment_in_value(self, wallet: Wallet, contract: str) -> None:
        request = build(
            Operation.ISSUE_LOCKED_TOKEN,
            wallet.address,
            contract,
            ["LockedMEX", "LKMEX", 18],
            Payment.egld(50_000_000_000_000_000),
        )
        assert request.transaction_data() == b"issueLockedToken@" + b"@".join(
            [b"LockedMEX".hex().encode(), b"LKMEX".hex().encode(), b"12"]
        )
        assert request.transaction_value() == 50_000_000_000_000_000
        assert request.gas_limit == 100_000_000

    def test_deploy(self, wallet: Wallet, other_address: str) -> None:
        request = build(
            Operation.DEPLOY,
            wallet.address,
            None,
            ["MEX-455c57", "LKMEX-aab910", other_address, 1, [(360, 5000)]],
            code=CODE,
        )
        assert request.receiver == address_codec.ZERO_ADDRESS
        assert request.is_deploy
        parts = request.transaction_data().decode("ascii").split("@")
        assert parts[:3] == [CODE.hex(), "0500", "0504"]
        assert parts[3:] == [
            b"MEX-455c57".hex(),
            b"LKMEX-aab910".hex(),
            "ab" * 32,
            "01",
            "0168",
            "1388",
        ]

    def test_variadic_addresses(self, wallet: Wallet, contract: str, other_address: str) -> None:
        request = build(
            Operation.ADD_TO_TOKEN_TRANSFER_WHITELIST,
            wallet.address,
            contract,
            [[other_address, contract]],
        )
        assert len(request.args) == 2

    def test_gas_override(self, wallet: Wallet, contract: str) -> None:
        request = build(Operation.PAUSE, wallet.address, contract, [], gas_limit=7)
        assert request.gas_limit == 7

    def test_gas_override_zero_is_kept(self, wallet: Wallet, contract: str) -> None:
        request = build(Operation.PAUSE, wallet.address, contract, [], gas_limit=0)
        assert request.gas_limit == 0
        assert build(Operation.PAUSE, wallet.address, contract, []).gas_limit == 20_000_000


class TestBuildErrors:
    """Rejected inputs."""

    def test_argument_count(self, wallet: Wallet, contract: str) -> None:
        with pytest.raises(ArgumentMismatch, match="expects 1 arguments"):
            build(Operation.GET_ENERGY_AMOUNT_FOR_USER, wallet.address, contract, [])

    def test_argument_type(self, wallet: Wallet, contract: str) -> None:
        with pytest.raises(EncodingError, match="user"):
            build(Operation.GET_ENERGY_AMOUNT_FOR_USER, wallet.address, contract, ["nobody"])

    def test_missing_payment(self, wallet: Wallet, contract: str) -> None:
        with pytest.raises(ArgumentMismatch, match="requires"):
            build(Operation.UNLOCK_EARLY, wallet.address, contract, [])

    def test_unexpected_payment(self, wallet: Wallet, contract: str) -> None:
        with pytest.raises(ArgumentMismatch, match="does not accept"):
            build(Operation.PAUSE, wallet.address, contract, [], Payment("MEX-455c57", 0, 1))

    def test_egld_to_esdt_endpoint(self, wallet: Wallet, contract: str) -> None:
        with pytest.raises(ArgumentMismatch):
            build(Operation.UNLOCK_EARLY, wallet.address, contract, [], Payment.egld(1))

    def test_esdt_to_egld_endpoint(self, wallet: Wallet, contract: str) -> None:
        with pytest.raises(ArgumentMismatch):
            build(
                Operation.ISSUE_LOCKED_TOKEN,
                wallet.address,
                contract,
                ["A", "B", 18],
                Payment("MEX-455c57", 0, 1),
            )

    def test_negative_payment(self, wallet: Wallet, contract: str) -> None:
        with pytest.raises(EncodingError):
            build(Operation.UNLOCK_EARLY, wallet.address, contract, [], Payment("MEX-455c57", 0, -1))

    def test_call_without_receiver(self, wallet: Wallet) -> None:
        with pytest.raises(ArgumentMismatch):
            build(Operation.PAUSE, wallet.address, None, [])

    def test_deploy_with_receiver(self, wallet: Wallet, contract: str, other_address: str) -> None:
        with pytest.raises(ArgumentMismatch):
            build(
                Operation.DEPLOY,
                wallet.address,
                contract,
                ["A-1", "B-2", other_address, 1, []],
                code=CODE,
            )

    def test_deploy_without_code(self, wallet: Wallet, other_address: str) -> None:
        with pytest.raises(EncodingError):
            build(Operation.DEPLOY, wallet.address, None, ["A-1", "B-2", other_address, 1, []])

    def test_bad_sender(self, contract: str) -> None:
        with pytest.raises(MalformedAddress):
            build(Operation.PAUSE, "me", contract, [])


class TestSigning:
    """Transaction fields and Ed25519 signatures."""

    def _transaction(self, request, nonce: int = 4, gas_price: int = 1_000_000_000):
        return to_transaction(request, nonce=nonce, gas_price=gas_price, chain_id="D")

    def test_payload_fields(self, wallet: Wallet, contract: str) -> None:
        request = build(Operation.PAUSE, wallet.address, contract, [])
        payload = transaction_payload(sign_transaction(self._transaction(request), wallet))
        assert list(payload) == [
            "nonce",
            "value",
            "receiver",
            "sender",
            "gasPrice",
            "gasLimit",
            "data",
            "chainID",
            "version",
            "signature",
        ]
        assert payload["value"] == "0"
        assert payload["receiver"] == contract
        assert base64.b64decode(payload["data"]) == b"pause"
        assert payload["gasLimit"] == 20_000_000
        assert payload["version"] == 1

    def test_egld_value_and_nft_receiver(self, wallet: Wallet, contract: str) -> None:
        issue = build(
            Operation.ISSUE_LOCKED_TOKEN, wallet.address, contract, ["A", "B", 18], Payment.egld(5)
        )
        assert self._transaction(issue).value == 5

        unlock = build(Operation.UNLOCK_TOKENS, wallet.address, contract, [], Payment("XMEX-fda355", 3, 1))
        assert self._transaction(unlock).receiver.to_bech32() == wallet.address

    def test_signing_bytes_match_payload(self, wallet: Wallet, contract: str) -> None:
        from multiversx_sdk import TransactionComputer

        request = build(Operation.PAUSE, wallet.address, contract, [])
        transaction = self._transaction(request)
        signing_bytes = TransactionComputer().compute_bytes_for_signing(transaction)

        assert b" " not in signing_bytes
        assert b"signature" not in signing_bytes
        assert json.loads(signing_bytes) == transaction_payload(transaction)

    def test_signature_verifies(self, wallet: Wallet, contract: str) -> None:
        from multiversx_sdk import TransactionComputer

        request = build(Operation.PAUSE, wallet.address, contract, [])
        transaction = sign_transaction(self._transaction(request, nonce=0, gas_price=1), wallet)

        public_key = Ed25519PublicKey.from_public_bytes(wallet.pubkey)
        public_key.verify(
            bytes(transaction.signature), TransactionComputer().compute_bytes_for_signing(transaction)
        )
        assert len(transaction_payload(transaction)["signature"]) == 128

    def test_sender_must_be_wallet(self, wallet: Wallet, contract: str, other_address: str) -> None:
        request = build(Operation.PAUSE, other_address, contract, [])
        with pytest.raises(ArgumentMismatch):
            sign_transaction(self._transaction(request), wallet)
