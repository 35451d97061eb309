"""Shared fixtures: a deterministic wallet and an in-memory gateway."""

from __future__ import annotations

import base64
import json
from pathlib import Path
from typing import Any, Optional

import httpx
import pytest

from energia.pneuma.rpc import GatewayClient
from energia.sigil import address as address_codec
from energia.sigil.wallet import Wallet, save_pem

SEED = bytes(range(32))
TX_HASH = "5f1e0c6a" * 8
CHAIN_ID = "D"
GAS_PRICE = 1_000_000_000


def _envelope(data: Any, status_code: int = 200, error: str = "") -> httpx.Response:
    return httpx.Response(
        status_code,
        json={"data": data, "error": error, "code": "successful" if not error else "internal_issue"},
    )


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


class FakeGateway:
    """Answers the gateway REST routes from in-memory fixtures."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.sent: list[dict[str, Any]] = []
        self.queries: list[dict[str, Any]] = []
        self.nonce = 7
        self.status = "success"
        self.transaction: dict[str, Any] = {
            "status": "success",
            "smartContractResults": [],
            "logs": {"events": []},
        }
        self.return_data: list[bytes] = []
        self.return_code = "ok"
        self.fail_with: Optional[str] = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with:
            return _envelope(None, 500, self.fail_with)

        path = request.url.path
        if path == "/network/config":
            return _envelope(
                {"config": {"erd_chain_id": CHAIN_ID, "erd_min_gas_price": GAS_PRICE}}
            )
        if path.startswith("/address/"):
            return _envelope(
                {"account": {"address": path.rsplit("/", 1)[1], "nonce": self.nonce, "balance": "0"}}
            )
        if path == "/transaction/send":
            self.sent.append(json.loads(request.content))
            return _envelope({"txHash": TX_HASH})
        if path.endswith("/status"):
            return _envelope({"status": self.status})
        if path.startswith("/transaction/"):
            return _envelope({"transaction": self.transaction})
        if path == "/vm-values/query":
            self.queries.append(json.loads(request.content))
            return _envelope(
                {
                    "data": {
                        "returnData": [b64(item) for item in self.return_data],
                        "returnCode": self.return_code,
                        "returnMessage": "" if self.return_code == "ok" else "boom",
                    }
                }
            )
        return _envelope(None, 404, f"no route {path}")

    def client(self) -> GatewayClient:
        return GatewayClient(
            "http://gateway.test",
            transport=httpx.MockTransport(self.handler),
            poll_interval=0,
            confirmation_timeout=5,
        )

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]


@pytest.fixture()
def wallet() -> Wallet:
    return Wallet.from_seed(SEED)


@pytest.fixture()
def contract(wallet: Wallet) -> str:
    return address_codec.compute_contract_address(wallet.address, 3)


@pytest.fixture()
def other_address() -> str:
    return address_codec.encode(bytes([0xAB] * 32))


@pytest.fixture()
def pem_file(tmp_path: Path) -> Path:
    return save_pem(SEED, tmp_path / "wallet.pem")


@pytest.fixture()
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture()
def state_file(tmp_path: Path) -> Path:
    return tmp_path / "state.toml"
