"""
Gateway Client for the MultiversX proxy REST API.

Uses httpx for HTTP.  Supports account and network config lookups,
transaction broadcast, completion polling and read-only contract queries
(vm-values/query).

``GatewayClient.execute`` runs one BuiltRequest end to end: nonce lookup,
signing, broadcast and confirmation for transactions, a direct read for
queries.  Faults are raised, never retried.
"""

from __future__ import annotations

import base64
import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from ..errors import DecodeError, GatewayError, TransactionFailed
from ..sigil import address as address_codec
from ..sigil.wallet import Wallet
from .tx import BuiltRequest, sign_transaction, to_transaction, transaction_payload

logger = logging.getLogger(__name__)

# Default gateway (devnet)
DEFAULT_GATEWAY_URL = "https://devnet-gateway.multiversx.com"

# Hex of "ok": the return code of a successful smart contract call
_OK = "6f6b"

_SUCCESS_STATUSES = {"success", "executed"}
_FAILED_STATUSES = {"fail", "failed", "invalid"}


def get_gateway_url() -> str:
    """Get the gateway URL from environment or default."""
    return os.environ.get("MX_GATEWAY", DEFAULT_GATEWAY_URL)


def get_chain_id() -> Optional[str]:
    """Get the chain ID from environment (None: ask the gateway)."""
    return os.environ.get("CHAIN_ID") or None


@dataclass(frozen=True)
class Outcome:
    """Result of one executed request."""

    value: Any
    tx_hash: Optional[str] = None
    status: str = "success"
    contract_address: Optional[str] = None


class GatewayClient:
    """
    Thin client over the gateway REST API.

    Args:
        url: Gateway base URL (default: MX_GATEWAY or devnet)
        timeout: HTTP timeout in seconds
        confirmation_timeout: Maximum wait for a transaction to complete
        poll_interval: Status polling interval in seconds
        transport: Optional httpx transport (tests inject a MockTransport)
    """

    def __init__(
        self,
        url: Optional[str] = None,
        *,
        timeout: float = 30,
        confirmation_timeout: float = 120,
        poll_interval: float = 2.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.url = (url or get_gateway_url()).rstrip("/")
        self.confirmation_timeout = confirmation_timeout
        self.poll_interval = poll_interval
        self._client = httpx.Client(base_url=self.url, timeout=timeout, transport=transport)
        self._network_config: Optional[dict[str, Any]] = None

    def __enter__(self) -> "GatewayClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    # ------------------------------------------------------------------
    # Raw API
    # ------------------------------------------------------------------

    def _call(self, method: str, path: str, payload: Optional[dict] = None) -> dict[str, Any]:
        """
        Make a gateway call.

        Returns:
            The "data" field of the response envelope

        Raises:
            GatewayError: On network failure, HTTP error or an "error" field
        """
        logger.debug("%s %s%s", method, self.url, path)
        try:
            response = self._client.request(method, path, json=payload)
            body = response.json()
        except httpx.HTTPError as exc:
            raise GatewayError(f"Gateway request {method} {path} failed: {exc}") from exc
        except ValueError as exc:
            raise GatewayError(f"Gateway returned non-JSON for {path}: {exc}") from exc

        if not isinstance(body, dict):
            raise GatewayError(f"Unexpected gateway response for {path}: {body!r}")

        error = body.get("error")
        if response.is_error or error:
            raise GatewayError(
                f"Gateway error ({response.status_code}) for {path}: {error or response.reason_phrase}"
            )

        return body.get("data") or {}

    def get_network_config(self) -> dict[str, Any]:
        if self._network_config is None:
            self._network_config = self._call("GET", "/network/config").get("config", {})
        return self._network_config

    def get_account(self, address: str) -> dict[str, Any]:
        return self._call("GET", f"/address/{address}").get("account", {})

    def get_nonce(self, address: str) -> int:
        return int(self.get_account(address).get("nonce", 0))

    def get_balance(self, address: str) -> int:
        return int(self.get_account(address).get("balance", "0"))

    def send_transaction(self, signed_tx: dict[str, Any]) -> str:
        """
        Broadcast a signed transaction.

        Returns:
            Transaction hash (hex)
        """
        tx_hash = self._call("POST", "/transaction/send", signed_tx).get("txHash")
        if not tx_hash:
            raise GatewayError("Gateway accepted the transaction but returned no hash")
        return tx_hash

    def get_transaction_status(self, tx_hash: str) -> str:
        return self._call("GET", f"/transaction/{tx_hash}/status").get("status", "unknown")

    def get_transaction(self, tx_hash: str) -> dict[str, Any]:
        return self._call("GET", f"/transaction/{tx_hash}?withResults=true").get("transaction", {})

    def wait_for_completion(self, tx_hash: str) -> dict[str, Any]:
        """
        Wait until a transaction leaves the pending state.

        Returns:
            Transaction with smart contract results and logs

        Raises:
            GatewayError: If not completed within confirmation_timeout
        """
        start = time.monotonic()
        while time.monotonic() - start < self.confirmation_timeout:
            status = self.get_transaction_status(tx_hash)
            if status in _SUCCESS_STATUSES or status in _FAILED_STATUSES:
                logger.info("transaction %s completed with status %s", tx_hash, status)
                return self.get_transaction(tx_hash)
            time.sleep(self.poll_interval)

        raise GatewayError(
            f"Transaction {tx_hash} not completed within {self.confirmation_timeout}s"
        )

    def query(self, payload: dict[str, Any]) -> list[bytes]:
        """
        Run a read-only contract query.

        Returns:
            Raw return data, one entry per top-level result

        Raises:
            TransactionFailed: If the contract rejects the query
        """
        data = self._call("POST", "/vm-values/query", payload).get("data", {})
        return_code = data.get("returnCode", "")
        if return_code != "ok":
            raise TransactionFailed(
                f"query {payload.get('funcName')} failed: {return_code}: {data.get('returnMessage', '')}"
            )
        return [base64.b64decode(item) if item else b"" for item in data.get("returnData") or []]

    # ------------------------------------------------------------------
    # Request execution
    # ------------------------------------------------------------------

    def execute(self, request: BuiltRequest, wallet: Optional[Wallet] = None) -> Outcome:
        """Submit a built request: direct read for queries, signed tx otherwise."""
        if request.is_query:
            parts = self.query(request.query_payload())
            return Outcome(value=request.decode_result(parts))

        if wallet is None:
            raise GatewayError(f"{request.command} is a transaction and needs a wallet")
        return self._run_transaction(request, wallet)

    def _run_transaction(self, request: BuiltRequest, wallet: Wallet) -> Outcome:
        config = self.get_network_config()
        nonce = self.get_nonce(request.sender)
        chain_id = get_chain_id() or str(config.get("erd_chain_id", ""))
        gas_price = int(config.get("erd_min_gas_price", 1_000_000_000))

        unsigned = to_transaction(request, nonce=nonce, gas_price=gas_price, chain_id=chain_id)
        tx_hash = self.send_transaction(transaction_payload(sign_transaction(unsigned, wallet)))
        logger.info("sent %s as %s (nonce %d)", request.command, tx_hash, nonce)

        transaction = self.wait_for_completion(tx_hash)
        status = transaction.get("status", "unknown")
        if status in _FAILED_STATUSES or _signal_error(transaction) is not None:
            reason = _signal_error(transaction) or status
            raise TransactionFailed(f"{request.command} failed: {reason}", tx_hash=tx_hash)

        if request.is_deploy:
            new_address = _deployed_address(transaction) or address_codec.compute_contract_address(
                request.sender, nonce
            )
            return Outcome(
                value=new_address, tx_hash=tx_hash, status=status, contract_address=new_address
            )

        parts = _return_data(transaction)
        return Outcome(value=request.decode_result(parts), tx_hash=tx_hash, status=status)


# ---------------------------------------------------------------------------
# Transaction result parsing
# ---------------------------------------------------------------------------


def _events(transaction: dict[str, Any]) -> list[dict[str, Any]]:
    events = list((transaction.get("logs") or {}).get("events") or [])
    for result in transaction.get("smartContractResults") or []:
        events.extend((result.get("logs") or {}).get("events") or [])
    return events


def _decode_topic(topic: Optional[str]) -> bytes:
    return base64.b64decode(topic) if topic else b""


def _signal_error(transaction: dict[str, Any]) -> Optional[str]:
    """Error message of a signalError / internalVMErrors event, if any."""
    for event in _events(transaction):
        if event.get("identifier") in ("signalError", "internalVMErrors"):
            topics = event.get("topics") or []
            message = _decode_topic(topics[1]) if len(topics) > 1 else _decode_topic(event.get("data"))
            return message.decode("utf-8", errors="replace") or event["identifier"]
    return None


def _deployed_address(transaction: dict[str, Any]) -> Optional[str]:
    for event in _events(transaction):
        if event.get("identifier") == "SCDeploy":
            return event.get("address")
    return None


def _split_return(data: str) -> Optional[list[bytes]]:
    """Parse ``@6f6b@<hex>@<hex>`` into raw results (None if not a return)."""
    if not data.startswith("@"):
        return None
    parts = data.split("@")
    if len(parts) < 2 or parts[1] != _OK:
        return None
    try:
        return [bytes.fromhex(p) for p in parts[2:]]
    except ValueError as exc:
        raise DecodeError(f"malformed return data {data!r}: {exc}") from exc


def _return_data(transaction: dict[str, Any]) -> list[bytes]:
    for result in transaction.get("smartContractResults") or []:
        parsed = _split_return(result.get("data") or "")
        if parsed is not None:
            return parsed

    for event in _events(transaction):
        if event.get("identifier") in ("writeLog", "completedTxEvent") and event.get("data"):
            parsed = _split_return(_decode_topic(event["data"]).decode("ascii", errors="replace"))
            if parsed is not None:
                return parsed

    return []
