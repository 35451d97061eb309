"""
Endpoint Registry - durable record of the target contract address.

The record is a single TOML file holding one optional key,
``contract_address``.  An absent file means no contract has been
deployed yet.

``Registry.open`` is the scoped form used by the dispatcher: the record
is written back on every exit path, success or failure.
"""

from __future__ import annotations

import contextlib
import logging
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

import tomli_w

from .errors import CorruptState, MalformedAddress, NoContractDeployed
from .sigil import address as address_codec

logger = logging.getLogger(__name__)

DEFAULT_STATE_FILE = Path("state.toml")


def get_state_path() -> Path:
    """Get the state file path from environment or default."""
    configured = os.environ.get("ENERGIA_STATE_FILE")
    return Path(configured).expanduser() if configured else DEFAULT_STATE_FILE


@dataclass
class Registry:
    """
    Single-slot record of the deployed contract.

    Attributes:
        path: Backing TOML file
        contract_address: bech32 address, None until a deploy succeeded
    """

    path: Path
    contract_address: Optional[str] = None

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "Registry":
        """
        Read the record from disk.

        Returns:
            Registry (empty if the file does not exist)

        Raises:
            CorruptState: If the file exists but cannot be parsed
        """
        path = path or get_state_path()
        if not path.exists():
            logger.debug("no state at %s, starting empty", path)
            return cls(path)

        try:
            data = tomllib.loads(path.read_text(encoding="utf-8"))
        except (tomllib.TOMLDecodeError, UnicodeDecodeError) as exc:
            raise CorruptState(f"invalid TOML in {path}: {exc}") from exc

        address = data.get("contract_address")
        if address is None:
            return cls(path)
        if not isinstance(address, str):
            raise CorruptState(f"contract_address in {path} must be a string")
        try:
            address_codec.decode(address)
        except MalformedAddress as exc:
            raise CorruptState(f"contract_address in {path}: {exc}") from exc

        return cls(path, address)

    @classmethod
    @contextlib.contextmanager
    def open(cls, path: Optional[Path] = None) -> Iterator["Registry"]:
        """Load the registry and persist it when the block exits, however it exits."""
        registry = cls.load(path)
        try:
            yield registry
        finally:
            registry.persist()

    def set_address(self, address: str) -> None:
        address_codec.decode(address)
        if self.contract_address and self.contract_address != address:
            logger.info("replacing contract %s with %s", self.contract_address, address)
        self.contract_address = address

    def current_address(self) -> str:
        if self.contract_address is None:
            raise NoContractDeployed()
        return self.contract_address

    @property
    def has_contract(self) -> bool:
        return self.contract_address is not None

    def to_dict(self) -> dict[str, str]:
        if self.contract_address is None:
            return {}
        return {"contract_address": self.contract_address}

    def persist(self) -> None:
        """Write the full record, overwriting any prior content."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("wb") as f:
            tomli_w.dump(self.to_dict(), f)
        logger.debug("state written to %s", self.path)
