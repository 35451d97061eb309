"""
Ed25519 Wallet Identity for the energy-factory interactor.

The sender identity is a MultiversX PEM file holding the Ed25519 seed and
public key.  It is fixed for the lifetime of the process and used to:
- derive the sender address
- sign transactions before broadcast

The PEM path comes from WALLET_PEM (environment or ~/.energia/.env) and
defaults to ~/.energia/wallet.pem.

Dependencies: multiversx-sdk (UserSigner, UserPEM), python-dotenv
"""

from __future__ import annotations

import os
import secrets
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from multiversx_sdk import UserPEM, UserSecretKey, UserSigner

from ..errors import MalformedAddress, WalletError
from . import address as address_codec


# Default config directory
ENERGIA_DIR = Path.home() / ".energia"
ENERGIA_ENV = ENERGIA_DIR / ".env"
DEFAULT_WALLET_PEM = ENERGIA_DIR / "wallet.pem"

SEED_LENGTH = 32


def load_env(env_path: Optional[Path] = None) -> None:
    """Load ~/.energia/.env into the process environment (if present).

    Values already set in the environment win over the file.
    """
    env_path = env_path or ENERGIA_ENV
    if env_path.exists():
        load_dotenv(env_path, override=False)


def get_wallet_path() -> Path:
    """Get the PEM path from environment or default."""
    configured = os.environ.get("WALLET_PEM")
    return Path(configured).expanduser() if configured else DEFAULT_WALLET_PEM


@dataclass(frozen=True)
class Wallet:
    """Opaque signer handle with one derived address."""

    _signer: UserSigner
    address: str

    @classmethod
    def from_signer(cls, signer: UserSigner) -> "Wallet":
        address = signer.get_pubkey().to_address(address_codec.HRP).to_bech32()
        return cls(signer, address)

    @classmethod
    def from_seed(cls, seed: bytes) -> "Wallet":
        if len(seed) != SEED_LENGTH:
            raise WalletError(f"Ed25519 seed must be {SEED_LENGTH} bytes, got {len(seed)}")
        return cls.from_signer(UserSigner(UserSecretKey(bytes(seed))))

    @property
    def pubkey(self) -> bytes:
        return address_codec.decode(self.address)

    def sign(self, message: bytes) -> bytes:
        """Sign raw bytes.  Returns the 64-byte Ed25519 signature."""
        return bytes(self._signer.sign(message))

    def __repr__(self) -> str:
        return f"Wallet(address={self.address!r})"


def load_wallet(pem_path: Optional[Path] = None) -> Wallet:
    """
    Load the sender wallet from a MultiversX PEM file.

    Args:
        pem_path: Path to the PEM file (default: WALLET_PEM or ~/.energia/wallet.pem)

    Returns:
        Wallet instance for signing transactions

    Raises:
        WalletError: If the file is missing or cannot be parsed
    """
    pem_path = pem_path or get_wallet_path()
    if not pem_path.exists():
        raise WalletError(
            f"Wallet PEM not found: {pem_path}. Set WALLET_PEM in {ENERGIA_ENV} "
            f"or the environment."
        )
    if "-----BEGIN" not in pem_path.read_text(encoding="utf-8"):
        raise WalletError(f"No key material in {pem_path}")

    try:
        return Wallet.from_signer(UserSigner.from_pem_file(pem_path))
    except Exception as exc:
        raise WalletError(f"Malformed PEM {pem_path}: {exc}") from exc


def generate_wallet() -> tuple[bytes, Wallet]:
    """
    Generate a fresh Ed25519 keypair.

    Returns:
        Tuple of (seed, wallet)
    """
    seed = secrets.token_bytes(SEED_LENGTH)
    return seed, Wallet.from_seed(seed)


def save_pem(seed: bytes, pem_path: Path) -> Path:
    """
    Write a seed to a MultiversX PEM file labelled with its address.

    Returns:
        Path to the saved PEM file
    """
    wallet = Wallet.from_seed(seed)
    text = UserPEM(wallet.address, UserSecretKey(bytes(seed))).to_text()

    pem_path.parent.mkdir(parents=True, exist_ok=True)
    pem_path.write_text(text if text.endswith("\n") else text + "\n", encoding="utf-8")

    # Set secure permissions on Unix
    if os.name != "nt":
        pem_path.chmod(0o600)

    return pem_path


def get_address(pem_path: Optional[Path] = None) -> str:
    """
    Get the bech32 address of the configured wallet.

    Returns:
        erd1-prefixed address
    """
    try:
        return load_wallet(pem_path).address
    except MalformedAddress as exc:
        raise WalletError(str(exc)) from exc
