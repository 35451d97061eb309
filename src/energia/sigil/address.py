"""
Address Codec - bech32 <-> 32-byte public key.

MultiversX accounts and contracts are identified by a 32-byte public key.
The human-readable form is bech32 with the ``erd`` prefix.  The checksum,
the contract flag and contract address derivation come from
``multiversx_sdk.Address`` / ``AddressComputer``; this module pins the
``erd`` prefix and turns SDK failures into ``MalformedAddress``.
"""

from __future__ import annotations

from multiversx_sdk import Address, AddressComputer

from ..errors import MalformedAddress

HRP = "erd"
ADDRESS_LENGTH = 32

# VM type of WASM contracts, sent as the deploy VM argument
WASM_VM_TYPE = b"\x05\x00"

_address_computer = AddressComputer()


def encode(pubkey: bytes) -> str:
    """
    Convert a 32-byte public key to its bech32 text form.

    Raises:
        MalformedAddress: If the input is not exactly 32 bytes
    """
    if len(pubkey) != ADDRESS_LENGTH:
        raise MalformedAddress(
            f"address must be {ADDRESS_LENGTH} bytes, got {len(pubkey)}"
        )
    return Address(bytes(pubkey), HRP).to_bech32()


def parse(text: str) -> Address:
    """
    Parse bech32 text into an SDK ``Address`` with the ``erd`` prefix.

    Raises:
        MalformedAddress: If the checksum, prefix or payload length is wrong
    """
    if not isinstance(text, str) or not text.strip():
        raise MalformedAddress(f"not an address: {text!r}")

    try:
        address = Address.new_from_bech32(text.strip())
    except Exception as exc:
        raise MalformedAddress(f"invalid bech32 address: {text!r}") from exc

    if address.get_hrp() != HRP:
        raise MalformedAddress(
            f"expected '{HRP}' prefix, got '{address.get_hrp()}': {text!r}"
        )
    if len(address.get_public_key()) != ADDRESS_LENGTH:
        raise MalformedAddress(f"address payload is not {ADDRESS_LENGTH} bytes: {text!r}")
    return address


def decode(text: str) -> bytes:
    """Convert a bech32 address to its 32-byte public key."""
    return bytes(parse(text).get_public_key())


def is_valid(text: str) -> bool:
    try:
        parse(text)
    except MalformedAddress:
        return False
    return True


def is_contract(text: str) -> bool:
    """Contract addresses start with eight zero bytes."""
    return parse(text).is_smart_contract()


def compute_contract_address(deployer: str, nonce: int) -> str:
    """
    Predict the address a deploy transaction will create.

    Args:
        deployer: bech32 address of the deploying account
        nonce: account nonce of the deploy transaction

    Returns:
        bech32 address of the new contract
    """
    deployed = _address_computer.compute_contract_address(parse(deployer), nonce)
    return deployed.to_bech32()


# Receiver of deploy transactions ("create new account")
ZERO_ADDRESS = encode(bytes(ADDRESS_LENGTH))
