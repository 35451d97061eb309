"""
Argument Codec - MultiversX serialization of endpoint arguments and results.

Endpoint arguments are sent top-level encoded (one hex chunk per argument,
joined with '@').  Values inside structs and lists use the nested encoding:
fixed-width integers, length-prefixed buffers and big integers.

Multi-value types (optional, variadic, multi) expand to zero or more
top-level arguments instead of one.

The byte-level work is done by the ``multiversx_sdk.abi`` typed values and
``Serializer``; each type here maps plain Python values onto those typed
values and back, and parses the text form used on the command line.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from multiversx_sdk import abi

from ..errors import DecodeError, EncodingError, MalformedAddress
from ..sigil import address as address_codec

_serializer = abi.Serializer(parts_separator="@")

_DECODE_ERRORS = (ValueError, IndexError, OverflowError)


def _as_int(value: Any, type_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise EncodingError(f"{type_name} expects an integer, got {value!r}")
    return value


def _parse_int(text: str, type_name: str) -> int:
    try:
        return int(text.strip().replace("_", ""), 10)
    except ValueError:
        raise EncodingError(f"{type_name} expects a decimal integer, got {text!r}") from None


def _as_list(value: Any, type_name: str) -> Sequence[Any]:
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise EncodingError(f"{type_name} expects a list, got {value!r}")
    return value


class ArgType:
    """Base of all argument / result types."""

    name: str = "?"
    multi: bool = False

    def to_abi(self, value: Any) -> Any:
        """Typed SDK value holding ``value``."""
        raise NotImplementedError

    def prototype(self) -> Any:
        """Empty typed SDK value for the serializer to decode into."""
        raise NotImplementedError

    def from_abi(self, typed: Any) -> Any:
        """Plain Python value of a decoded typed SDK value."""
        raise NotImplementedError

    def encode(self, value: Any) -> list[bytes]:
        """Top-level encode into zero or more endpoint arguments."""
        typed = self.to_abi(value)
        try:
            return [bytes(part) for part in _serializer.serialize_to_parts([typed])]
        except (ValueError, OverflowError) as exc:
            raise EncodingError(f"cannot encode {value!r} as {self.name}: {exc}") from exc

    def decode(self, parts: Sequence[bytes]) -> Any:
        """Decode from top-level return data."""
        if not self.multi and len(parts) != 1:
            raise DecodeError(f"{self.name} expects one result, got {len(parts)}")
        typed = self.prototype()
        try:
            _serializer.deserialize_parts(list(parts), [typed])
        except _DECODE_ERRORS as exc:
            raise DecodeError(f"cannot decode {self.name}: {exc}") from exc
        return self.from_abi(typed)

    @property
    def arity(self) -> int:
        return 1

    def top_encode(self, value: Any) -> bytes:
        parts = self.encode(value)
        if len(parts) != 1:
            raise EncodingError(f"{self.name} does not encode to a single argument")
        return parts[0]

    def top_decode(self, data: bytes) -> Any:
        return self.decode([data])

    def parse(self, text: str) -> Any:
        raise NotImplementedError

    def __repr__(self) -> str:
        return self.name


class UInt(ArgType):
    """Fixed-width unsigned integer (u32 / u64)."""

    _TYPED = {32: abi.U32Value, 64: abi.U64Value}

    def __init__(self, bits: int) -> None:
        self.bits = bits
        self.name = f"u{bits}"
        self._typed = self._TYPED[bits]

    def _check(self, value: Any) -> int:
        value = _as_int(value, self.name)
        if not 0 <= value < (1 << self.bits):
            raise EncodingError(f"{value} out of range for {self.name}")
        return value

    def to_abi(self, value: Any) -> Any:
        return self._typed(self._check(value))

    def prototype(self) -> Any:
        return self._typed()

    def from_abi(self, typed: Any) -> int:
        return int(typed.value)

    def parse(self, text: str) -> int:
        return _parse_int(text, self.name)


class BigUInt(ArgType):
    name = "BigUint"

    def to_abi(self, value: Any) -> Any:
        value = _as_int(value, self.name)
        if value < 0:
            raise EncodingError(f"{self.name} cannot be negative: {value}")
        return abi.BigUIntValue(value)

    def prototype(self) -> Any:
        return abi.BigUIntValue()

    def from_abi(self, typed: Any) -> int:
        return int(typed.value)

    def parse(self, text: str) -> int:
        return _parse_int(text, self.name)


class BigInt(ArgType):
    """Arbitrary precision signed integer, minimal two's complement."""

    name = "BigInt"

    def to_abi(self, value: Any) -> Any:
        return abi.BigIntValue(_as_int(value, self.name))

    def prototype(self) -> Any:
        return abi.BigIntValue()

    def from_abi(self, typed: Any) -> int:
        return int(typed.value)

    def parse(self, text: str) -> int:
        return _parse_int(text, self.name)


class Bool(ArgType):
    name = "bool"

    _TRUE = {"true", "1", "yes"}
    _FALSE = {"false", "0", "no"}

    def to_abi(self, value: Any) -> Any:
        if not isinstance(value, bool):
            raise EncodingError(f"bool expects True or False, got {value!r}")
        return abi.BoolValue(value)

    def prototype(self) -> Any:
        return abi.BoolValue()

    def from_abi(self, typed: Any) -> bool:
        return bool(typed.value)

    def parse(self, text: str) -> bool:
        lowered = text.strip().lower()
        if lowered in self._TRUE:
            return True
        if lowered in self._FALSE:
            return False
        raise EncodingError(f"bool expects true/false, got {text!r}")


class Buffer(ArgType):
    """Raw byte buffer (ManagedBuffer).  Text is stored as UTF-8."""

    name = "bytes"

    def to_abi(self, value: Any) -> Any:
        if isinstance(value, str):
            return abi.BytesValue(value.encode("utf-8"))
        if isinstance(value, (bytes, bytearray)):
            return abi.BytesValue(bytes(value))
        raise EncodingError(f"{self.name} expects text or bytes, got {value!r}")

    def prototype(self) -> Any:
        return abi.BytesValue()

    def from_abi(self, typed: Any) -> Any:
        data = bytes(typed.value)
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError:
            return data

    def parse(self, text: str) -> str:
        return text


class TokenIdentifier(Buffer):
    name = "TokenIdentifier"

    def to_abi(self, value: Any) -> Any:
        if not isinstance(value, str):
            raise EncodingError(f"{self.name} expects text, got {value!r}")
        if not value.isascii():
            raise EncodingError(f"token identifier must be ASCII: {value!r}")
        return abi.TokenIdentifierValue(value)

    def prototype(self) -> Any:
        return abi.TokenIdentifierValue()

    def from_abi(self, typed: Any) -> str:
        value = typed.value
        if isinstance(value, (bytes, bytearray)):
            value = bytes(value).decode("utf-8", errors="replace")
        if not value.isascii():
            raise DecodeError(f"token identifier is not ASCII: {value!r}")
        return value


class Address(ArgType):
    name = "Address"

    def to_abi(self, value: Any) -> Any:
        if isinstance(value, (bytes, bytearray)) and len(value) == address_codec.ADDRESS_LENGTH:
            return abi.AddressValue(bytes(value))
        try:
            return abi.AddressValue(address_codec.decode(value))
        except MalformedAddress as exc:
            raise EncodingError(str(exc)) from exc

    def prototype(self) -> Any:
        return abi.AddressValue()

    def from_abi(self, typed: Any) -> str:
        try:
            return address_codec.encode(bytes(typed.value))
        except MalformedAddress as exc:
            raise DecodeError(str(exc)) from exc

    def parse(self, text: str) -> str:
        return text.strip()


class ListOf(ArgType):
    """Homogeneous list (ManagedVec): length-prefixed when nested."""

    def __init__(self, item: ArgType) -> None:
        self.item = item
        self.name = f"List<{item.name}>"

    def to_abi(self, value: Any) -> Any:
        return abi.ListValue([self.item.to_abi(v) for v in _as_list(value, self.name)])

    def prototype(self) -> Any:
        return abi.ListValue([], item_creator=self.item.prototype)

    def from_abi(self, typed: Any) -> list[Any]:
        return [self.item.from_abi(v) for v in typed.items]

    def parse(self, text: str) -> list[Any]:
        if not text.strip():
            return []
        return [self.item.parse(part) for part in text.split(",")]


class Struct(ArgType):
    """Named record; fields are nested-encoded back to back."""

    def __init__(self, name: str, fields: Sequence[tuple[str, ArgType]]) -> None:
        self.name = name
        self.fields = tuple(fields)

    def _field_values(self, value: Any) -> list[Any]:
        names = [field_name for field_name, _ in self.fields]
        if isinstance(value, Mapping):
            missing = [n for n in names if n not in value]
            if missing:
                raise EncodingError(f"{self.name} missing fields: {', '.join(missing)}")
            return [value[n] for n in names]
        if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
            if len(value) != len(names):
                raise EncodingError(
                    f"{self.name} expects {len(names)} fields, got {len(value)}"
                )
            return list(value)
        raise EncodingError(f"{self.name} expects a mapping or sequence, got {value!r}")

    def to_abi(self, value: Any) -> Any:
        return abi.StructValue(
            [
                abi.Field(field_name, field_type.to_abi(v))
                for (field_name, field_type), v in zip(self.fields, self._field_values(value))
            ]
        )

    def prototype(self) -> Any:
        return abi.StructValue(
            [abi.Field(field_name, field_type.prototype()) for field_name, field_type in self.fields]
        )

    def from_abi(self, typed: Any) -> dict[str, Any]:
        return {
            field_name: field_type.from_abi(field.value)
            for (field_name, field_type), field in zip(self.fields, typed.fields)
        }

    def parse(self, text: str) -> dict[str, Any]:
        if len(self.fields) == 1:
            field_name, field_type = self.fields[0]
            return {field_name: field_type.parse(text)}
        parts = text.split(":", len(self.fields) - 1)
        if len(parts) != len(self.fields):
            raise EncodingError(
                f"{self.name} expects {len(self.fields)} ':'-separated fields, got {text!r}"
            )
        return {
            field_name: field_type.parse(part)
            for (field_name, field_type), part in zip(self.fields, parts)
        }


# ---------------------------------------------------------------------------
# Multi-value types: expand to a variable number of top-level arguments
# ---------------------------------------------------------------------------


class MultiValue(ArgType):
    """Fixed group of values sent as consecutive arguments."""

    multi = True

    def __init__(self, *items: ArgType) -> None:
        self.items = items
        self.name = f"multi<{','.join(i.name for i in items)}>"

    @property
    def arity(self) -> int:
        return sum(i.arity for i in self.items)

    def to_abi(self, value: Any) -> Any:
        if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
            raise EncodingError(f"{self.name} expects a tuple, got {value!r}")
        if len(value) != len(self.items):
            raise EncodingError(f"{self.name} expects {len(self.items)} values, got {len(value)}")
        return abi.MultiValue([item.to_abi(v) for item, v in zip(self.items, value)])

    def prototype(self) -> Any:
        return abi.MultiValue([item.prototype() for item in self.items])

    def from_abi(self, typed: Any) -> tuple[Any, ...]:
        return tuple(item.from_abi(v) for item, v in zip(self.items, typed.items))

    def decode(self, parts: Sequence[bytes]) -> tuple[Any, ...]:
        if len(parts) != self.arity:
            raise DecodeError(f"{self.name} expects {self.arity} results, got {len(parts)}")
        return super().decode(parts)

    def parse(self, text: str) -> tuple[Any, ...]:
        parts = text.split(":")
        if len(parts) != len(self.items):
            raise EncodingError(
                f"{self.name} expects {len(self.items)} ':'-separated values, got {text!r}"
            )
        return tuple(item.parse(p) for item, p in zip(self.items, parts))


class OptionalValue(ArgType):
    """Trailing optional argument: omitted entirely when absent."""

    multi = True

    def __init__(self, item: ArgType) -> None:
        self.item = item
        self.name = f"optional<{item.name}>"

    def to_abi(self, value: Any) -> Any:
        return abi.OptionalValue(None if value is None else self.item.to_abi(value))

    def decode(self, parts: Sequence[bytes]) -> Any:
        if not parts:
            return None
        return self.item.decode(parts)

    def parse(self, text: str) -> Any:
        if not text.strip():
            return None
        return self.item.parse(text)


class Variadic(ArgType):
    """Any number of trailing arguments of the same type."""

    multi = True

    def __init__(self, item: ArgType) -> None:
        self.item = item
        self.name = f"variadic<{item.name}>"

    def to_abi(self, value: Any) -> Any:
        return abi.VariadicValues([self.item.to_abi(v) for v in _as_list(value, self.name)])

    def prototype(self) -> Any:
        return abi.VariadicValues([], item_creator=self.item.prototype)

    def from_abi(self, typed: Any) -> list[Any]:
        return [self.item.from_abi(v) for v in typed.items]

    def decode(self, parts: Sequence[bytes]) -> list[Any]:
        if len(parts) % self.item.arity:
            raise DecodeError(f"{len(parts)} results do not split into {self.name}")
        return super().decode(parts)

    def parse(self, text: str) -> Any:
        return self.item.parse(text)


# ---------------------------------------------------------------------------
# Shared instances
# ---------------------------------------------------------------------------

U32 = UInt(32)
U64 = UInt(64)
BIG_UINT = BigUInt()
BIG_INT = BigInt()
BOOL = Bool()
BUFFER = Buffer()
TOKEN_IDENTIFIER = TokenIdentifier()
ADDRESS = Address()



def hex_args(args: Sequence[bytes]) -> list[str]:
    """Hex form of encoded arguments, as used in call data and queries."""
    return [arg.hex() for arg in args]
