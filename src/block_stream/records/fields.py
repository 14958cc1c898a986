from typing import Annotated, Any

from hexbytes import HexBytes
from pydantic import BeforeValidator, PlainSerializer


def _parse_int(value: Any) -> Any:
    # Big integers travel as decimal strings
    if isinstance(value, str):
        return int(value, 0) if value.startswith("0x") else int(value)
    return value


def _parse_hex(value: Any) -> Any:
    if isinstance(value, str):
        return bytes(HexBytes(value))
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    return value


def _to_decimal(value: int) -> str:
    return str(value)


def _to_hex(value: bytes) -> str:
    return '0x' + value.hex()


# Arbitrary-precision integer, serialized as a decimal string in JSON
BigInt = Annotated[
    int,
    BeforeValidator(_parse_int),
    PlainSerializer(_to_decimal, return_type=str, when_used="json"),
]

# Byte sequence, serialized as 0x-prefixed hex in JSON
HexData = Annotated[
    bytes,
    BeforeValidator(_parse_hex),
    PlainSerializer(_to_hex, return_type=str, when_used="json"),
]
