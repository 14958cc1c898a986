"""Canonical, transport-independent encoding of published records.

Blocks are encoded as UTF-8 JSON using the records' wire field names. Big
integers are decimal strings, byte sequences are 0x-prefixed hex and the block
time is an ISO-8601 UTC instant. Decoding the output reproduces the record
exactly.

Code entries carry the raw bytecode; the code hash travels next to it as the
entry key.
"""
import re

from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from block_stream.errors import EncodingError
from block_stream.records import BlockRecord, CodeRecord

CODE_HASH_PATTERN = re.compile(r'^0x[0-9a-fA-F]{64}$')


def encode_block(record: BlockRecord) -> bytes:
    try:
        return record.model_dump_json(by_alias=True).encode('utf-8')
    except (PydanticSerializationError, ValueError, TypeError) as e:
        raise EncodingError(f"Failed to encode block {record.hash}: {str(e)}") from e


def decode_block(payload: bytes) -> BlockRecord:
    try:
        return BlockRecord.model_validate_json(payload)
    except ValidationError as e:
        raise EncodingError(f"Failed to decode block payload: {str(e)}") from e


def encode_code(record: CodeRecord) -> bytes:
    if not CODE_HASH_PATTERN.match(record.hash):
        raise EncodingError(f"Invalid code hash {record.hash!r}")
    return bytes(record.code)
