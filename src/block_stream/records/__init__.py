from .blocks import BlockRecord
from .code import CodeRecord
from .fields import BigInt, HexData
from .transactions import TransactionRecord

__all__ = [
    "BigInt",
    "BlockRecord",
    "CodeRecord",
    "HexData",
    "TransactionRecord",
]
