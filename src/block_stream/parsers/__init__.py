from .blocks import BlockParser, build_block_record
from .transactions import TransactionParser, normalize_transaction

__all__ = [
    "BlockParser",
    "TransactionParser",
    "build_block_record",
    "normalize_transaction",
]
