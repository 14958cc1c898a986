from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .fields import BigInt, HexData
from .transactions import TransactionRecord


class BlockRecord(BaseModel):
    model_config = {
        "arbitrary_types_allowed": False,
        "frozen": True,
        "populate_by_name": True,
    }

    # None on chains without a fee market
    base_fee: Optional[BigInt] = Field(default=None, alias="baseFee")
    bloom: str
    coinbase: str
    difficulty: BigInt
    extra: HexData = b""
    gas_limit: int = Field(alias="gasLimit")
    gas_used: int = Field(alias="gasUsed")
    hash: str
    header: Dict[str, Any]
    mix_digest: str = Field(alias="mixDigest")
    nonce: str
    # Decimal string, block numbers may outgrow downstream integer types
    number: str
    parent_hash: str = Field(alias="parentHash")
    receipt_hash: str = Field(alias="receiptHash")
    root: str
    size: int
    time: datetime
    transactions: List[TransactionRecord] = []
    receipts: List[Dict[str, Any]] = []
