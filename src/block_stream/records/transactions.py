from typing import Optional

from pydantic import BaseModel, Field

from .fields import BigInt, HexData


class TransactionRecord(BaseModel):
    model_config = {
        "arbitrary_types_allowed": False,
        "frozen": True,
        "populate_by_name": True,
    }

    from_address: str = Field(alias="from", min_length=1)
    # Empty for contract creation
    to_address: str = Field(default="", alias="to")
    type: int
    nonce: int
    gas: int
    gas_price: BigInt = Field(alias="gasPrice")
    # Gas fee cap; equals gasPrice for legacy and access-list transactions
    max_fee_per_gas: BigInt = Field(alias="maxFeePerGas")
    value: BigInt
    hash: str
    input: HexData = b""
    size: Optional[int] = None
    chain_id: Optional[int] = Field(default=None, alias="chainId")

    @property
    def is_contract_creation(self) -> bool:
        return self.to_address == ""
