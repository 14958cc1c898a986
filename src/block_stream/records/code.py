from pydantic import BaseModel

from .fields import HexData


class CodeRecord(BaseModel):
    model_config = {
        "arbitrary_types_allowed": False,
        "frozen": True,
    }

    hash: str
    # Empty bytecode is valid (account without code)
    code: HexData = b""
