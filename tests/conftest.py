"""
Pytest fixtures for block_stream tests. Transactions are signed with a fixed
test key so sender recovery runs against real signatures.
"""

from __future__ import annotations

from typing import List

import pytest
from eth_account import Account
from hexbytes import HexBytes
from web3 import Web3

from block_stream.errors import TransportPublishError
from block_stream.transports import BaseTransport

TEST_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
RECIPIENT = Web3.to_checksum_address("0x" + "abcd" * 10)
BLOCK_HASH = "0x" + "11" * 32


@pytest.fixture
def account():
    return Account.from_key(TEST_KEY)


def make_transaction(account, nonce: int = 5, **overrides) -> dict:
    """Sign a transaction and shape it like a node's full-transaction response"""
    unsigned = {
        "nonce": nonce,
        "gas": 21000,
        "gasPrice": 2_000_000_000,
        "to": RECIPIENT,
        "value": 1_000_000_000_000_000_000,
        "data": b"",
        "chainId": 1,
    }
    if "maxFeePerGas" in overrides:
        del unsigned["gasPrice"]
    unsigned.update(overrides)
    signed = account.sign_transaction(unsigned)

    tx = {
        "hash": HexBytes(signed.hash),
        "from": account.address,
        "to": unsigned.get("to"),
        "nonce": nonce,
        "gas": unsigned["gas"],
        "gasPrice": unsigned.get("gasPrice", unsigned.get("maxFeePerGas")),
        "value": unsigned["value"],
        "input": HexBytes(unsigned["data"]),
        "type": unsigned.get("type", 0),
        "chainId": unsigned["chainId"],
        "raw": HexBytes(signed.raw_transaction),
    }
    if "maxFeePerGas" in unsigned:
        tx["maxFeePerGas"] = unsigned["maxFeePerGas"]
        tx["maxPriorityFeePerGas"] = unsigned["maxPriorityFeePerGas"]
    return tx


def make_receipt(tx: dict, contract_address: str | None = None) -> dict:
    return {
        "transactionHash": tx["hash"],
        "status": 1,
        "gasUsed": 21000,
        "cumulativeGasUsed": 21000,
        "logs": [],
        "logsBloom": HexBytes(b"\x00" * 256),
        "contractAddress": contract_address,
    }


def make_block(transactions: List[dict], **overrides) -> dict:
    block = {
        "baseFeePerGas": 1_000_000_000,
        "difficulty": 0,
        "extraData": HexBytes(b"builder"),
        "gasLimit": 30_000_000,
        "gasUsed": 21000 * len(transactions),
        "hash": HexBytes(BLOCK_HASH),
        "logsBloom": HexBytes(b"\x00" * 256),
        "miner": "0x" + "22" * 20,
        "mixHash": HexBytes("0x" + "33" * 32),
        "nonce": HexBytes(b"\x00" * 8),
        "number": 19_000_000,
        "parentHash": HexBytes("0x" + "44" * 32),
        "receiptsRoot": HexBytes("0x" + "55" * 32),
        "sha3Uncles": HexBytes("0x" + "66" * 32),
        "size": 1234,
        "stateRoot": HexBytes("0x" + "77" * 32),
        "timestamp": 1_700_000_000,
        "transactions": transactions,
        "transactionsRoot": HexBytes("0x" + "88" * 32),
    }
    block.update(overrides)
    return block


class FakeTransport(BaseTransport):
    """Records every write; raises TransportPublishError when ``fail`` is set"""

    def __init__(self, chain_name: str = "ethereum", **kwargs):
        self.chain_name = chain_name
        self.fail = kwargs.get("fail", False)
        self.blocks: List[tuple] = []
        self.code: List[tuple] = []
        # Channel of every successful write, in order
        self.writes: List[str] = []
        self.attempts = 0
        self.closed = False
        self._init_locks()

    def append_code(self, code_hash: str, payload: bytes) -> None:
        self.attempts += 1
        if self.fail:
            raise TransportPublishError("block-code", code_hash, "connection refused")
        with self._code_lock:
            self.code.append((code_hash, payload))
            self.writes.append("block-code")

    def publish_block(self, block_hash: str, payload: bytes) -> None:
        self.attempts += 1
        if self.fail:
            raise TransportPublishError("block-transactions", block_hash, "connection refused")
        with self._block_lock:
            self.blocks.append((block_hash, payload))
            self.writes.append("block-transactions")

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def failing_transport():
    return FakeTransport(fail=True)


@pytest.fixture
def tx_factory(account):
    def factory(nonce: int = 5, **overrides) -> dict:
        return make_transaction(account, nonce=nonce, **overrides)
    return factory


@pytest.fixture
def receipt_factory():
    return make_receipt


@pytest.fixture
def block_factory():
    return make_block
