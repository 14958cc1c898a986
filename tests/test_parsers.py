from datetime import datetime, timezone

import pytest
from hexbytes import HexBytes
from web3 import Web3

from block_stream.errors import ReceiptMismatchError, SignatureRecoveryError
from block_stream.parsers import build_block_record, normalize_transaction
from block_stream.signers import RawTransactionSigner, ReportedSenderSigner

RECIPIENT = Web3.to_checksum_address("0x" + "abcd" * 10)


def test_normalize_legacy_transaction(tx_factory, account):
    tx = tx_factory()

    record = normalize_transaction(tx, RawTransactionSigner())

    assert record.from_address == account.address
    assert record.to_address == RECIPIENT
    assert record.nonce == 5
    assert record.gas == 21000
    assert record.gas_price == 2_000_000_000
    assert record.value == 1_000_000_000_000_000_000
    assert record.max_fee_per_gas == 2_000_000_000
    assert record.input == b""
    assert record.hash == "0x" + bytes(tx["hash"]).hex()
    assert record.size == len(tx["raw"])
    assert record.chain_id == 1
    assert record.type == 0


def test_normalize_dynamic_fee_transaction(tx_factory):
    tx = tx_factory(
        type=2,
        maxFeePerGas=30_000_000_000,
        maxPriorityFeePerGas=1_000_000_000,
        data=b"\xa9\x05\x9c\xbb",
    )

    record = normalize_transaction(tx, RawTransactionSigner())

    assert record.type == 2
    assert record.max_fee_per_gas == 30_000_000_000
    assert record.input == b"\xa9\x05\x9c\xbb"


def test_access_list_transaction_fee_cap_is_gas_price(tx_factory):
    tx = tx_factory(type=1, accessList=[], gasPrice=3_000_000_000)

    record = normalize_transaction(tx, RawTransactionSigner())

    assert record.type == 1
    assert record.max_fee_per_gas == 3_000_000_000
    assert record.max_fee_per_gas == record.gas_price


def test_contract_creation_has_empty_recipient(account):
    tx = {
        "hash": HexBytes("0x" + "99" * 32),
        "from": account.address.lower(),
        "to": None,
        "nonce": 0,
        "gas": 500_000,
        "gasPrice": 1,
        "value": 0,
        "input": HexBytes("0x6080604052"),
        "type": 0,
    }

    record = normalize_transaction(tx, ReportedSenderSigner())

    assert record.to_address == ""
    assert record.is_contract_creation
    assert record.from_address == account.address
    assert record.size is None


def test_normalize_fails_when_sender_cannot_be_recovered(tx_factory):
    tx = tx_factory()
    tx["raw"] = HexBytes(b"\x01\x02\x03")

    with pytest.raises(SignatureRecoveryError) as exc_info:
        normalize_transaction(tx, RawTransactionSigner())

    assert exc_info.value.tx_hash == "0x" + bytes(tx["hash"]).hex()


def test_build_block_record(tx_factory, receipt_factory, block_factory):
    transactions = [tx_factory(nonce=n) for n in range(3)]
    receipts = [receipt_factory(tx) for tx in transactions]
    block = block_factory(transactions)

    record = build_block_record(block, receipts, RawTransactionSigner())

    assert record.number == "19000000"
    assert record.base_fee == 1_000_000_000
    assert record.coinbase == Web3.to_checksum_address("0x" + "22" * 20)
    assert record.extra == b"builder"
    assert record.hash == "0x" + "11" * 32
    assert record.receipt_hash == "0x" + "55" * 32
    assert record.root == "0x" + "77" * 32
    assert record.nonce == "0x0000000000000000"
    assert record.time == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)
    assert [t.nonce for t in record.transactions] == [0, 1, 2]
    assert [r["transactionHash"] for r in record.receipts] == [t.hash for t in record.transactions]
    assert "transactions" not in record.header
    assert record.header["number"] == hex(19_000_000)
    assert record.receipts[0]["status"] == "0x1"
    assert record.header["hash"] == "0x" + "11" * 32


def test_build_empty_block(block_factory):
    block = block_factory([], baseFeePerGas=None)

    record = build_block_record(block, [], RawTransactionSigner())

    assert record.transactions == []
    assert record.receipts == []
    assert record.base_fee is None


def test_build_block_is_all_or_nothing(tx_factory, receipt_factory, block_factory):
    transactions = [tx_factory(nonce=n) for n in range(3)]
    transactions[2]["raw"] = HexBytes(b"")
    receipts = [receipt_factory(tx) for tx in transactions]

    with pytest.raises(SignatureRecoveryError):
        build_block_record(block_factory(transactions), receipts, RawTransactionSigner())


def test_build_block_rejects_receipt_count_mismatch(tx_factory, receipt_factory, block_factory):
    transactions = [tx_factory(nonce=n) for n in range(2)]
    receipts = [receipt_factory(transactions[0])]

    with pytest.raises(ReceiptMismatchError) as exc_info:
        build_block_record(block_factory(transactions), receipts, RawTransactionSigner())

    assert exc_info.value.transaction_count == 2
    assert exc_info.value.receipt_count == 1
