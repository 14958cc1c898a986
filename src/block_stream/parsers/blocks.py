from typing import Any, Dict, List, Mapping, Sequence

from loguru import logger
from web3 import Web3

from block_stream.errors import ReceiptMismatchError
from block_stream.records import BlockRecord
from block_stream.signers import Signer
from block_stream.utils import hex_to_str, to_jsonable, unix_to_utc
from .transactions import normalize_transaction

ZERO_HASH = b'\x00' * 32
ZERO_NONCE = b'\x00' * 8

# Keys of a node block response that belong to the chain header
HEADER_FIELDS = (
    'parentHash',
    'sha3Uncles',
    'miner',
    'stateRoot',
    'transactionsRoot',
    'receiptsRoot',
    'logsBloom',
    'difficulty',
    'number',
    'gasLimit',
    'gasUsed',
    'timestamp',
    'extraData',
    'mixHash',
    'nonce',
    'baseFeePerGas',
    'withdrawalsRoot',
    'blobGasUsed',
    'excessBlobGas',
    'parentBeaconBlockRoot',
    'requestsHash',
    'hash',
)


class BlockParser:
    @staticmethod
    def parse_raw(raw_block: Mapping[str, Any]) -> dict:
        return {
            'base_fee': raw_block.get('baseFeePerGas'),
            'bloom': hex_to_str(raw_block['logsBloom']),
            'coinbase': Web3.to_checksum_address(raw_block['miner']),
            'difficulty': raw_block.get('difficulty') or 0,
            'extra': bytes(raw_block.get('extraData') or b""),
            'gas_limit': raw_block['gasLimit'],
            'gas_used': raw_block['gasUsed'],
            'hash': hex_to_str(raw_block['hash']),
            'header': BlockParser.parse_header(raw_block),
            'mix_digest': hex_to_str(raw_block.get('mixHash') or ZERO_HASH),
            'nonce': hex_to_str(raw_block.get('nonce') or ZERO_NONCE),
            'number': str(raw_block['number']),
            'parent_hash': hex_to_str(raw_block['parentHash']),
            'receipt_hash': hex_to_str(raw_block['receiptsRoot']),
            'root': hex_to_str(raw_block['stateRoot']),
            'size': raw_block['size'],
            'time': unix_to_utc(raw_block['timestamp'], date_only=False),
        }

    @staticmethod
    def parse_header(raw_block: Mapping[str, Any]) -> Dict[str, Any]:
        header = {key: raw_block[key] for key in HEADER_FIELDS if raw_block.get(key) is not None}
        return to_jsonable(header)


def build_block_record(
    raw_block: Mapping[str, Any],
    receipts: Sequence[Mapping[str, Any]],
    signer: Signer
) -> BlockRecord:
    """Assemble a BlockRecord from a full node block and its receipts

    Args:
        raw_block: Block with full transaction objects, in block order
        receipts: One receipt per transaction, in the same order
        signer: Recovers the sender of each transaction

    Returns:
        BlockRecord: The normalized block

    Raises:
        SignatureRecoveryError: If any transaction's sender cannot be recovered.
            No record is produced for the block in that case.
        ReceiptMismatchError: If transactions and receipts disagree in count
    """
    parsed_block = BlockParser.parse_raw(raw_block)
    raw_transactions = raw_block.get('transactions') or []

    if raw_transactions and receipts and len(raw_transactions) != len(receipts):
        raise ReceiptMismatchError(parsed_block['hash'], len(raw_transactions), len(receipts))

    transactions = []
    for raw_tx in raw_transactions:
        transactions.append(normalize_transaction(raw_tx, signer))

    receipts_out: List[Dict[str, Any]] = to_jsonable(list(receipts))

    logger.debug(f"Built block {parsed_block['number']} with {len(transactions)} transactions")
    return BlockRecord(
        **parsed_block,
        transactions=transactions,
        receipts=receipts_out
    )
