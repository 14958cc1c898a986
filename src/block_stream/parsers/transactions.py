from typing import Any, Mapping

from web3 import Web3

from block_stream.records import TransactionRecord
from block_stream.signers import Signer
from block_stream.utils import hex_to_str


class TransactionParser:
    @staticmethod
    def parse_raw(raw_tx: Mapping[str, Any], signer: Signer) -> dict:
        """Parse one transaction and its recovered sender into record fields"""
        # Raises SignatureRecoveryError, which is fatal for the enclosing block
        sender = signer.recover_sender(raw_tx)
        raw = raw_tx.get('raw')
        # Pre-London transactions cap their fee at the gas price
        fee_cap = raw_tx.get('maxFeePerGas')
        if fee_cap is None:
            fee_cap = raw_tx['gasPrice']

        return {
            'from_address': sender,
            'to_address': Web3.to_checksum_address(raw_tx['to']) if raw_tx.get('to') else "",
            'type': raw_tx.get('type', 0),
            'nonce': raw_tx['nonce'],
            'gas': raw_tx['gas'],
            'gas_price': raw_tx['gasPrice'],
            'max_fee_per_gas': fee_cap,
            'value': raw_tx['value'],
            'hash': hex_to_str(raw_tx['hash']),
            'input': bytes(raw_tx.get('input') or b""),
            'size': len(raw) if raw else None,
            'chain_id': raw_tx.get('chainId'),
        }


def normalize_transaction(raw_tx: Mapping[str, Any], signer: Signer) -> TransactionRecord:
    return TransactionRecord(**TransactionParser.parse_raw(raw_tx, signer))
