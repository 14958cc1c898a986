"""Sender recovery for chain transactions.

A signer is anything with a ``recover_sender(tx)`` method returning the
checksummed sending address. Failures are raised as ``SignatureRecoveryError``.
"""
from typing import Mapping, Protocol, Any

from eth_account import Account
from eth_utils import is_address, to_checksum_address
from loguru import logger

from block_stream.errors import SignatureRecoveryError
from block_stream.utils import hex_to_str


class Signer(Protocol):
    def recover_sender(self, tx: Mapping[str, Any]) -> str:
        ...


def _tx_hash(tx: Mapping[str, Any]) -> str:
    tx_hash = tx.get('hash')
    return hex_to_str(tx_hash) if tx_hash is not None else "<unknown>"


class RawTransactionSigner:
    """Recover the sender from the signed transaction bytes attached under ``raw``

    The signature is checked against the chain's signing rules by eth_account, so
    legacy, EIP-155 and typed envelopes are all handled. When the node also reports
    a ``from`` address, the two must agree.
    """

    def __init__(self, verify_reported: bool = True) -> None:
        self.verify_reported = verify_reported

    def recover_sender(self, tx: Mapping[str, Any]) -> str:
        tx_hash = _tx_hash(tx)
        raw = tx.get('raw')
        if not raw:
            raise SignatureRecoveryError(tx_hash, "raw transaction bytes are missing")

        try:
            sender = Account.recover_transaction(raw)
        except Exception as e:
            raise SignatureRecoveryError(tx_hash, f"{type(e).__name__}: {str(e)}") from e

        reported = tx.get('from')
        if self.verify_reported and reported and to_checksum_address(reported) != sender:
            logger.error(f"Recovered sender {sender} does not match reported sender {reported} for {tx_hash}")
            raise SignatureRecoveryError(tx_hash, f"recovered {sender} but node reported {reported}")

        return sender


class ReportedSenderSigner:
    """Trust the ``from`` address the node already recovered"""

    def recover_sender(self, tx: Mapping[str, Any]) -> str:
        reported = tx.get('from')
        if not reported or not is_address(reported):
            raise SignatureRecoveryError(_tx_hash(tx), f"invalid reported sender {reported!r}")
        return to_checksum_address(reported)


SIGNERS = {
    'raw': RawTransactionSigner,
    'reported': ReportedSenderSigner,
}

def get_signer(mode: str) -> Signer:
    try:
        return SIGNERS[mode]()
    except KeyError:
        raise ValueError(f"Unsupported signer mode: {mode}. Supported modes: {list(SIGNERS)}")
