class BlockStreamError(Exception):
    """Base class for all errors raised by block_stream"""


class SignatureRecoveryError(BlockStreamError):
    """The sender of a transaction could not be recovered from its signature"""

    def __init__(self, tx_hash: str, reason: str = "") -> None:
        self.tx_hash = tx_hash
        self.reason = reason
        message = f"Failed to recover sender for transaction {tx_hash}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class BlockBuildError(BlockStreamError):
    """A block could not be turned into a BlockRecord"""


class ReceiptMismatchError(BlockBuildError):
    def __init__(self, block_hash: str, transaction_count: int, receipt_count: int) -> None:
        self.block_hash = block_hash
        self.transaction_count = transaction_count
        self.receipt_count = receipt_count
        super().__init__(
            f"Block {block_hash} has {transaction_count} transactions but {receipt_count} receipts"
        )


class EncodingError(BlockStreamError):
    """A record could not be serialized"""


class TransportConstructionError(BlockStreamError):
    """The transport could not be established"""


class TransportPublishError(BlockStreamError):
    """A single publish or append call failed after the transport was established"""

    def __init__(self, channel: str, key: str, reason: str = "") -> None:
        self.channel = channel
        self.key = key
        self.reason = reason
        message = f"Failed to publish {key} to {channel}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class TransportTimeoutError(TransportPublishError):
    """The transport did not acknowledge a publish before the deadline"""
