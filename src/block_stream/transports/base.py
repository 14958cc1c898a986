from abc import ABC, abstractmethod
from threading import Lock

BLOCK_CHANNEL = "block-transactions"
CODE_CHANNEL = "block-code"


class BaseTransport(ABC):
    """Abstract base class for all block transports

    Both operations block until the backend acknowledges the write or fails.
    Failures raise TransportPublishError (TransportTimeoutError on deadline
    expiry) and are never retried here; retry policy belongs to the caller.
    """

    @abstractmethod
    def __init__(self, chain_name: str, **kwargs):
        """
        Initialize transport and verify the backend is reachable

        Args:
            chain_name (str): Name of the chain being published
            **kwargs: Implementation-specific configuration parameters

        Raises:
            TransportConstructionError: If the backend cannot be reached
        """
        pass

    def _init_locks(self) -> None:
        # One lock per channel so entries of a channel are never interleaved
        self._code_lock = Lock()
        self._block_lock = Lock()

    @abstractmethod
    def append_code(self, code_hash: str, payload: bytes) -> None:
        """
        Append one contract code entry to the code channel

        Args:
            code_hash (str): Hex hash of the bytecode
            payload (bytes): Encoded code entry
        """
        pass

    @abstractmethod
    def publish_block(self, block_hash: str, payload: bytes) -> None:
        """
        Publish one encoded block to the block channel

        Args:
            block_hash (str): Hex hash of the block, used in errors and attributes
            payload (bytes): Encoded BlockRecord
        """
        pass

    @abstractmethod
    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
