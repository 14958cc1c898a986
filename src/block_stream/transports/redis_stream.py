from typing import Any, Dict

import redis
from loguru import logger

from block_stream.errors import (
    TransportConstructionError,
    TransportPublishError,
    TransportTimeoutError,
)
from .base import BaseTransport, BLOCK_CHANNEL, CODE_CHANNEL


class RedisStreamTransport(BaseTransport):
    """
    Publishes blocks and contract code to append-only Redis streams
    """

    def __init__(self, chain_name: str, **kwargs):
        """
        Connect to Redis and verify the server answers

        Args:
            chain_name (str): Name of the chain being published
            **kwargs: Configuration parameters
                - addr (str): host:port of the Redis server (required)
                - auth (str): Password (optional)
                - db (int): Database index (default: 0)
                - timeout (float): Seconds to wait for each write (default: 10)
                - block_stream (str): Stream for blocks (default: block-transactions)
                - code_stream (str): Stream for contract code (default: block-code)
        """
        if 'addr' not in kwargs:
            raise ValueError("addr is required for Redis configuration")

        self.chain_name = chain_name
        self.timeout = float(kwargs.get('timeout', 10))
        self.block_stream = kwargs.get('block_stream', BLOCK_CHANNEL)
        self.code_stream = kwargs.get('code_stream', CODE_CHANNEL)
        self._init_locks()

        host, _, port = kwargs['addr'].partition(':')
        logger.info(f"Connecting to Redis at {kwargs['addr']} for chain {chain_name}")
        try:
            self.client = redis.Redis(
                host=host or 'localhost',
                port=int(port or 6379),
                password=kwargs.get('auth') or None,
                db=int(kwargs.get('db', 0)),
                socket_timeout=self.timeout,
                socket_connect_timeout=self.timeout,
            )
            self.client.ping()
        except (redis.RedisError, ValueError) as e:
            raise TransportConstructionError(f"Failed to connect to Redis at {kwargs['addr']}: {str(e)}") from e

        logger.info(f"Redis transport ready, streams: {self.block_stream}, {self.code_stream}")

    def _xadd(self, stream: str, key: str, values: Dict[str, Any]) -> str:
        # No MAXLEN: the streams are never trimmed here
        try:
            entry_id = self.client.xadd(stream, values)
        except redis.TimeoutError as e:
            raise TransportTimeoutError(stream, key, f"no acknowledgement within {self.timeout}s") from e
        except redis.RedisError as e:
            raise TransportPublishError(stream, key, f"{type(e).__name__}: {str(e)}") from e
        return entry_id

    def append_code(self, code_hash: str, payload: bytes) -> None:
        with self._code_lock:
            entry_id = self._xadd(self.code_stream, code_hash, {"hash": code_hash, "data": payload})
        logger.debug(f"Appended code {code_hash} to {self.code_stream} as {entry_id}")

    def publish_block(self, block_hash: str, payload: bytes) -> None:
        with self._block_lock:
            entry_id = self._xadd(self.block_stream, block_hash, {"data": payload})
        logger.debug(f"Appended block {block_hash} to {self.block_stream} as {entry_id}")

    def close(self) -> None:
        self.client.close()
