from concurrent import futures

import google.api_core.exceptions
import google.auth.exceptions
from google.cloud import pubsub_v1
from loguru import logger

from block_stream.errors import (
    TransportConstructionError,
    TransportPublishError,
    TransportTimeoutError,
)
from .base import BaseTransport, BLOCK_CHANNEL, CODE_CHANNEL


class PubSubTransport(BaseTransport):
    """
    Publishes blocks and contract code to Google Cloud Pub/Sub topics
    """

    def __init__(self, chain_name: str, **kwargs):
        """
        Create the publisher client and verify both topics exist

        Args:
            chain_name (str): Name of the chain being published
            **kwargs: Configuration parameters
                - project_id (str): Google Cloud project ID (required)
                - topic (str): Topic for blocks (required)
                - code_topic (str): Topic for contract code (default: block-code)
                - timeout (float): Seconds to wait for each publish (default: 30)
        """
        if 'project_id' not in kwargs:
            raise ValueError("project_id is required for Pub/Sub configuration")
        if 'topic' not in kwargs:
            raise ValueError("topic is required for Pub/Sub configuration")

        self.chain_name = chain_name
        self.project_id = kwargs['project_id']
        self.timeout = float(kwargs.get('timeout', 30))
        self._init_locks()

        logger.info(f"Creating Pub/Sub publisher for project {self.project_id}, topic {kwargs['topic']}")
        try:
            # Ordering keeps the code channel in append order
            self.client = pubsub_v1.PublisherClient(
                publisher_options=pubsub_v1.types.PublisherOptions(enable_message_ordering=True)
            )
            self.block_topic = self.client.topic_path(self.project_id, kwargs['topic'])
            self.code_topic = self.client.topic_path(self.project_id, kwargs.get('code_topic', CODE_CHANNEL))
            for topic_path in (self.block_topic, self.code_topic):
                self.client.get_topic(request={"topic": topic_path}, timeout=self.timeout)
        except (google.api_core.exceptions.GoogleAPIError, google.auth.exceptions.GoogleAuthError) as e:
            raise TransportConstructionError(f"Failed to set up Pub/Sub topics in {self.project_id}: {str(e)}") from e

        logger.info(f"Pub/Sub transport ready, topics: {self.block_topic}, {self.code_topic}")

    def _publish(self, topic_path: str, key: str, data: bytes, ordering_key: str = "") -> str:
        try:
            future = self.client.publish(topic_path, data, ordering_key=ordering_key, hash=key)
            return future.result(timeout=self.timeout)
        except futures.TimeoutError as e:
            raise TransportTimeoutError(topic_path, key, f"no acknowledgement within {self.timeout}s") from e
        except Exception as e:
            raise TransportPublishError(topic_path, key, f"{type(e).__name__}: {str(e)}") from e

    def append_code(self, code_hash: str, payload: bytes) -> None:
        with self._code_lock:
            try:
                message_id = self._publish(self.code_topic, code_hash, payload, ordering_key=CODE_CHANNEL)
            except TransportPublishError:
                # A failed ordered publish pauses the key until resumed
                self.client.resume_publish(self.code_topic, CODE_CHANNEL)
                raise
        logger.debug(f"Published code {code_hash} to {self.code_topic} as {message_id}")

    def publish_block(self, block_hash: str, payload: bytes) -> None:
        with self._block_lock:
            message_id = self._publish(self.block_topic, block_hash, payload)
        logger.debug(f"Published block {block_hash} to {self.block_topic} as {message_id}")

    def close(self) -> None:
        self.client.stop()
