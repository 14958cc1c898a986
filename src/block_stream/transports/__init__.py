from enum import Enum
from .base import BaseTransport, BLOCK_CHANNEL, CODE_CHANNEL
from .pubsub import PubSubTransport
from .redis_stream import RedisStreamTransport

class TransportType(Enum):
    REDIS = "redis"
    PUBSUB = "pubsub"

class TransportFactory:
    _transports = {
        TransportType.REDIS: RedisStreamTransport,
        TransportType.PUBSUB: PubSubTransport,
    }

    @classmethod
    def get_transport(cls, transport_type: str, chain_name: str, config: dict) -> BaseTransport:
        """
        Factory method to get the appropriate transport instance

        Args:
            transport_type (str): Type of transport from config
            chain_name (str): Name of the chain
            config (dict): Transport-specific configuration
        Returns:
            BaseTransport: Instance of the appropriate transport

        Raises:
            ValueError: If the transport type is unknown or config is missing
            TransportConstructionError: If the backend cannot be reached
        """
        try:
            transport_enum = TransportType(transport_type.lower())
        except ValueError:
            raise ValueError(f"Invalid transport type: {transport_type}. Supported types: {[t.value for t in TransportType]}")

        if not config:
            raise ValueError("Configuration dictionary is required")

        transport_class = cls._transports[transport_enum]
        return transport_class(chain_name=chain_name, **config)

def get_transport(transport_type: str, chain_name: str, config: dict) -> BaseTransport:
    return TransportFactory.get_transport(transport_type, chain_name, config)

__all__ = [
    "BLOCK_CHANNEL",
    "CODE_CHANNEL",
    "BaseTransport",
    "PubSubTransport",
    "RedisStreamTransport",
    "TransportType",
    "get_transport",
]
