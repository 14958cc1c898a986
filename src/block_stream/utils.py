import asyncio
import json
from datetime import datetime, timezone, date
from dynaconf import Dynaconf, Validator
from functools import wraps
from hexbytes import HexBytes
from loguru import logger
from pathlib import Path
import random
from typing import Any, Tuple, Type, Union
from web3 import Web3


def hex_to_str(hex_value: Union[HexBytes, bytes, str]) -> str:
    # Node responses carry HexBytes; already-decoded JSON carries hex strings
    if isinstance(hex_value, str):
        return hex_value.lower() if hex_value.startswith('0x') else '0x' + hex_value.lower()
    if not isinstance(hex_value, (bytes, bytearray)):
        raise TypeError(f"Expected HexBytes, got {type(hex_value)}")

    # Convert to hex string, maintaining '0x' prefix
    return '0x' + bytes(hex_value).hex()

def unix_to_utc(timestamp: int, date_only: bool = False) -> Union[date, datetime]:
    """Convert Unix timestamp to UTC datetime/date object

    Args:
        timestamp (int): Unix timestamp in seconds
        date_only (bool): If True, returns date object.
                         If False, returns datetime object

    Returns:
        Union[date, datetime]: UTC datetime or date object
    """
    dt = datetime.fromtimestamp(timestamp, timezone.utc)
    return dt.date() if date_only else dt

def to_jsonable(value: Any) -> Any:
    """Convert node structures (AttributeDict, HexBytes) into plain JSON values

    Integers become 0x-prefixed hex quantities, the node's own wire format.
    """
    return _hex_quantities(json.loads(Web3.to_json(value)))

def _hex_quantities(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return hex(value)
    if isinstance(value, dict):
        return {key: _hex_quantities(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_hex_quantities(item) for item in value]
    return value

def load_config(file_name: str) -> Dynaconf:
    """Load and validate publisher configuration

    Params:
        file_name (str): Name of the config file under config/

    Returns:
        Dynaconf: Validated configuration object
    """
    project_root = Path(__file__).resolve().parent.parent.parent
    config_path = project_root / "config" / file_name

    settings = Dynaconf(
        settings_files=[config_path],
        envvar_prefix="BLOCK_STREAM",
        validators=[
            Validator('chain.name', must_exist=True,
                     is_type_of=str,
                     condition=lambda x: x.islower() and x == x.strip(),
                     messages={"condition": "Chain name must be lowercase with no leading/trailing spaces"}
            ),
            Validator('chain.rpc_urls', must_exist=True, is_type_of=list),
            Validator('chain.poll_interval', default=2, is_type_of=(int, float)),
            Validator('chain.start_block', default=None),
            Validator('chain.trace_contracts', default=False, is_type_of=bool),
            Validator('transport.type', must_exist=True, is_in=['redis', 'pubsub']),
            Validator('transport.redis.addr', must_exist=True, when=Validator('transport.type', eq='redis')),
            Validator('transport.pubsub.project_id', must_exist=True, when=Validator('transport.type', eq='pubsub')),
            Validator('transport.pubsub.topic', must_exist=True, when=Validator('transport.type', eq='pubsub')),
            Validator('signer.mode', default='raw', is_in=['raw', 'reported']),
            Validator('metrics.port', default=8000, is_type_of=int),
            Validator('metrics.addr', default='0.0.0.0', is_type_of=str),
        ]
    )
    # Validate all settings at once
    settings.validators.validate()

    return settings

# Decorator for implementing retry logic with exponential backoff for async functions
def async_retry(
    retries: int = 3,
    base_delay: int = 1,
    exponential_backoff: bool = True,
    jitter: bool = True,
    exceptions: Tuple[Type[BaseException], ...] = (Exception,),
):
    """
    Decorator for implementing retry logic with exponential backoff for async functions.

    :param retries: int, number of retry attempts
    :param base_delay: int, base delay between retries in seconds
    :param exponential_backoff: bool, whether to use exponential backoff
    :param jitter: bool, whether to add random jitter to the delay
    :param exceptions: tuple, exception types that trigger a retry; anything else propagates at once
    :return: function, decorated function
    """
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            for attempt in range(1, retries + 1):
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    if attempt == retries:
                        logger.error(
                            f"All retry attempts failed for {func.__name__}: {str(e)}"
                        )
                        raise

                    delay = (
                        base_delay * (2 ** (attempt - 1))
                        if exponential_backoff
                        else base_delay
                    )
                    if jitter:
                        delay *= random.uniform(1.0, 1.5)

                    logger.warning(
                        f"Attempt {attempt} failed for {func.__name__}. Retrying in {delay:.2f} seconds. Error: {str(e)}"
                    )
                    await asyncio.sleep(delay)

        return wrapper
    return decorator
