from typing import Any, Mapping, Sequence
import time

from loguru import logger

from block_stream.encoder import encode_block, encode_code
from block_stream.errors import TransportPublishError
from block_stream.metrics import (
    BLOCKS_PUBLISHED,
    CODE_APPENDED,
    LATEST_BLOCK_PROCESSING_TIME,
    LATEST_PUBLISHED_BLOCK,
    PUBLISH_ERRORS,
    PUBLISH_LATENCY,
)
from block_stream.parsers import build_block_record
from block_stream.records import BlockRecord, CodeRecord
from block_stream.signers import Signer
from block_stream.transports import BaseTransport


class BlockPublisher:
    """Builds, encodes and publishes finalized blocks through one transport

    Every error propagates to the caller. Signature recovery and encoding
    failures mean the block was not published at all; TransportPublishError
    means it may be retried.
    """

    def __init__(self, transport: BaseTransport, chain_name: str) -> None:
        self.transport = transport
        self.chain_name = chain_name

        for channel in ('block', 'code'):
            PUBLISH_ERRORS.labels(chain=chain_name, channel=channel).inc(0)
        BLOCKS_PUBLISHED.labels(chain=chain_name).inc(0)
        CODE_APPENDED.labels(chain=chain_name).inc(0)

    def publish_block(
        self,
        raw_block: Mapping[str, Any],
        receipts: Sequence[Mapping[str, Any]],
        signer: Signer
    ) -> BlockRecord:
        start_time = time.time()
        record = build_block_record(raw_block, receipts, signer)
        payload = encode_block(record)

        publish_start = time.time()
        try:
            self.transport.publish_block(record.hash, payload)
        except TransportPublishError as e:
            PUBLISH_ERRORS.labels(chain=self.chain_name, channel='block').inc()
            logger.error(f"Failed to publish block {record.number} ({record.hash}): {str(e)}")
            raise
        PUBLISH_LATENCY.labels(chain=self.chain_name, channel='block').observe(time.time() - publish_start)

        BLOCKS_PUBLISHED.labels(chain=self.chain_name).inc()
        LATEST_PUBLISHED_BLOCK.labels(chain=self.chain_name).set(int(record.number))
        LATEST_BLOCK_PROCESSING_TIME.labels(chain=self.chain_name).set(time.time() - start_time)
        logger.info(f"Published block {record.number} with {len(record.transactions)} transactions ({len(payload)} bytes)")
        return record

    def publish_code(self, code_hash: str, code: bytes) -> CodeRecord:
        record = CodeRecord(hash=code_hash, code=code)
        payload = encode_code(record)

        publish_start = time.time()
        try:
            self.transport.append_code(record.hash, payload)
        except TransportPublishError as e:
            PUBLISH_ERRORS.labels(chain=self.chain_name, channel='code').inc()
            logger.error(f"Failed to append code {record.hash}: {str(e)}")
            raise
        PUBLISH_LATENCY.labels(chain=self.chain_name, channel='code').observe(time.time() - publish_start)

        CODE_APPENDED.labels(chain=self.chain_name).inc()
        logger.info(f"Appended code {record.hash} ({len(payload)} bytes)")
        return record
