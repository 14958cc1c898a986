import asyncio
import sys
import time
from eth_utils import keccak
from loguru import logger

from block_stream.block_source import BlockSource, FinalizedBlock
from block_stream.errors import BlockStreamError, TransportConstructionError, TransportPublishError
from block_stream.metrics import start_metrics_server, CHAIN_TIP_BLOCK, CHAIN_TIP_LAG
from block_stream.publisher import BlockPublisher
from block_stream.signers import Signer, get_signer
from block_stream.transports import get_transport
from block_stream.utils import async_retry, hex_to_str, load_config


@async_retry(retries=5, base_delay=2, exponential_backoff=True, jitter=True, exceptions=(TransportPublishError,))
async def publish_block(publisher: BlockPublisher, finalized: FinalizedBlock, signer: Signer) -> None:
    await asyncio.to_thread(publisher.publish_block, finalized.block, finalized.receipts, signer)

@async_retry(retries=5, base_delay=2, exponential_backoff=True, jitter=True, exceptions=(TransportPublishError,))
async def publish_code(publisher: BlockPublisher, code_hash: str, code: bytes) -> None:
    await asyncio.to_thread(publisher.publish_code, code_hash, code)

async def follow_chain(config, source: BlockSource, publisher: BlockPublisher, signer: Signer) -> None:
    chain_name = config.chain.name
    poll_interval = config.chain.poll_interval

    head = await source.get_head_number()
    start_block = config.chain.start_block
    block_number_to_process = int(start_block) if start_block is not None else head
    logger.info(f"Starting publisher from block {block_number_to_process} (finalized head {head})")

    while True:
        head = await source.get_head_number()
        CHAIN_TIP_BLOCK.labels(chain=chain_name).set(head)

        if block_number_to_process > head:
            await asyncio.sleep(poll_interval)
            continue

        block_start_time = time.time()
        finalized = await source.fetch_block(block_number_to_process)
        if finalized is None:
            logger.warning(f"Block {block_number_to_process} not available yet, waiting...")
            await asyncio.sleep(poll_interval)
            continue

        # Contract code first, the block event references it
        for address in finalized.created_contracts():
            code = await source.get_code(address, block_number_to_process)
            await publish_code(publisher, hex_to_str(keccak(code)), bytes(code))

        await publish_block(publisher, finalized, signer)

        CHAIN_TIP_LAG.labels(chain=chain_name).set(head - block_number_to_process)
        logger.debug(f"Block {block_number_to_process} done in {time.time() - block_start_time:.2f} seconds")
        block_number_to_process += 1

async def main(config_file: str = "config.yml"):
    # Save logs to file
    logger.add("logs/block_stream.log", rotation="100 MB", retention="10 days")

    config = load_config(config_file)
    chain_name = config.chain.name
    transport_type = config.transport.type

    start_metrics_server(config.metrics.port, addr=config.metrics.addr)

    try:
        transport = get_transport(
            transport_type=transport_type,
            chain_name=chain_name,
            config=dict(config.transport[transport_type])
        )
    except TransportConstructionError as e:
        logger.critical(f"Cannot start without a working transport: {e}")
        sys.exit(1)

    signer = get_signer(config.signer.mode)
    source = BlockSource(
        config.chain.rpc_urls,
        chain_name,
        block_tag=config.chain.get('block_tag', 'finalized'),
        trace_contracts=config.chain.trace_contracts,
    )
    publisher = BlockPublisher(transport, chain_name)
    logger.info(f"Publishing {chain_name} blocks via {transport_type} with {config.signer.mode} sender recovery")

    with transport:
        try:
            await follow_chain(config, source, publisher, signer)
        except BlockStreamError as e:
            # Signature, encoding and exhausted publish failures all halt the publisher
            logger.critical(f"Halting publisher: {type(e).__name__}: {e}")
            sys.exit(1)

def run():
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Program interrupted by user. Exiting.")
    except Exception as e:
        logger.exception(f"An unexpected error occurred in the main loop: {e}")
        sys.exit(1)

if __name__ == "__main__":
    run()
