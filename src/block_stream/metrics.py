from prometheus_client import Counter, Gauge, Histogram, start_http_server
from loguru import logger

# Publish metrics
BLOCKS_PUBLISHED = Counter(
    'block_stream_blocks_published_total',
    'Total number of blocks published',
    ['chain']
)

CODE_APPENDED = Counter(
    'block_stream_code_appended_total',
    'Total number of contract code entries appended',
    ['chain']
)

PUBLISH_ERRORS = Counter(
    'block_stream_publish_errors_total',
    'Total number of failed publish calls',
    ['chain', 'channel']
)

PUBLISH_LATENCY = Histogram(
    'block_stream_publish_latency_seconds',
    'Time from publish call to transport acknowledgement',
    ['chain', 'channel'],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

LATEST_PUBLISHED_BLOCK = Gauge(
    'block_stream_latest_published_block_number',
    'Latest block number published',
    ['chain']
)

LATEST_BLOCK_PROCESSING_TIME = Gauge(
    'block_stream_latest_block_processing_seconds',
    'Time spent building, encoding and publishing the latest block',
    ['chain']
)

# Chain metrics
CHAIN_TIP_BLOCK = Gauge(
    'block_stream_chain_tip_block_number',
    'Latest finalized block number on chain',
    ['chain']
)

CHAIN_TIP_LAG = Gauge(
    'block_stream_chain_tip_lag',
    'Number of blocks behind the finalized head',
    ['chain']
)

# RPC metrics
RPC_REQUESTS = Counter(
    'block_stream_rpc_requests_total',
    'Total number of RPC requests made',
    ['chain', 'method']
)

RPC_ERRORS = Counter(
    'block_stream_rpc_errors_total',
    'Total number of RPC errors encountered',
    ['chain', 'method']
)

RPC_LATENCY = Histogram(
    'block_stream_rpc_latency_seconds',
    'RPC request latency',
    ['chain', 'method'],
    buckets=[0.025, 0.05, 0.075, 0.1, 0.15, 0.2, 0.3, 0.5, 1.0, 5.0, 10.0]
)

def start_metrics_server(port: int = 9100, addr: str = '0.0.0.0'):
    """Start Prometheus metrics server

    Args:
        port (int): Port to listen on
        addr (str): Address to bind to (default: all interfaces)
    """
    logger.info(f"Starting Prometheus metrics server on {addr}:{port}")
    start_http_server(port, addr)
