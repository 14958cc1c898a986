from dataclasses import dataclass
from loguru import logger
from typing import Any, Dict, List, Optional
from hexbytes import HexBytes
from web3 import AsyncWeb3, AsyncHTTPProvider, Web3
from web3.exceptions import Web3Exception, BlockNotFound, TransactionNotFound

from block_stream.utils import async_retry, hex_to_str
from block_stream.metrics import (
    RPC_REQUESTS,
    RPC_ERRORS,
    RPC_LATENCY,
)
import time

@dataclass
class FinalizedBlock:
    block: Dict[str, Any]
    receipts: List[Dict[str, Any]]
    # Set when the block was traced; covers creations made inside calls
    traced_contracts: Optional[List[str]] = None

    @property
    def number(self) -> int:
        return self.block['number']

    def created_contracts(self) -> List[str]:
        """Addresses of contracts deployed in this block

        Without a trace only top-level creation transactions are visible, via
        the receipt's contractAddress.
        """
        if self.traced_contracts is not None:
            return self.traced_contracts
        return [r['contractAddress'] for r in self.receipts if r.get('contractAddress')]

def _collect_creations(frame: Dict[str, Any], addresses: List[str]) -> None:
    # A failed frame reverts everything beneath it
    if frame.get('error'):
        return
    if frame.get('type') in ('CREATE', 'CREATE2') and frame.get('to'):
        address = Web3.to_checksum_address(frame['to'])
        if address not in addresses:
            addresses.append(address)
    for call in frame.get('calls') or []:
        _collect_creations(call, addresses)

class BlockSource:
    """Reads finalized blocks, receipts, raw transactions and code from the node"""

    def __init__(
        self,
        rpc_urls: List[str],
        chain_name: str,
        block_tag: str = "finalized",
        trace_contracts: bool = False,
    ) -> None:
        logger.info(f"Available RPC URLs: {rpc_urls}")
        logger.info(f"Initializing BlockSource for chain {chain_name} with RPC URL: {rpc_urls[0]}")
        self.rpc_urls = rpc_urls
        self.current_rpc_index = 0
        self.w3 = AsyncWeb3(AsyncHTTPProvider(self.rpc_urls[0]))
        self.chain_name = chain_name
        self.block_tag = block_tag
        # Needs a node that serves debug_traceBlockByNumber
        self.trace_contracts = trace_contracts

        # Initialize RPC metrics
        for method in ['get_block', 'get_transaction_receipt', 'get_raw_transaction', 'get_code', 'trace_block']:
            RPC_REQUESTS.labels(chain=self.chain_name, method=method).inc(0)
            RPC_ERRORS.labels(chain=self.chain_name, method=method).inc(0)

    def _rotate_rpc(self) -> bool:
        """Rotate to the next RPC URL in the list
        Returns:
            bool: True if there is another RPC to rotate to, False if we've tried all RPCs
        """
        if len(self.rpc_urls) <= 1:
            return False

        self.current_rpc_index = (self.current_rpc_index + 1) % len(self.rpc_urls)
        new_url = self.rpc_urls[self.current_rpc_index]
        logger.info(f"Switching to RPC URL: {new_url}")
        self.w3 = AsyncWeb3(AsyncHTTPProvider(new_url))
        return True

    async def _call(self, method: str, coro_factory, description: str):
        start_time = time.time()
        try:
            result = await coro_factory()
            RPC_REQUESTS.labels(chain=self.chain_name, method=method).inc()
            RPC_LATENCY.labels(chain=self.chain_name, method=method).observe(time.time() - start_time)
            return result
        except (BlockNotFound, TransactionNotFound):
            RPC_ERRORS.labels(chain=self.chain_name, method=method).inc()
            logger.warning(f"{description} not found")
            raise
        except Web3Exception as e:
            RPC_ERRORS.labels(chain=self.chain_name, method=method).inc()
            logger.error(f"Failed to get {description}: {str(e)}")
            self._rotate_rpc()
            raise
        except Exception as e:
            RPC_ERRORS.labels(chain=self.chain_name, method=method).inc()
            logger.error(f"Failed to get {description}: {type(e).__name__}: {str(e)}")
            self._rotate_rpc()
            raise

    @async_retry(retries=5, base_delay=2, exponential_backoff=True, jitter=True)
    async def get_head_number(self) -> int:
        block = await self._call('get_block', lambda: self.w3.eth.get_block(self.block_tag), f"{self.block_tag} block")
        return block['number']

    @async_retry(retries=5, base_delay=2, exponential_backoff=True, jitter=True)
    async def get_block(self, block_number: int) -> Optional[dict]:
        logger.info(f"Fetching block with number: {block_number}")
        try:
            return await self._call(
                'get_block',
                lambda: self.w3.eth.get_block(block_number, full_transactions=True),
                f"block {block_number}"
            )
        except BlockNotFound:
            return None

    @async_retry(retries=5, base_delay=2, exponential_backoff=True, jitter=True)
    async def get_transaction_receipt(self, transaction_hash: HexBytes) -> dict:
        return await self._call(
            'get_transaction_receipt',
            lambda: self.w3.eth.get_transaction_receipt(transaction_hash),
            f"receipt for transaction {hex_to_str(transaction_hash)}"
        )

    @async_retry(retries=5, base_delay=2, exponential_backoff=True, jitter=True)
    async def get_raw_transaction(self, transaction_hash: HexBytes) -> HexBytes:
        return await self._call(
            'get_raw_transaction',
            lambda: self.w3.eth.get_raw_transaction(transaction_hash),
            f"raw transaction {hex_to_str(transaction_hash)}"
        )

    @async_retry(retries=5, base_delay=2, exponential_backoff=True, jitter=True)
    async def get_code(self, address: str, block_number: int) -> HexBytes:
        return await self._call(
            'get_code',
            lambda: self.w3.eth.get_code(address, block_identifier=block_number),
            f"code of {address}"
        )

    @async_retry(retries=5, base_delay=2, exponential_backoff=True, jitter=True)
    async def get_created_contracts(self, block_number: int) -> List[str]:
        """Trace a block with callTracer and collect every successful CREATE/CREATE2 target"""
        traces = await self._call(
            'trace_block',
            lambda: self.w3.manager.coro_request(
                'debug_traceBlockByNumber', [hex(block_number), {'tracer': 'callTracer'}]
            ),
            f"trace of block {block_number}"
        )
        addresses = []
        for trace in traces:
            _collect_creations(trace['result'], addresses)
        return addresses

    async def fetch_block(self, block_number: int) -> Optional[FinalizedBlock]:
        """Fetch a block with its receipts, attaching each transaction's signed bytes as ``raw``

        Returns:
            FinalizedBlock | None: None if the node does not know the block
        """
        raw_block = await self.get_block(block_number)
        if raw_block is None:
            return None

        transactions = []
        receipts = []
        for tx in raw_block['transactions']:
            raw = await self.get_raw_transaction(tx['hash'])
            transactions.append({**dict(tx), 'raw': raw})
            receipts.append(await self.get_transaction_receipt(tx['hash']))

        block = dict(raw_block)
        block['transactions'] = transactions
        traced = await self.get_created_contracts(block_number) if self.trace_contracts else None
        return FinalizedBlock(block=block, receipts=receipts, traced_contracts=traced)
