"""
Funding and background mining for a regtest node.

A Harness walks through three phases, once and in order:

1. bootstrap: create the test wallet
2. fund: mine ``coinbase_maturity + spendable_quantity`` blocks to one of its
   addresses, so ``spendable_quantity`` coinbase rewards are mature
3. sustain: start a MiningTask that mines one block per tick, so anything
   sent afterwards eventually confirms
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import TYPE_CHECKING

import httpx
from loguru import logger

from bitcoin_harness.bitcoind_rpc import Client
from bitcoin_harness.constants import (
    COINBASE_MATURITY,
    DEFAULT_RPC_TIMEOUT,
    DEFAULT_TICK_INTERVAL,
    DEFAULT_WALLET_NAME,
)
from bitcoin_harness.errors import ConfigError
from bitcoin_harness.models import Address, Txid
from bitcoin_harness.wallet import Wallet

if TYPE_CHECKING:
    from bitcoin_harness.config import HarnessSettings


class HarnessPhase(str, Enum):
    CREATED = "created"
    BOOTSTRAPPED = "bootstrapped"
    FUNDED = "funded"
    MINING = "mining"


class MiningTask:
    """
    Background loop mining one block to `reward_address` every `interval` seconds.

    The first failing tick ends the loop. The failure is logged, since the
    code that started the task has usually moved on, and :meth:`wait`
    re-raises it.
    """

    def __init__(
        self,
        client: Client,
        reward_address: Address,
        interval: float = DEFAULT_TICK_INTERVAL,
    ):
        if interval <= 0:
            raise ConfigError(f"Tick interval must be positive, got {interval}")
        self.client = client
        self.reward_address = reward_address
        self.interval = interval
        self.blocks_mined = 0
        self._task: asyncio.Task[None] | None = None

    def start(self) -> MiningTask:
        if self._task is not None:
            raise ConfigError("Mining task already started")
        self._task = asyncio.create_task(self._run(), name=f"mine-to-{self.reward_address}")
        self._task.add_done_callback(self._on_done)
        logger.info(f"Mining one block every {self.interval}s to {self.reward_address}")
        return self

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            await self.client.generate_to_address(1, self.reward_address)
            self.blocks_mined += 1

    def _on_done(self, task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.opt(exception=exc).error(
                f"Background mining stopped after {self.blocks_mined} block(s): {exc}. "
                "Transactions sent from now on will not confirm."
            )

    async def stop(self) -> None:
        """Cancel the loop. Safe to call more than once."""
        if self._task is None or self._task.done():
            return
        self._task.cancel()
        await asyncio.wait({self._task})
        logger.info(f"Background mining stopped after {self.blocks_mined} block(s)")

    async def wait(self) -> None:
        """Block until the loop ends; re-raise the error that ended it, if any."""
        if self._task is None:
            raise ConfigError("Mining task not started")
        await asyncio.wait({self._task})
        if not self._task.cancelled():
            self._task.result()


class Harness:
    """
    Bring a freshly started regtest node into a funded, self-mining state.

    The node itself (process or container) is managed elsewhere; the harness
    only needs its RPC URL.
    """

    def __init__(
        self,
        node_url: str,
        *,
        wallet_name: str = DEFAULT_WALLET_NAME,
        coinbase_maturity: int = COINBASE_MATURITY,
        tick_interval: float = DEFAULT_TICK_INTERVAL,
        timeout: float = DEFAULT_RPC_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not wallet_name:
            raise ConfigError("Wallet name must not be empty")
        if coinbase_maturity < 0:
            raise ConfigError(f"Coinbase maturity must not be negative, got {coinbase_maturity}")
        if tick_interval <= 0:
            raise ConfigError(f"Tick interval must be positive, got {tick_interval}")

        self.client = Client(node_url, timeout=timeout, transport=transport)
        self.wallet_name = wallet_name
        self.coinbase_maturity = coinbase_maturity
        self.tick_interval = tick_interval

        self.phase = HarnessPhase.CREATED
        self.wallet: Wallet | None = None
        self.reward_address: Address | None = None
        self.mining_task: MiningTask | None = None

    @classmethod
    def from_settings(
        cls,
        settings: HarnessSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> Harness:
        return cls(
            settings.node_url,
            wallet_name=settings.wallet_name,
            coinbase_maturity=settings.coinbase_maturity,
            tick_interval=settings.tick_interval,
            timeout=settings.rpc_timeout,
            transport=transport,
        )

    async def init(self, spendable_quantity: int) -> MiningTask:
        """
        Create the wallet, make `spendable_quantity` block rewards spendable
        and start background mining.

        Args:
            spendable_quantity: Number of mature coinbase outputs wanted

        Returns:
            The running MiningTask (also kept on ``self.mining_task``)

        Raises:
            ConfigError: If called twice or with a negative quantity
            RpcError: If the wallet already exists or mining is refused
            TransportError: If the node is unreachable
        """
        if self.phase is not HarnessPhase.CREATED:
            raise ConfigError(f"Harness already initialised (phase: {self.phase.value})")
        if spendable_quantity < 0:
            raise ConfigError(f"Spendable quantity must not be negative, got {spendable_quantity}")

        self.wallet = await Wallet.create(self.client, self.wallet_name)
        self.phase = HarnessPhase.BOOTSTRAPPED

        self.reward_address = await self.wallet.new_address()
        nblocks = self.coinbase_maturity + spendable_quantity
        logger.info(f"Mining {nblocks} blocks to fund wallet {self.wallet_name}")
        await self.client.generate_to_address(nblocks, self.reward_address)
        self.phase = HarnessPhase.FUNDED

        self.mining_task = MiningTask(self.client, self.reward_address, self.tick_interval).start()
        self.phase = HarnessPhase.MINING
        return self.mining_task

    async def mint(self, address: Address, amount: int) -> Txid:
        """
        Send `amount` satoshis from the test wallet to `address`, then mine a
        block so the transaction gets its first confirmation right away.

        A background tick may land before or after that block; poll the
        receiving wallet instead of assuming a confirmation count.
        """
        if self.wallet is None or self.reward_address is None or self.phase not in (
            HarnessPhase.FUNDED,
            HarnessPhase.MINING,
        ):
            raise ConfigError("Harness is not funded yet, call init() first")
        if amount <= 0:
            raise ConfigError(f"Amount must be positive, got {amount}")

        txid = await self.wallet.send_to_address(address, amount)
        await self.client.generate_to_address(1, self.reward_address)
        logger.info(f"Minted {amount} sats to {address} in {txid}")
        return txid

    async def close(self) -> None:
        if self.mining_task is not None:
            await self.mining_task.stop()
        await self.client.close()

    async def __aenter__(self) -> Harness:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
