"""
Wallet facade bound to one node wallet.
"""

from __future__ import annotations

from bitcoin_harness.bitcoind_rpc import Client, WalletClient
from bitcoin_harness.models import Address, Txid, Utxo


class Wallet:
    """
    A freshly created node wallet.

    Nothing is cached: balances and outputs change under the background
    miner, so every accessor queries the node again.
    """

    def __init__(self, rpc: WalletClient):
        self.rpc = rpc

    @classmethod
    async def create(cls, client: Client, name: str) -> Wallet:
        """
        Create wallet `name` on the node and bind to it.

        Raises:
            ConfigError: If `name` is empty
            RpcError: If the node refuses, e.g. the wallet already exists
        """
        rpc = client.with_wallet(name)
        await client.create_wallet(name)
        return cls(rpc)

    @property
    def name(self) -> str:
        return self.rpc.name

    async def new_address(self) -> Address:
        return await self.rpc.get_new_address()

    async def balance(self) -> int:
        """Confirmed balance in satoshis."""
        return await self.rpc.get_balance()

    async def list_unspent(self) -> list[Utxo]:
        return await self.rpc.list_unspent()

    async def send_to_address(self, address: Address, amount: int) -> Txid:
        """Send `amount` satoshis, leaving the transaction unconfirmed."""
        return await self.rpc.send_to_address(address, amount)

    async def transaction_block_height(self, txid: Txid) -> int | None:
        """Height of the block that confirmed `txid`, or None while unconfirmed."""
        tx = await self.rpc.get_transaction(txid)
        if tx.confirmations < 1:
            return None
        if tx.blockheight is not None:
            return tx.blockheight
        # Older nodes only report the block hash
        tip = await self.rpc.node.get_block_count()
        return tip - tx.confirmations + 1

    def __repr__(self) -> str:
        return f"Wallet(name={self.name!r})"
