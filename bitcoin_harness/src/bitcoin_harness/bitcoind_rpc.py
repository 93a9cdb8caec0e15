"""
Typed Bitcoin Core RPC client.

One coroutine per supported RPC. Node-wide calls live on :class:`Client`,
wallet calls on the :class:`WalletClient` returned by
:meth:`Client.with_wallet`, which targets ``<url>/wallet/<name>``.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any
from urllib.parse import quote

import httpx
from loguru import logger

from bitcoin_harness.constants import DEFAULT_RPC_TIMEOUT
from bitcoin_harness.errors import ConfigError, HarnessError
from bitcoin_harness.json_rpc import JsonRpcClient
from bitcoin_harness.models import (
    Address,
    BlockchainInfo,
    BlockHash,
    CreateWalletResult,
    Network,
    NetworkInfo,
    Sats,
    Txid,
    Utxo,
    WalletInfo,
    WalletTransaction,
    sats_to_btc,
)


def build_params(*args: Any) -> list[Any]:
    """
    Build a positional parameter list.

    ``None`` means "not provided": trailing ``None`` values are dropped and
    interior ones are sent as ``null``, which the node reads as "use the
    default". Any other value, falsy or not, is sent as is.
    """
    params = list(args)
    while params and params[-1] is None:
        params.pop()
    return params


class _RpcBase:
    _rpc: JsonRpcClient

    async def _call(self, method: str, *args: Any, result_type: Any = Any) -> Any:
        try:
            return await self._rpc.call(method, build_params(*args), result_type)
        except HarnessError as e:
            logger.debug(f"{type(self).__name__}.{method} failed: {e}")
            raise


class Client(_RpcBase):
    """
    Node-level RPC client.

    Holds only the node URL and a pooled HTTP client; copies are cheap and
    any number of coroutines may share one instance.
    """

    def __init__(
        self,
        url: str,
        *,
        timeout: float = DEFAULT_RPC_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._rpc = JsonRpcClient(url, timeout=timeout, transport=transport)

    @property
    def url(self) -> str:
        """Node URL without credentials."""
        return self._rpc.endpoint

    def with_wallet(self, name: str) -> WalletClient:
        """Derive a client scoped to wallet `name`. Does not contact the node."""
        if not name:
            raise ConfigError("Wallet name must not be empty")
        return WalletClient(self, name)

    async def create_wallet(
        self,
        name: str,
        disable_private_keys: bool | None = None,
        blank: bool | None = None,
        passphrase: str | None = None,
        avoid_reuse: bool | None = None,
        descriptors: bool | None = None,
        load_on_startup: bool | None = None,
    ) -> CreateWalletResult:
        result = await self._call(
            "createwallet",
            name,
            disable_private_keys,
            blank,
            passphrase,
            avoid_reuse,
            descriptors,
            load_on_startup,
            result_type=CreateWalletResult,
        )
        logger.info(f"Created wallet {result.name}")
        return result

    async def load_wallet(self, name: str) -> CreateWalletResult:
        return await self._call("loadwallet", name, result_type=CreateWalletResult)

    async def list_wallets(self) -> list[str]:
        return await self._call("listwallets", result_type=list[str])

    async def generate_to_address(
        self,
        nblocks: int,
        address: Address,
        max_tries: int | None = None,
    ) -> list[BlockHash]:
        """Mine `nblocks` blocks paying the coinbase to `address`."""
        hashes = await self._call(
            "generatetoaddress", nblocks, address, max_tries, result_type=list[BlockHash]
        )
        logger.debug(f"Mined {len(hashes)} block(s)")
        return hashes

    async def get_block_count(self) -> int:
        return await self._call("getblockcount", result_type=int)

    async def get_best_block_hash(self) -> BlockHash:
        return await self._call("getbestblockhash", result_type=BlockHash)

    async def get_block_hash(self, height: int) -> BlockHash:
        return await self._call("getblockhash", height, result_type=BlockHash)

    async def get_blockchain_info(self) -> BlockchainInfo:
        return await self._call("getblockchaininfo", result_type=BlockchainInfo)

    async def network(self) -> Network:
        info = await self.get_blockchain_info()
        return info.chain

    async def median_time(self) -> int:
        """Median time past of the chain tip (unix timestamp)."""
        info = await self.get_blockchain_info()
        return info.mediantime

    async def get_network_info(self) -> NetworkInfo:
        return await self._call("getnetworkinfo", result_type=NetworkInfo)

    async def get_raw_transaction(self, txid: Txid) -> str:
        """Serialized transaction hex. Needs -txindex unless the tx is a wallet or mempool tx."""
        return await self._call("getrawtransaction", txid, result_type=str)

    async def send_raw_transaction(self, tx_hex: str, max_fee_rate: Decimal | None = None) -> Txid:
        txid = await self._call("sendrawtransaction", tx_hex, max_fee_rate, result_type=Txid)
        logger.info(f"Broadcast transaction: {txid}")
        return txid

    async def close(self) -> None:
        await self._rpc.close()

    async def __aenter__(self) -> Client:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


class WalletClient(_RpcBase):
    """
    RPC client routed to one wallet's endpoint.

    The wallet must already exist (created or loaded) on the node; otherwise
    every call fails with the node's "wallet not found" error.
    """

    def __init__(self, node: Client, name: str):
        self.node = node
        self.name = name
        self._rpc = node._rpc.scoped(f"wallet/{quote(name, safe='')}")

    async def get_new_address(
        self,
        label: str | None = None,
        address_type: str | None = None,
    ) -> Address:
        return await self._call("getnewaddress", label, address_type, result_type=Address)

    async def get_balance(self, minconf: int | None = None) -> int:
        """Confirmed balance in satoshis."""
        # The first positional parameter is a legacy dummy that must be "*"
        dummy = "*" if minconf is not None else None
        return await self._call("getbalance", dummy, minconf, result_type=Sats)

    async def list_unspent(
        self,
        minconf: int | None = None,
        maxconf: int | None = None,
        addresses: list[Address] | None = None,
    ) -> list[Utxo]:
        """Spendable outputs in whatever order the node returns them."""
        return await self._call(
            "listunspent", minconf, maxconf, addresses, result_type=list[Utxo]
        )

    async def send_to_address(
        self,
        address: Address,
        amount: int,
        comment: str | None = None,
        comment_to: str | None = None,
        subtract_fee: bool | None = None,
    ) -> Txid:
        """Send `amount` satoshis to `address`."""
        txid = await self._call(
            "sendtoaddress",
            address,
            sats_to_btc(amount),
            comment,
            comment_to,
            subtract_fee,
            result_type=Txid,
        )
        logger.debug(f"Wallet {self.name} sent {amount} sats to {address}: {txid}")
        return txid

    async def get_wallet_info(self) -> WalletInfo:
        return await self._call("getwalletinfo", result_type=WalletInfo)

    async def get_transaction(self, txid: Txid) -> WalletTransaction:
        return await self._call("gettransaction", txid, result_type=WalletTransaction)
