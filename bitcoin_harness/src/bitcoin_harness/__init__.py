"""
bitcoin-harness - Fund and mine a regtest Bitcoin Core node from tests.

Provides a typed JSON-RPC client, a wallet facade and an orchestrator that
funds a test wallet and keeps mining in the background.
"""

__version__ = "0.1.0"

from bitcoin_harness.bitcoind_rpc import Client, WalletClient, build_params
from bitcoin_harness.constants import (
    COIN,
    COINBASE_MATURITY,
    DEFAULT_TICK_INTERVAL,
    DEFAULT_WALLET_NAME,
)
from bitcoin_harness.errors import (
    ConfigError,
    DecodeError,
    HarnessError,
    RpcError,
    TransportError,
)
from bitcoin_harness.harness import Harness, HarnessPhase, MiningTask
from bitcoin_harness.json_rpc import JsonRpcClient
from bitcoin_harness.models import (
    Address,
    BlockchainInfo,
    BlockHash,
    CreateWalletResult,
    Network,
    NetworkInfo,
    Txid,
    Utxo,
    WalletInfo,
    WalletTransaction,
    btc_to_sats,
    sats_to_btc,
)
from bitcoin_harness.wallet import Wallet

__all__ = [
    "Address",
    "BlockHash",
    "BlockchainInfo",
    "Client",
    "COIN",
    "COINBASE_MATURITY",
    "ConfigError",
    "CreateWalletResult",
    "DEFAULT_TICK_INTERVAL",
    "DEFAULT_WALLET_NAME",
    "DecodeError",
    "Harness",
    "HarnessError",
    "HarnessPhase",
    "JsonRpcClient",
    "MiningTask",
    "Network",
    "NetworkInfo",
    "RpcError",
    "TransportError",
    "Txid",
    "Utxo",
    "Wallet",
    "WalletClient",
    "WalletInfo",
    "WalletTransaction",
    "btc_to_sats",
    "build_params",
    "sats_to_btc",
]
