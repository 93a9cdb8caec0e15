"""
Regtest constants shared by the RPC client and the orchestrator.
"""

from __future__ import annotations

from decimal import Decimal

# Satoshis per bitcoin
COIN = 100_000_000

# Smallest representable amount in BTC, used to quantize outgoing amounts
SATOSHI = Decimal("0.00000001")

# A coinbase output is spendable once it has this many blocks on top of it
COINBASE_MATURITY = 100

# Regtest block subsidy before the first halving (150 blocks)
REGTEST_BLOCK_SUBSIDY = 50 * COIN

DEFAULT_WALLET_NAME = "testwallet"

# Timeout for regular RPC calls (seconds)
DEFAULT_RPC_TIMEOUT = 30.0

# Background mining interval (seconds)
DEFAULT_TICK_INTERVAL = 1.0

# Protocol tag sent in every request envelope
JSONRPC_VERSION = "1.0"
