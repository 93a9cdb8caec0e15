"""
Typed results of node RPC calls, validated with Pydantic.

The node reports amounts in BTC as JSON numbers. The transport parses them as
Decimal and the models below convert them to integer satoshis, so no amount
ever goes through a float.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Annotated, Any, NewType

from pydantic import BaseModel, BeforeValidator, Field

from bitcoin_harness.constants import COIN, SATOSHI

# Opaque strings emitted and accepted by the node; never decoded locally
Address = NewType("Address", str)
BlockHash = NewType("BlockHash", str)
Txid = NewType("Txid", str)


def btc_to_sats(value: Any) -> int:
    """
    Convert a BTC amount as reported by the node into satoshis.

    Args:
        value: Decimal, int or numeric string (floats are converted through str)

    Returns:
        Amount in satoshis

    Raises:
        ValueError: If the value is not numeric or has sub-satoshi precision
    """
    if isinstance(value, bool):
        raise ValueError(f"Not an amount: {value!r}")
    if isinstance(value, float):
        value = str(value)
    try:
        sats = Decimal(value) * COIN
    except (InvalidOperation, TypeError, ValueError) as e:
        raise ValueError(f"Not an amount: {value!r}") from e
    if not sats.is_finite() or sats != sats.to_integral_value():
        raise ValueError(f"Amount {value} is not a whole number of satoshis")
    return int(sats)


def sats_to_btc(sats: int) -> Decimal:
    """Convert satoshis to a BTC Decimal with exactly 8 decimal places."""
    return (Decimal(sats) / COIN).quantize(SATOSHI)


# Integer satoshi field parsed from a BTC amount
Sats = Annotated[int, BeforeValidator(btc_to_sats)]


class Network(str, Enum):
    """Chain names as reported by getblockchaininfo."""

    MAINNET = "main"
    TESTNET = "test"
    TESTNET4 = "testnet4"
    SIGNET = "signet"
    REGTEST = "regtest"


class CreateWalletResult(BaseModel):
    """Result of createwallet / loadwallet."""

    name: str
    # Older nodes return a single string, newer ones a list
    warning: str | None = None
    warnings: list[str] = Field(default_factory=list)


class Utxo(BaseModel):
    """A spendable output as reported by listunspent. Never built locally."""

    txid: Txid
    vout: int
    address: Address | None = None
    label: str | None = None
    amount: Sats
    confirmations: int
    script_pub_key: str = Field(default="", alias="scriptPubKey")
    spendable: bool = True
    solvable: bool = True
    safe: bool = True

    model_config = {"frozen": True, "populate_by_name": True}


class BlockchainInfo(BaseModel):
    chain: Network
    blocks: int
    headers: int
    bestblockhash: BlockHash
    mediantime: int
    initialblockdownload: bool = False


class NetworkInfo(BaseModel):
    version: int
    subversion: str
    protocolversion: int
    connections: int = 0


class WalletInfo(BaseModel):
    walletname: str
    txcount: int
    # Balance fields are absent on recent nodes (use getbalances there)
    balance: Sats = 0
    unconfirmed_balance: Sats = 0
    immature_balance: Sats = 0


class WalletTransaction(BaseModel):
    """Subset of gettransaction. Amounts are negative for outgoing transactions."""

    txid: Txid
    amount: Sats
    fee: Sats = 0
    confirmations: int
    blockhash: BlockHash | None = None
    blockheight: int | None = None
    hex: str = ""
