# PATH: core/models.py
"""
Data models for networks, persisted chain records and RPC results.

Network is what the rest of the application consumes. ChainRecord is its
persisted counterpart for user-added networks. The remaining models carry
decoded RPC results.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from core.constants import (
    CHAIN_COLORS,
    DEFAULT_CHAIN_COLOR,
    DEFAULT_CHAIN_NAME,
    DEFAULT_CHAIN_SYMBOL,
)
from core.validators import ChainIdLike, canonical_chain_id, parse_chain_id, parse_quantity


class Missing(Enum):
    """Marker for "every endpoint failed", distinct from a null result."""
    UNAVAILABLE = "UNAVAILABLE"

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return self.value


UNAVAILABLE = Missing.UNAVAILABLE


# =============================================================================
# NETWORKS
# =============================================================================

@dataclass
class Network:
    """A blockchain network, built-in or user-added."""
    chain_id: int
    name: str
    symbol: str
    explorer_url: str = ""
    color: str = DEFAULT_CHAIN_COLOR
    rpc_urls: List[str] = field(default_factory=list)
    eip1559: bool = False
    is_user_added: bool = False

    @classmethod
    def from_config(cls, data: Dict[str, Any]) -> "Network":
        """Build a built-in network from a networks.yaml entry."""
        return cls(
            chain_id=parse_chain_id(data["chain_id"]),
            name=data["name"],
            symbol=data.get("symbol", DEFAULT_CHAIN_SYMBOL),
            explorer_url=data.get("explorer_url", ""),
            color=data.get("color", DEFAULT_CHAIN_COLOR),
            rpc_urls=list(data.get("rpc_urls", [])),
            eip1559=bool(data.get("eip1559", False)),
            is_user_added=False,
        )

    @classmethod
    def from_record(cls, record: "ChainRecord") -> "Network":
        """Build a user-added network from its persisted record."""
        return cls(
            chain_id=parse_chain_id(record.id),
            name=record.name,
            symbol=record.symbol,
            explorer_url=record.explorer,
            color=record.customize.color or DEFAULT_CHAIN_COLOR,
            rpc_urls=list(record.rpc_urls),
            eip1559=bool(record.customize.eip1559),
            is_user_added=True,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chain_id": self.chain_id,
            "name": self.name,
            "symbol": self.symbol,
            "explorer_url": self.explorer_url,
            "color": self.color,
            "rpc_urls": list(self.rpc_urls),
            "eip1559": self.eip1559,
            "is_user_added": self.is_user_added,
        }


@dataclass
class ChainCustomization:
    """Display colour and fee-market flag stored with a chain record."""
    color: str = DEFAULT_CHAIN_COLOR
    eip1559: bool = False


@dataclass
class ChainRecord:
    """Persisted counterpart of a user-added Network."""
    id: str
    name: str = DEFAULT_CHAIN_NAME
    explorer: str = ""
    symbol: str = DEFAULT_CHAIN_SYMBOL
    rpc_urls: List[str] = field(default_factory=list)
    customize: ChainCustomization = field(default_factory=ChainCustomization)

    @property
    def chain_id(self) -> int:
        return parse_chain_id(self.id)

    @classmethod
    def new(cls, chain_id: ChainIdLike) -> "ChainRecord":
        """Fresh record with the default colour for this chain."""
        value = parse_chain_id(chain_id)
        return cls(
            id=canonical_chain_id(value),
            customize=ChainCustomization(
                color=CHAIN_COLORS.get(value, DEFAULT_CHAIN_COLOR),
                eip1559=False,
            ),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChainRecord":
        customize = data.get("customize")
        if not isinstance(customize, dict):
            customize = {}
        rpc_urls = data.get("rpc_urls", data.get("rpcUrls")) or []
        if not isinstance(rpc_urls, list):
            raise TypeError("rpc_urls is not a list")
        return cls(
            id=str(data["id"]),
            name=data.get("name") or DEFAULT_CHAIN_NAME,
            explorer=data.get("explorer") or "",
            symbol=data.get("symbol") or DEFAULT_CHAIN_SYMBOL,
            rpc_urls=list(rpc_urls),
            customize=ChainCustomization(
                color=customize.get("color") or DEFAULT_CHAIN_COLOR,
                eip1559=bool(customize.get("eip1559", False)),
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "explorer": self.explorer,
            "symbol": self.symbol,
            "rpc_urls": list(self.rpc_urls),
            "customize": {
                "color": self.customize.color,
                "eip1559": self.customize.eip1559,
            },
        }


def _as_list(value: Any) -> List[Any]:
    """Wallet requests sometimes send a bare string where a list belongs."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


@dataclass
class AddChainParams:
    """
    Wallet-provider "add network" request.

    Mirrors the wallet_addEthereumChain parameter shape; icon URLs are
    accepted and ignored.
    """
    chain_id: str
    chain_name: str = ""
    currency_name: str = ""
    currency_symbol: str = ""
    currency_decimals: int = 18
    rpc_urls: List[str] = field(default_factory=list)
    block_explorer_urls: List[str] = field(default_factory=list)
    icon_urls: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AddChainParams":
        currency = data.get("nativeCurrency")
        if not isinstance(currency, dict):
            currency = {}
        return cls(
            chain_id=data.get("chainId"),
            chain_name=data.get("chainName") or "",
            currency_name=currency.get("name") or "",
            currency_symbol=currency.get("symbol") or "",
            currency_decimals=currency.get("decimals", 18),
            rpc_urls=_as_list(data.get("rpcUrls")),
            block_explorer_urls=_as_list(data.get("blockExplorerUrls")),
            icon_urls=_as_list(data.get("iconUrls")),
        )


# =============================================================================
# RPC RESULTS
# =============================================================================

@dataclass
class TransactionReceipt:
    """Mined transaction receipt; only these fields are relied upon."""
    transaction_hash: str
    transaction_index: Optional[str]
    block_number: Optional[str]
    block_hash: Optional[str]
    contract_address: Optional[str]
    status: Optional[str]
    gas_used: Optional[str]
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> "TransactionReceipt":
        return cls(
            transaction_hash=data["transactionHash"],
            transaction_index=data.get("transactionIndex"),
            block_number=data.get("blockNumber"),
            block_hash=data.get("blockHash"),
            contract_address=data.get("contractAddress"),
            status=data.get("status"),
            gas_used=data.get("gasUsed"),
            raw=data,
        )

    @property
    def succeeded(self) -> bool:
        return self.status is not None and parse_quantity(self.status) == 1


@dataclass
class SendResult:
    """Outcome of a raw transaction submission."""
    id: int
    result: Optional[str] = None
    error: Optional[Dict[str, Any]] = None

    @property
    def ok(self) -> bool:
        return self.result is not None


@dataclass
class GasEstimate:
    """Gas estimate or the last endpoint's error message."""
    gas: Optional[int] = None
    error_message: str = ""

    @property
    def ok(self) -> bool:
        return self.gas is not None


@dataclass
class FeeHistory:
    """Decoded eth_feeHistory result."""
    base_fee_per_gas: List[str]
    oldest_block: Optional[str] = None

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> "FeeHistory":
        base_fees = data["baseFeePerGas"]
        if not isinstance(base_fees, list):
            raise TypeError("baseFeePerGas is not a list")
        return cls(base_fee_per_gas=list(base_fees), oldest_block=data.get("oldestBlock"))

    @property
    def latest_base_fee(self) -> int:
        """Base fee of the newest entry, 0 when the array is empty."""
        if not self.base_fee_per_gas:
            return 0
        return parse_quantity(self.base_fee_per_gas[-1])


@dataclass
class FeeEstimate:
    """Current fee picture for a chain."""
    chain_id: Optional[int]
    base_fee: int
    priority_fee: int

    @property
    def eip1559(self) -> bool:
        return self.base_fee >= 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chain_id": self.chain_id,
            "base_fee": self.base_fee,
            "priority_fee": self.priority_fee,
            "eip1559": self.eip1559,
        }
