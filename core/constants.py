# PATH: core/constants.py
"""
Constants for the chain access layer.

Contains error codes, RPC method names and registry defaults.
"""

from enum import Enum
from typing import Dict, Final


# =============================================================================
# RPC DEFAULTS
# =============================================================================

JSONRPC_VERSION: Final = "2.0"

# Per-endpoint wait before failing over to the next candidate
DEFAULT_RPC_TIMEOUT_SECONDS = 5.0

# JSON-RPC error objects tolerated per logical call before giving up early.
# Methods not listed walk the whole candidate list.
DEFAULT_ERROR_BUDGETS: Dict[str, int] = {
    "eth_estimateGas": 4,
}

# Number.MAX_SAFE_INTEGER; chain ids must fit wallet-provider number types
MAX_SAFE_CHAIN_ID = 2**53 - 1


class RPCMethod(str, Enum):
    """JSON-RPC methods issued by the client."""
    GET_BALANCE = "eth_getBalance"
    GET_TRANSACTION_COUNT = "eth_getTransactionCount"
    CALL = "eth_call"
    SEND_RAW_TRANSACTION = "eth_sendRawTransaction"
    ESTIMATE_GAS = "eth_estimateGas"
    GAS_PRICE = "eth_gasPrice"
    GET_TRANSACTION_RECEIPT = "eth_getTransactionReceipt"
    GET_CODE = "eth_getCode"
    FEE_HISTORY = "eth_feeHistory"
    MAX_PRIORITY_FEE = "eth_maxPriorityFeePerGas"


# =============================================================================
# REGISTRY DEFAULTS
# =============================================================================

DEFAULT_CHAIN_NAME = "EVM-Compatible"
DEFAULT_CHAIN_SYMBOL = "ETH"
DEFAULT_CHAIN_COLOR = "#7B68EE"

# Display accents for well-known user-addable chains
CHAIN_COLORS: Dict[int, str] = {
    61: "#3ab83a",
}

STORE_FILENAME = "chains.json"


# =============================================================================
# ERROR CODES
# =============================================================================

class ErrorCode(str, Enum):
    """Error codes carried by ChainError and its subclasses."""
    # Infrastructure
    INFRA_RPC_ERROR = "INFRA_RPC_ERROR"
    INFRA_TIMEOUT = "INFRA_TIMEOUT"
    INFRA_BAD_RESPONSE = "INFRA_BAD_RESPONSE"
    INFRA_CONNECTION = "INFRA_CONNECTION"

    # Registry validation
    VALIDATION_CHAIN_ID = "VALIDATION_CHAIN_ID"
    VALIDATION_BUILTIN_CONFLICT = "VALIDATION_BUILTIN_CONFLICT"
    VALIDATION_NO_RPC_URLS = "VALIDATION_NO_RPC_URLS"
    VALIDATION_RPC_URL = "VALIDATION_RPC_URL"
    VALIDATION_QUANTITY = "VALIDATION_QUANTITY"

    # Persistence
    STORE_READ_FAILED = "STORE_READ_FAILED"
    STORE_WRITE_FAILED = "STORE_WRITE_FAILED"

    UNKNOWN = "UNKNOWN"
