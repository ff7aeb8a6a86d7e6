"""
core - Core utilities and models for the chain access layer.

This package contains:
- models.py: Network, ChainRecord and decoded RPC results
- constants.py: Error codes, RPC methods and defaults
- exceptions.py: Typed exceptions with error codes
- validators.py: Chain id, quantity and URL normalisation
- time.py: Millisecond timestamps
- logging.py: Structured JSON logging
"""

from core.constants import ErrorCode, RPCMethod
from core.exceptions import (
    ChainError,
    InfraError,
    RPCError,
    StoreError,
    ValidationError,
)
from core.logging import get_logger, setup_logging
from core.models import (
    UNAVAILABLE,
    AddChainParams,
    ChainCustomization,
    ChainRecord,
    FeeEstimate,
    FeeHistory,
    GasEstimate,
    Network,
    SendResult,
    TransactionReceipt,
)

__all__ = [
    # Constants
    "ErrorCode",
    "RPCMethod",
    # Exceptions
    "ChainError",
    "InfraError",
    "RPCError",
    "StoreError",
    "ValidationError",
    # Models
    "UNAVAILABLE",
    "AddChainParams",
    "ChainCustomization",
    "ChainRecord",
    "FeeEstimate",
    "FeeHistory",
    "GasEstimate",
    "Network",
    "SendResult",
    "TransactionReceipt",
    # Logging
    "get_logger",
    "setup_logging",
]
