"""
chains/ - Blockchain access layer.

Modules:
- endpoints: candidate endpoint resolution and caching
- failover: timeout and error-budget policy
- rpc: JSON-RPC client with sequential failover
- fees: base fee / priority fee lookups
- store: persisted user-added chain records
- registry: built-in and user networks, current selection
- context: wiring of the above
"""

from chains.endpoints import EndpointResolver
from chains.failover import FailoverPolicy
from chains.rpc import CallOutcome, RPCClient, RPCStats
from chains.fees import FeeOracle
from chains.store import JsonChainStore
from chains.registry import NetworkRegistry
from chains.context import ChainContext

__all__ = [
    "EndpointResolver",
    "FailoverPolicy",
    "CallOutcome",
    "RPCClient",
    "RPCStats",
    "FeeOracle",
    "JsonChainStore",
    "NetworkRegistry",
    "ChainContext",
]
