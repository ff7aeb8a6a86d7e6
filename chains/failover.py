"""
chains/failover.py - Failover policy for multi-endpoint RPC calls.

Candidates are always walked sequentially. Transport failures never count
against a budget; JSON-RPC error objects do, per method.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional

from core.constants import DEFAULT_ERROR_BUDGETS, DEFAULT_RPC_TIMEOUT_SECONDS


@dataclass
class FailoverPolicy:
    """
    How long to wait on one endpoint and how many JSON-RPC errors a call
    tolerates before giving up on the remaining candidates.
    """
    timeout_seconds: float = DEFAULT_RPC_TIMEOUT_SECONDS
    error_budgets: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_ERROR_BUDGETS))
    default_error_budget: Optional[int] = None

    def error_budget(self, method: str) -> Optional[int]:
        """Errors tolerated for method; None means unlimited."""
        return self.error_budgets.get(method, self.default_error_budget)

    def should_abort(self, method: str, errors: int) -> bool:
        """True once errors exceeds the method's budget."""
        budget = self.error_budget(method)
        return budget is not None and errors > budget

    @classmethod
    def from_settings(cls, settings) -> "FailoverPolicy":
        return cls(
            timeout_seconds=settings.rpc_timeout_seconds,
            error_budgets=dict(settings.error_budgets),
        )
