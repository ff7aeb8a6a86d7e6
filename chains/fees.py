"""
chains/fees.py - Base fee and priority fee lookups.

Each lookup exists in two forms: by chain id (resolver candidates with
failover, 0 on exhaustion) and by a single explicit URL (raises on failure).
The explicit form is used to classify a chain before it is registered.
"""

import asyncio

from chains.rpc import RPCClient, decode_priority_fee
from core.constants import RPCMethod
from core.exceptions import ValidationError
from core.logging import get_logger
from core.models import FeeEstimate, FeeHistory
from core.validators import ChainIdLike, parse_chain_id

logger = get_logger(__name__)

# Latest block only, no reward percentiles
FEE_HISTORY_PARAMS = [1, "latest", []]


def _decode_base_fee(result) -> int:
    return FeeHistory.from_rpc(result).latest_base_fee


class FeeOracle:
    """Fee estimates layered on the RPC client."""

    def __init__(self, client: RPCClient):
        self.client = client

    async def next_block_base_fee(self, chain_id: ChainIdLike) -> int:
        """Latest base fee in wei; 0 for an empty history or no answer."""
        history = await self.client.get_fee_history(chain_id, *FEE_HISTORY_PARAMS)
        if history is None:
            return 0
        return history.latest_base_fee

    async def next_block_base_fee_by_rpc(self, url: str) -> int:
        """
        Latest base fee from one endpoint.

        Raises:
            InfraError: Endpoint unreachable, errored or returned a bad history
        """
        return await self.client.call_endpoint(
            url, RPCMethod.FEE_HISTORY.value, list(FEE_HISTORY_PARAMS), _decode_base_fee
        )

    async def max_priority_fee(self, chain_id: ChainIdLike) -> int:
        return await self.client.get_max_priority_fee(chain_id)

    async def max_priority_fee_by_rpc(self, url: str) -> int:
        """
        Suggested priority fee from one endpoint; 0 when the result is absent.

        Raises:
            InfraError: Endpoint unreachable or errored
        """
        return await self.client.call_endpoint(
            url, RPCMethod.MAX_PRIORITY_FEE.value, [], decode_priority_fee
        )

    async def supports_eip1559(self, url: str) -> bool:
        """
        Whether the chain behind url runs a fee market (base fee >= 1 wei).

        Raises:
            InfraError: Request failed; callers decide the fallback
        """
        base_fee = await self.next_block_base_fee_by_rpc(url)
        return base_fee >= 1

    async def estimate(self, chain_id: ChainIdLike) -> FeeEstimate:
        """
        Base and priority fee for a chain, queried concurrently.

        An invalid chain id yields a zero estimate with chain_id None.
        """
        try:
            chain = parse_chain_id(chain_id)
        except ValidationError as e:
            logger.warning(
                f"Invalid chain id, no fee estimate: {e.message}",
                extra={"context": {"chain_id": chain_id}},
            )
            return FeeEstimate(chain_id=None, base_fee=0, priority_fee=0)

        base_fee, priority_fee = await asyncio.gather(
            self.next_block_base_fee(chain),
            self.max_priority_fee(chain),
        )
        estimate = FeeEstimate(chain_id=chain, base_fee=base_fee, priority_fee=priority_fee)
        logger.debug("Fee estimate", extra={"context": estimate.to_dict()})
        return estimate
