"""
chains/rpc.py - JSON-RPC client with sequential endpoint failover.

Provides resilient RPC access with:
- Ordered candidate endpoints from the EndpointResolver
- One endpoint in flight per logical call, first success wins
- Per-endpoint timeout and per-method error budgets (FailoverPolicy)
- Latency and success tracking per endpoint

Failures are absorbed: every public method returns a safe default when all
candidates are exhausted. Only transaction submission and gas estimation
report the last JSON-RPC error to the caller.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Union

import httpx

from chains.endpoints import EndpointResolver
from chains.failover import FailoverPolicy
from core.constants import JSONRPC_VERSION, ErrorCode, RPCMethod
from core.exceptions import InfraError, RPCError, ValidationError
from core.logging import get_logger
from core.models import (
    UNAVAILABLE,
    FeeHistory,
    GasEstimate,
    Missing,
    SendResult,
    TransactionReceipt,
)
from core.time import elapsed_ms, now_ms
from core.validators import ChainIdLike, parse_chain_id, parse_quantity

logger = get_logger(__name__)

Decoder = Callable[[Any], Any]


@dataclass
class RPCStats:
    """Statistics for an RPC endpoint."""
    url: str
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    total_latency_ms: int = 0
    last_error: str | None = None
    last_success_ts: int | None = None

    @property
    def avg_latency_ms(self) -> int:
        if self.successful_requests == 0:
            return 0
        return self.total_latency_ms // self.successful_requests

    @property
    def success_rate(self) -> float:
        if self.total_requests == 0:
            return 0.0
        return self.successful_requests / self.total_requests


@dataclass
class CallOutcome:
    """Result of walking the candidate list for one logical call."""
    ok: bool
    value: Any = None
    request_id: int = 0
    endpoint_used: str | None = None
    last_error: RPCError | None = None


def _pass_through(result: Any) -> Any:
    return result


def _decode_receipt(result: Any) -> Optional[TransactionReceipt]:
    if not result:
        return None
    return TransactionReceipt.from_rpc(result)


def decode_priority_fee(result: Any) -> int:
    return parse_quantity(result) if result else 0


class RPCClient:
    """
    JSON-RPC client over all chains.

    Candidates come from the resolver; the policy bounds each attempt.
    An httpx.AsyncClient may be injected (tests pass one built on
    httpx.MockTransport); otherwise one is created lazily and owned here.
    """

    def __init__(
        self,
        resolver: EndpointResolver,
        policy: FailoverPolicy | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.resolver = resolver
        self.policy = policy or FailoverPolicy()
        self._client = http_client
        self._owns_client = http_client is None
        self.stats: Dict[str, RPCStats] = {}

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.policy.timeout_seconds),
                limits=httpx.Limits(max_connections=20),
            )
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "RPCClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _stats_for(self, url: str) -> RPCStats:
        if url not in self.stats:
            self.stats[url] = RPCStats(url=url)
        return self.stats[url]

    # ------------------------------------------------------------------
    # Single endpoint
    # ------------------------------------------------------------------

    async def _post(self, url: str, payload: dict) -> Any:
        """
        Send one JSON-RPC request and return its result field.

        Raises:
            RPCError: Endpoint answered with an error object
            InfraError: Timeout, connection failure or malformed body
        """
        client = await self._get_client()
        method = payload["method"]

        try:
            resp = await client.post(url, json=payload, timeout=self.policy.timeout_seconds)
        except httpx.TimeoutException as e:
            raise InfraError(
                f"Timeout after {self.policy.timeout_seconds}s",
                ErrorCode.INFRA_TIMEOUT,
                details={"url": url, "method": method},
            ) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise InfraError(
                f"Request failed: {e}",
                ErrorCode.INFRA_CONNECTION,
                details={"url": url, "method": method},
            ) from e

        try:
            body = resp.json()
        except ValueError as e:
            raise InfraError(
                "Response body is not JSON",
                ErrorCode.INFRA_BAD_RESPONSE,
                details={"url": url, "method": method, "status": resp.status_code},
            ) from e

        if not isinstance(body, dict):
            raise InfraError(
                "Response is not a JSON-RPC object",
                ErrorCode.INFRA_BAD_RESPONSE,
                details={"url": url, "method": method},
            )

        error = body.get("error")
        if error:
            if isinstance(error, dict):
                raise RPCError(
                    str(error.get("message", error)),
                    rpc_code=error.get("code"),
                    data=error.get("data"),
                    details={"url": url, "method": method},
                )
            raise RPCError(str(error), details={"url": url, "method": method})

        if "result" not in body:
            raise InfraError(
                "Response has neither result nor error",
                ErrorCode.INFRA_BAD_RESPONSE,
                details={"url": url, "method": method},
            )

        return body["result"]

    async def _attempt(
        self,
        url: str,
        method: str,
        params: list,
        decode: Decoder,
    ) -> tuple[Any, int]:
        """One tracked attempt against one endpoint; returns (value, request_id)."""
        stats = self._stats_for(url)
        stats.total_requests += 1

        # Timestamp ids keep bursts of requests distinguishable
        request_id = now_ms()
        payload = {
            "jsonrpc": JSONRPC_VERSION,
            "method": method,
            "params": params,
            "id": request_id,
        }

        start_ms = now_ms()
        try:
            result = await self._post(url, payload)
            try:
                value = decode(result)
            except (ValidationError, KeyError, TypeError, ValueError) as e:
                raise InfraError(
                    f"Undecodable {method} result: {e}",
                    ErrorCode.INFRA_BAD_RESPONSE,
                    details={"url": url, "method": method},
                ) from e
        except InfraError as e:
            stats.failed_requests += 1
            stats.last_error = e.message
            raise

        stats.successful_requests += 1
        stats.total_latency_ms += elapsed_ms(start_ms)
        stats.last_success_ts = now_ms()
        return value, request_id

    async def call_endpoint(
        self,
        url: str,
        method: str,
        params: list | None = None,
        decode: Decoder = _pass_through,
    ) -> Any:
        """
        Call exactly one endpoint, without failover.

        Used where only a user-supplied URL is known, e.g. probing a chain
        before it joins the registry.

        Raises:
            RPCError: Endpoint answered with an error object
            InfraError: Transport failure or undecodable result
        """
        value, _ = await self._attempt(url, method, params or [], decode)
        return value

    # ------------------------------------------------------------------
    # Failover
    # ------------------------------------------------------------------

    async def request(
        self,
        chain_id: ChainIdLike,
        method: str,
        params: list | None = None,
        decode: Decoder = _pass_through,
    ) -> CallOutcome:
        """
        Walk the candidate endpoints for a chain until one succeeds.

        Args:
            chain_id: Chain id in any supported encoding
            method: JSON-RPC method name
            params: Method parameters
            decode: Turns the raw result into the caller's type; a decode
                failure counts as a transport failure for that endpoint

        Returns:
            CallOutcome; ok is False when every candidate failed or the
            chain id is invalid
        """
        try:
            chain = parse_chain_id(chain_id)
        except ValidationError as e:
            logger.warning(
                f"Invalid chain id, not calling any endpoint: {e.message}",
                extra={"context": {"chain_id": chain_id, "method": method}},
            )
            return CallOutcome(ok=False)

        urls = self.resolver.urls(chain)
        errors = 0
        last_error: RPCError | None = None

        for url in urls:
            try:
                value, request_id = await self._attempt(url, method, params or [], decode)
            except RPCError as e:
                errors += 1
                last_error = e
                logger.debug(
                    f"RPC error from endpoint: {e.message}",
                    extra={"context": {"chain_id": chain, "endpoint": url, "method": method, "rpc_code": e.rpc_code}},
                )
                if self.policy.should_abort(method, errors):
                    logger.info(
                        "Error budget exhausted, skipping remaining endpoints",
                        extra={"context": {"chain_id": chain, "method": method, "errors": errors}},
                    )
                    break
                continue
            except InfraError as e:
                logger.debug(
                    f"Endpoint failed: {e.message}",
                    extra={"context": {"chain_id": chain, "endpoint": url, "method": method, "code": e.code.value}},
                )
                continue

            return CallOutcome(
                ok=True,
                value=value,
                request_id=request_id,
                endpoint_used=url,
                last_error=last_error,
            )

        logger.warning(
            "All RPC endpoints failed",
            extra={"context": {"chain_id": chain, "method": method, "endpoints_tried": len(urls)}},
        )
        return CallOutcome(ok=False, last_error=last_error)

    # ------------------------------------------------------------------
    # Methods
    # ------------------------------------------------------------------

    async def get_balance(self, chain_id: ChainIdLike, address: str) -> int:
        """Native balance in wei at latest; 0 when no endpoint answers."""
        outcome = await self.request(
            chain_id, RPCMethod.GET_BALANCE.value, [address, "latest"], parse_quantity
        )
        return outcome.value if outcome.ok else 0

    async def get_transaction_count(self, chain_id: ChainIdLike, address: str) -> int:
        """Pending nonce; 0 when no endpoint answers."""
        outcome = await self.request(
            chain_id, RPCMethod.GET_TRANSACTION_COUNT.value, [address, "pending"], parse_quantity
        )
        return outcome.value if outcome.ok else 0

    async def call(self, chain_id: ChainIdLike, tx: Dict[str, Any]) -> Optional[str]:
        """eth_call at latest; None when no endpoint answers."""
        outcome = await self.request(chain_id, RPCMethod.CALL.value, [tx, "latest"])
        return outcome.value if outcome.ok else None

    async def raw_call(self, chain_id: ChainIdLike, payload: Dict[str, Any]) -> Any:
        """
        Forward an opaque {"method", "params"} payload; returns its result
        or None. jsonrpc and id are always filled in here.
        """
        outcome = await self.request(chain_id, payload["method"], list(payload.get("params") or []))
        return outcome.value if outcome.ok else None

    async def send_raw_transaction(self, chain_id: ChainIdLike, tx_hex: str) -> SendResult:
        """
        Submit a signed transaction.

        Returns the accepted hash, or on exhaustion the last JSON-RPC error
        seen (if any) with id 0.
        """
        outcome = await self.request(chain_id, RPCMethod.SEND_RAW_TRANSACTION.value, [tx_hex])
        if outcome.ok:
            return SendResult(id=outcome.request_id, result=outcome.value)

        error = outcome.last_error.to_dict() if outcome.last_error else None
        return SendResult(id=0, result=None, error=error)

    async def estimate_gas(self, chain_id: ChainIdLike, tx: Dict[str, Any]) -> GasEstimate:
        """Gas estimate, or the last endpoint error message."""
        outcome = await self.request(chain_id, RPCMethod.ESTIMATE_GAS.value, [tx], parse_quantity)
        if outcome.ok:
            return GasEstimate(gas=outcome.value)

        message = outcome.last_error.message if outcome.last_error else ""
        return GasEstimate(error_message=message)

    async def get_gas_price(self, chain_id: ChainIdLike) -> Optional[int]:
        outcome = await self.request(chain_id, RPCMethod.GAS_PRICE.value, [], parse_quantity)
        return outcome.value if outcome.ok else None

    async def get_transaction_receipt(
        self, chain_id: ChainIdLike, tx_hash: str
    ) -> Union[TransactionReceipt, None, Missing]:
        """
        Receipt for a transaction.

        Returns:
            TransactionReceipt when mined, None when an endpoint reports it
            not mined yet, UNAVAILABLE when no endpoint answered
        """
        outcome = await self.request(
            chain_id, RPCMethod.GET_TRANSACTION_RECEIPT.value, [tx_hash], _decode_receipt
        )
        return outcome.value if outcome.ok else UNAVAILABLE

    async def get_code(self, chain_id: ChainIdLike, address: str) -> Optional[str]:
        outcome = await self.request(chain_id, RPCMethod.GET_CODE.value, [address, "latest"])
        return outcome.value if outcome.ok else None

    async def get_fee_history(
        self,
        chain_id: ChainIdLike,
        block_count: int = 1,
        newest_block: str = "latest",
        reward_percentiles: List[float] | None = None,
    ) -> Optional[FeeHistory]:
        outcome = await self.request(
            chain_id,
            RPCMethod.FEE_HISTORY.value,
            [block_count, newest_block, reward_percentiles or []],
            FeeHistory.from_rpc,
        )
        return outcome.value if outcome.ok else None

    async def get_max_priority_fee(self, chain_id: ChainIdLike) -> int:
        """Suggested priority fee in wei; 0 when absent or unavailable."""
        outcome = await self.request(
            chain_id, RPCMethod.MAX_PRIORITY_FEE.value, [], decode_priority_fee
        )
        return outcome.value if outcome.ok else 0

    def get_stats_summary(self) -> dict:
        """Get statistics summary for all endpoints contacted so far."""
        return {
            url: {
                "total_requests": s.total_requests,
                "success_rate": round(s.success_rate, 3),
                "avg_latency_ms": s.avg_latency_ms,
                "last_error": s.last_error,
            }
            for url, s in self.stats.items()
        }
