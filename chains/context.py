"""
chains/context.py - Wiring for the chain access layer.

One ChainContext holds one registry, resolver, RPC client and fee oracle.
Consumers receive the context (or the piece they need) explicitly; tests
build isolated contexts against temporary stores and mock transports.
"""

from pathlib import Path
from typing import Dict, List, Optional

import httpx

from chains.endpoints import EndpointResolver
from chains.failover import FailoverPolicy
from chains.fees import FeeOracle
from chains.registry import ChainStore, ColorSampler, NetworkRegistry
from chains.rpc import RPCClient
from chains.store import JsonChainStore
from config import Settings, load_networks, load_providers
from core.logging import get_logger
from core.models import Network

logger = get_logger(__name__)


class ChainContext:
    """
    Registry, resolver, client and oracle sharing one lifecycle.

    Use as an async context manager to close the HTTP client on exit.
    """

    def __init__(
        self,
        registry: NetworkRegistry,
        resolver: EndpointResolver,
        client: RPCClient,
        fees: FeeOracle,
    ):
        self.registry = registry
        self.resolver = resolver
        self.client = client
        self.fees = fees

    @classmethod
    def build(
        cls,
        store: ChainStore,
        built_ins: List[Network],
        providers: Dict[str, List[str]],
        policy: Optional[FailoverPolicy] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        color_sampler: Optional[ColorSampler] = None,
    ) -> "ChainContext":
        """
        Wire the components together and load the registry.

        The registry feeds the resolver, the resolver feeds the client, and
        the oracle built on the client is handed back to the registry for
        fee-market checks when networks are added.
        """
        registry = NetworkRegistry(store, built_ins, color_sampler=color_sampler)
        resolver = EndpointResolver(providers, registry)
        client = RPCClient(resolver, policy, http_client)
        fees = FeeOracle(client)
        registry.fee_oracle = fees
        registry.init()
        return cls(registry, resolver, client, fees)

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        color_sampler: Optional[ColorSampler] = None,
    ) -> "ChainContext":
        """Build from YAML configuration and environment settings."""
        settings = settings or Settings.from_env()
        built_ins = [Network.from_config(n) for n in load_networks(settings.networks_file)]
        providers = load_providers(settings.providers_file)
        store = JsonChainStore.in_dir(Path(settings.data_dir))

        logger.debug(
            "Building chain context",
            extra={"context": {"data_dir": str(settings.data_dir), "providers": len(providers)}},
        )
        return cls.build(
            store,
            built_ins,
            providers,
            policy=FailoverPolicy.from_settings(settings),
            color_sampler=color_sampler,
        )

    async def close(self) -> None:
        await self.client.close()

    async def __aenter__(self) -> "ChainContext":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
