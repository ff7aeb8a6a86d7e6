"""
chains/endpoints.py - Candidate endpoint resolution with caching.

Static provider configuration wins; registry URLs are the fallback for
chains without configured providers (typically user-added networks).
Resolution does no network I/O.
"""

from typing import Dict, List, Mapping, Optional, Protocol, Sequence

from core.exceptions import ValidationError
from core.logging import get_logger
from core.validators import ChainIdLike, is_http_url, parse_chain_id
from core.models import Network

logger = get_logger(__name__)


class NetworkLookup(Protocol):
    def find(self, chain_id: ChainIdLike) -> Optional[Network]: ...


class EndpointResolver:
    """
    Resolves the ordered candidate URLs for a chain.

    Non-empty results are memoised for the life of the resolver and handed
    out as copies. Empty results are not cached so a network added to the
    registry later is picked up on the next call. Invalid chain ids resolve
    to no endpoints. There is no invalidation: URLs edited on a
    network after its first resolution are not seen until restart.
    """

    def __init__(
        self,
        providers: Mapping[str, Sequence[str]],
        networks: Optional[NetworkLookup] = None,
    ):
        self.providers = providers
        self.networks = networks
        self._cache: Dict[int, List[str]] = {}

    def urls(self, chain_id: ChainIdLike) -> List[str]:
        """
        Get candidate endpoints for a chain in priority order.

        Args:
            chain_id: Chain id in any supported encoding

        Returns:
            Candidate URLs, possibly empty
        """
        try:
            key = parse_chain_id(chain_id)
        except ValidationError as e:
            logger.warning(
                f"No endpoints for invalid chain id: {e.message}",
                extra={"context": {"chain_id": chain_id}},
            )
            return []

        if key in self._cache:
            return list(self._cache[key])

        urls = [u for u in self.providers.get(str(key), []) if is_http_url(u)]

        if not urls and self.networks is not None:
            network = self.networks.find(key)
            if network is not None:
                urls = [u for u in network.rpc_urls if is_http_url(u)]

        if not urls:
            logger.debug(
                "No endpoints for chain",
                extra={"context": {"chain_id": key}},
            )
            return []

        self._cache[key] = urls
        return list(urls)

    def is_cached(self, chain_id: ChainIdLike) -> bool:
        try:
            return parse_chain_id(chain_id) in self._cache
        except ValidationError:
            return False
