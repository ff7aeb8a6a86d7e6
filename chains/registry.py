"""
chains/registry.py - Built-in and user-added networks.

The registry owns:
- the immutable built-in networks (from config/networks.yaml)
- user-added networks, persisted through the chain store
- the single "current" network, persisted by chain id

Mutations update memory first and then write the store. A failed write is
logged and not rolled back, so memory and disk can drift until the next
successful write or restart.
"""

from typing import Any, Callable, Dict, List, Optional, Protocol, Union

from chains.fees import FeeOracle
from core.constants import (
    DEFAULT_CHAIN_NAME,
    DEFAULT_CHAIN_SYMBOL,
    ErrorCode,
)
from core.exceptions import InfraError, StoreError, ValidationError
from core.logging import get_logger
from core.models import AddChainParams, ChainRecord, Network
from core.validators import ChainIdLike, canonical_chain_id, is_http_url, parse_chain_id

logger = get_logger(__name__)

# symbol -> accent colour, or None when no icon is bundled for it
ColorSampler = Callable[[str], Optional[str]]

ETHEREUM_CHAIN_ID = 1
ARBITRUM_CHAIN_ID = 42161
OPTIMISM_CHAIN_ID = 10
POLYGON_CHAIN_ID = 137


class ChainStore(Protocol):
    def all(self) -> List[ChainRecord]: ...
    def find(self, chain_id: ChainIdLike) -> Optional[ChainRecord]: ...
    def save(self, record: ChainRecord) -> None: ...
    def delete(self, chain_id: ChainIdLike) -> bool: ...
    def get_current_chain_id(self) -> Optional[int]: ...
    def set_current_chain_id(self, chain_id: ChainIdLike) -> None: ...


class NetworkRegistry:
    """
    Catalog of networks plus the current selection.

    Lookups compare integer chain ids, so "250", "0xfa" and 250 all find
    the same network.
    """

    def __init__(
        self,
        store: ChainStore,
        built_ins: List[Network],
        fee_oracle: Optional[FeeOracle] = None,
        color_sampler: Optional[ColorSampler] = None,
    ):
        if not built_ins:
            raise ValueError("At least one built-in network is required")

        self.store = store
        self.built_ins: List[Network] = list(built_ins)
        self.fee_oracle = fee_oracle
        self.color_sampler = color_sampler
        self.user_chains: List[Network] = []
        self._current: Network = self.built_ins[0]

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @property
    def current(self) -> Network:
        return self._current

    @property
    def all(self) -> List[Network]:
        return self.built_ins + self.user_chains

    @property
    def ethereum(self) -> Network:
        return self._built_in(ETHEREUM_CHAIN_ID)

    @property
    def arbitrum(self) -> Network:
        return self._built_in(ARBITRUM_CHAIN_ID)

    @property
    def optimism(self) -> Network:
        return self._built_in(OPTIMISM_CHAIN_ID)

    @property
    def polygon(self) -> Network:
        return self._built_in(POLYGON_CHAIN_ID)

    def _built_in(self, chain_id: int) -> Network:
        for network in self.built_ins:
            if network.chain_id == chain_id:
                return network
        return self.built_ins[0]

    def _is_built_in(self, chain_id: int) -> bool:
        return any(n.chain_id == chain_id for n in self.built_ins)

    def has(self, chain_id: ChainIdLike) -> bool:
        return self.find(chain_id) is not None

    def find(self, chain_id: ChainIdLike) -> Optional[Network]:
        try:
            value = parse_chain_id(chain_id)
        except ValidationError:
            return None
        for network in self.all:
            if network.chain_id == value:
                return network
        return None

    def find_user_chain(self, chain_id: ChainIdLike) -> Optional[Network]:
        network = self.find(chain_id)
        if network is None or not network.is_user_added:
            return None
        return network

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def init(self) -> None:
        """Load user chains from the store and restore the current network."""
        user_chains: List[Network] = []
        for record in self.store.all():
            try:
                network = Network.from_record(record)
            except ValidationError as e:
                logger.warning(
                    f"Skipping chain record: {e}",
                    extra={"context": {"record_id": record.id}},
                )
                continue

            if self._is_built_in(network.chain_id):
                logger.info(
                    "Persisted chain shadows a built-in network, ignoring it",
                    extra={"context": {"chain_id": network.chain_id}},
                )
                continue
            user_chains.append(network)

        self.user_chains = user_chains

        current_id = self.store.get_current_chain_id()
        current = self.find(current_id) if current_id is not None else None
        self._current = current or self.built_ins[0]

        logger.info(
            f"Registry loaded: {len(self.built_ins)} built-in, {len(self.user_chains)} user networks",
            extra={"context": {"current_chain_id": self._current.chain_id}},
        )

    def switch(self, network: Network) -> None:
        """Make network current and persist the selection."""
        if self._current.chain_id == network.chain_id:
            return

        self._current = network
        self._persist(lambda: self.store.set_current_chain_id(network.chain_id), network.chain_id)

    def reset(self) -> None:
        """Back to Ethereum with no user networks in memory."""
        self.switch(self.ethereum)
        self.user_chains = []

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _validate(self, params: AddChainParams) -> int:
        """
        Check an add request.

        Raises:
            ValidationError: Bad chain id, built-in conflict, missing or
                malformed RPC URLs
        """
        chain_id = parse_chain_id(params.chain_id)

        if self._is_built_in(chain_id):
            raise ValidationError(
                f"Chain {chain_id} is a built-in network",
                ErrorCode.VALIDATION_BUILTIN_CONFLICT,
                details={"chain_id": chain_id},
            )

        if not params.rpc_urls:
            raise ValidationError(
                f"No RPC URLs supplied for chain {chain_id}",
                ErrorCode.VALIDATION_NO_RPC_URLS,
                details={"chain_id": chain_id},
            )

        bad_urls = [u for u in params.rpc_urls if not is_http_url(u)]
        if bad_urls:
            raise ValidationError(
                f"Not http(s) RPC URLs for chain {chain_id}: {bad_urls!r}",
                ErrorCode.VALIDATION_RPC_URL,
                details={"chain_id": chain_id},
            )

        return chain_id

    async def add(self, params: Union[AddChainParams, Dict[str, Any]]) -> bool:
        """
        Add (or re-add) a user network.

        The first RPC URL is checked for fee-market support and the symbol's
        bundled icon, if any, supplies the accent colour. Neither check can
        fail the add.

        Returns:
            True if the network was added
        """
        if isinstance(params, dict):
            params = AddChainParams.from_dict(params)

        try:
            chain_id = self._validate(params)
        except ValidationError as e:
            logger.warning(
                f"Rejected network: {e.message}",
                extra={"context": {"chain_id": params.chain_id, "code": e.code.value}},
            )
            return False

        record = self.store.find(chain_id) or ChainRecord.new(chain_id)
        record.id = canonical_chain_id(chain_id)
        record.name = params.chain_name or DEFAULT_CHAIN_NAME
        record.explorer = params.block_explorer_urls[0] if params.block_explorer_urls else ""
        record.rpc_urls = list(params.rpc_urls)
        record.symbol = params.currency_symbol or DEFAULT_CHAIN_SYMBOL
        record.customize.eip1559 = await self._check_eip1559(chain_id, params.rpc_urls[0])

        color = self._sample_color(record.symbol)
        if color:
            record.customize.color = color

        network = Network.from_record(record)
        existing = self.find_user_chain(chain_id)
        if existing is not None:
            self.user_chains = [network if n.chain_id == chain_id else n for n in self.user_chains]
        else:
            self.user_chains.append(network)

        self._persist(lambda: self.store.save(record), chain_id)

        logger.info(
            f"Added network {network.name}",
            extra={"context": {"chain_id": chain_id, "eip1559": network.eip1559, "rpc_urls": len(network.rpc_urls)}},
        )
        return True

    async def _check_eip1559(self, chain_id: int, url: str) -> bool:
        if self.fee_oracle is None:
            return False
        try:
            return await self.fee_oracle.supports_eip1559(url)
        except InfraError as e:
            logger.info(
                f"Fee-market check failed, assuming legacy gas: {e.message}",
                extra={"context": {"chain_id": chain_id, "endpoint": url}},
            )
            return False

    def _sample_color(self, symbol: str) -> Optional[str]:
        if self.color_sampler is None:
            return None
        try:
            return self.color_sampler(symbol.lower())
        except Exception as e:
            logger.debug(
                f"Colour sampling failed: {e}",
                extra={"context": {"symbol": symbol}},
            )
            return None

    def update(self, network: Network) -> bool:
        """
        Overwrite a user network's symbol, explorer, colour and RPC URLs.

        Built-in and unknown chains are left alone.

        Returns:
            True if the in-memory network changed
        """
        value = self.find_user_chain(network.chain_id)
        if value is None:
            return False

        value.symbol = network.symbol
        value.explorer_url = network.explorer_url
        value.color = network.color
        value.rpc_urls = list(network.rpc_urls or [])

        record = self.store.find(value.chain_id)
        if record is None:
            logger.warning(
                "No persisted record for user network, memory and store differ",
                extra={"context": {"chain_id": value.chain_id}},
            )
            return True

        record.customize.color = value.color
        record.explorer = value.explorer_url
        record.rpc_urls = list(value.rpc_urls)
        record.symbol = value.symbol
        self._persist(lambda: self.store.save(record), value.chain_id)
        return True

    def remove(self, chain_id: ChainIdLike) -> bool:
        """
        Remove a user network and its persisted record.

        Returns:
            True if a user network was removed
        """
        network = self.find_user_chain(chain_id)
        if network is None:
            return False

        self.user_chains = [n for n in self.user_chains if n.chain_id != network.chain_id]

        if self._current.chain_id == network.chain_id:
            self.switch(self.built_ins[0])

        def _delete() -> None:
            if not self.store.delete(network.chain_id):
                logger.warning(
                    "Removed network had no persisted record",
                    extra={"context": {"chain_id": network.chain_id}},
                )

        self._persist(_delete, network.chain_id)
        return True

    def _persist(self, write: Callable[[], None], chain_id: int) -> None:
        """Run a store write; failures are logged, memory is kept."""
        try:
            write()
        except StoreError as e:
            logger.error(
                f"Chain store write failed: {e.message}",
                extra={"context": {"chain_id": chain_id, "code": e.code.value}},
            )
