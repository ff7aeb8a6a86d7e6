"""
tests/unit/test_registry.py - Network registry: lifecycle, add, update, remove.
"""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from chains.registry import NetworkRegistry
from chains.store import JsonChainStore
from core.exceptions import InfraError, StoreError
from core.models import AddChainParams, ChainRecord, Network

FANTOM = {
    "chainId": "0xfa",
    "chainName": "Fantom Opera",
    "nativeCurrency": {"name": "Fantom", "symbol": "FTM", "decimals": 18},
    "rpcUrls": ["https://rpc.ftm.tools"],
    "blockExplorerUrls": ["https://ftmscan.com"],
}


def _fantom_record(chain_id="250"):
    return {
        "id": chain_id,
        "name": "Fantom Opera",
        "explorer": "https://ftmscan.com",
        "symbol": "FTM",
        "rpc_urls": ["https://rpc.ftm.tools"],
        "customize": {"color": "#1969ff", "eip1559": False},
    }


def _oracle(eip1559=False):
    oracle = MagicMock()
    oracle.supports_eip1559 = AsyncMock(return_value=eip1559)
    return oracle


@pytest.fixture
def spy_store(store):
    """The real store, with calls recorded."""
    return MagicMock(wraps=store)


@pytest.fixture
def registry(spy_store, built_ins):
    registry = NetworkRegistry(spy_store, built_ins, fee_oracle=_oracle())
    registry.init()
    return registry


class TestInit:

    def test_defaults_to_first_built_in(self, registry):
        assert registry.current.chain_id == 1
        assert registry.user_chains == []
        assert [n.chain_id for n in registry.all] == [1, 42161, 10, 137]

    def test_requires_built_ins(self, store):
        with pytest.raises(ValueError):
            NetworkRegistry(store, [])

    def test_loads_user_chains_and_current(self, write_store, built_ins):
        path = write_store([_fantom_record("0xfa")], current_chain_id="fa")

        registry = NetworkRegistry(JsonChainStore(path), built_ins)
        registry.init()

        fantom = registry.find(250)
        assert fantom.is_user_added
        assert fantom.symbol == "FTM"
        assert registry.current is fantom

    def test_built_in_collision_skipped(self, write_store, built_ins):
        shadow = _fantom_record("0x89")
        shadow["name"] = "Not Polygon"
        path = write_store([shadow, _fantom_record()])

        registry = NetworkRegistry(JsonChainStore(path), built_ins)
        registry.init()

        assert registry.find(137).name == "Polygon"
        assert [n.chain_id for n in registry.user_chains] == [250]

    def test_unknown_current_falls_back(self, write_store, built_ins):
        path = write_store([], current_chain_id="999")

        registry = NetworkRegistry(JsonChainStore(path), built_ins)
        registry.init()

        assert registry.current.chain_id == 1


class TestViews:

    def test_named_accessors(self, registry):
        assert registry.ethereum.chain_id == 1
        assert registry.arbitrum.chain_id == 42161
        assert registry.optimism.chain_id == 10
        assert registry.polygon.chain_id == 137

    @pytest.mark.parametrize("query", [137, "137", "0x89"])
    def test_find_any_encoding(self, registry, query):
        assert registry.find(query).name == "Polygon"

    def test_find_invalid_is_none(self, registry):
        assert registry.find("not a chain") is None
        assert not registry.has(0)

    def test_find_user_chain_excludes_built_ins(self, registry):
        assert registry.find_user_chain(1) is None


class TestSwitch:

    def test_persists_selection(self, registry, spy_store, store_path):
        registry.switch(registry.polygon)

        assert registry.current.chain_id == 137
        spy_store.set_current_chain_id.assert_called_once_with(137)
        assert json.loads(store_path.read_text())["current_chain_id"] == "137"

    def test_same_chain_is_noop(self, registry, spy_store):
        registry.switch(registry.polygon)
        registry.switch(registry.find("0x89"))

        assert spy_store.set_current_chain_id.call_count == 1

    def test_store_failure_keeps_memory(self, registry, spy_store):
        spy_store.set_current_chain_id.side_effect = StoreError("disk full")

        registry.switch(registry.arbitrum)

        assert registry.current.chain_id == 42161


class TestAdd:

    @pytest.mark.asyncio
    async def test_round_trip(self, registry, spy_store):
        added = await registry.add({"chainId": 250, "nativeCurrency": {"symbol": "FTM"}, "rpcUrls": ["https://x"]})

        assert added
        network = registry.find(250)
        assert network.is_user_added
        assert network.symbol == "FTM"
        assert network.rpc_urls == ["https://x"]
        assert network.name == "EVM-Compatible"
        spy_store.save.assert_called_once()
        assert spy_store.find(250).rpc_urls == ["https://x"]

    @pytest.mark.asyncio
    async def test_wallet_shape(self, registry):
        assert await registry.add(FANTOM)

        fantom = registry.find("250")
        assert fantom.name == "Fantom Opera"
        assert fantom.explorer_url == "https://ftmscan.com"

    @pytest.mark.asyncio
    async def test_accepts_params_object(self, registry):
        params = AddChainParams(chain_id="0xa4ec", chain_name="Celo", currency_symbol="CELO",
                                rpc_urls=["https://forno.celo.org"])

        assert await registry.add(params)
        assert registry.find(42220).name == "Celo"

    @pytest.mark.asyncio
    async def test_default_symbol(self, registry):
        await registry.add({"chainId": "0xfa", "rpcUrls": ["https://x"]})

        assert registry.find(250).symbol == "ETH"

    @pytest.mark.asyncio
    async def test_known_chain_colour(self, registry):
        await registry.add({"chainId": 61, "rpcUrls": ["https://etc.test"]})

        assert registry.find(61).color == "#3ab83a"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("chain_id", [1, "0x1", "0xa4b1"])
    async def test_built_in_conflict_rejected(self, registry, spy_store, chain_id):
        before = list(registry.all)

        added = await registry.add({"chainId": chain_id, "rpcUrls": ["https://x"]})

        assert not added
        assert registry.all == before
        spy_store.save.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_rpc_urls_rejected(self, registry, spy_store):
        assert not await registry.add({"chainId": 250, "rpcUrls": []})

        assert not registry.has(250)
        spy_store.save.assert_not_called()
        registry.fee_oracle.supports_eip1559.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("rpc_urls", [
        [None],
        [42],
        ["https://ok.test", None],
        ["rpc.ftm.tools"],
        ["wss://ftm.test/ws"],
        "rpc.ftm.tools",
    ])
    async def test_malformed_rpc_urls_rejected(self, registry, spy_store, rpc_urls):
        assert not await registry.add({"chainId": "0xfa", "rpcUrls": rpc_urls})

        assert not registry.has(250)
        spy_store.save.assert_not_called()
        registry.fee_oracle.supports_eip1559.assert_not_called()

    @pytest.mark.asyncio
    async def test_single_url_string_accepted(self, registry):
        assert await registry.add({"chainId": "0xfa", "rpcUrls": "https://rpc.ftm.tools"})
        assert registry.find(250).rpc_urls == ["https://rpc.ftm.tools"]

    @pytest.mark.asyncio
    async def test_non_object_currency_ignored(self, registry):
        assert await registry.add({"chainId": "0xfa", "nativeCurrency": "FTM", "rpcUrls": ["https://x"]})
        assert registry.find(250).symbol == "ETH"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("chain_id", [None, "", "fantom", 0, -1])
    async def test_invalid_chain_id_rejected(self, registry, spy_store, chain_id):
        assert not await registry.add({"chainId": chain_id, "rpcUrls": ["https://x"]})
        spy_store.save.assert_not_called()

    @pytest.mark.asyncio
    async def test_checks_first_url(self, spy_store, built_ins):
        oracle = _oracle(eip1559=True)
        registry = NetworkRegistry(spy_store, built_ins, fee_oracle=oracle)
        registry.init()

        await registry.add({"chainId": 250, "rpcUrls": ["https://first.test", "https://second.test"]})

        oracle.supports_eip1559.assert_awaited_once_with("https://first.test")
        assert registry.find(250).eip1559 is True
        assert spy_store.find(250).customize.eip1559 is True

    @pytest.mark.asyncio
    async def test_fee_check_failure_means_legacy(self, spy_store, built_ins):
        oracle = MagicMock()
        oracle.supports_eip1559 = AsyncMock(side_effect=InfraError("unreachable"))
        registry = NetworkRegistry(spy_store, built_ins, fee_oracle=oracle)
        registry.init()

        assert await registry.add({"chainId": 250, "rpcUrls": ["https://down.test"]})
        assert registry.find(250).eip1559 is False

    @pytest.mark.asyncio
    async def test_without_oracle_assumes_legacy(self, spy_store, built_ins):
        registry = NetworkRegistry(spy_store, built_ins)
        registry.init()

        assert await registry.add({"chainId": 250, "rpcUrls": ["https://x"]})
        assert registry.find(250).eip1559 is False

    @pytest.mark.asyncio
    async def test_colour_sampler(self, spy_store, built_ins):
        sampler = MagicMock(return_value="#1969ff")
        registry = NetworkRegistry(spy_store, built_ins, color_sampler=sampler)
        registry.init()

        await registry.add(FANTOM)

        sampler.assert_called_once_with("ftm")
        assert registry.find(250).color == "#1969ff"

    @pytest.mark.asyncio
    async def test_colour_sampler_failure_ignored(self, spy_store, built_ins):
        sampler = MagicMock(side_effect=OSError("icon missing"))
        registry = NetworkRegistry(spy_store, built_ins, color_sampler=sampler)
        registry.init()

        assert await registry.add(FANTOM)
        assert registry.find(250).color == "#7B68EE"

    @pytest.mark.asyncio
    async def test_re_add_replaces(self, registry):
        await registry.add(FANTOM)
        await registry.add({**FANTOM, "rpcUrls": ["https://rpc2.ftm.tools"]})

        assert [n.chain_id for n in registry.user_chains] == [250]
        assert registry.find(250).rpc_urls == ["https://rpc2.ftm.tools"]

    @pytest.mark.asyncio
    async def test_re_add_keeps_persisted_colour(self, registry, spy_store):
        spy_store.save(ChainRecord.from_dict(_fantom_record()))

        await registry.add(FANTOM)

        assert registry.find(250).color == "#1969ff"

    @pytest.mark.asyncio
    async def test_store_failure_keeps_memory(self, registry, spy_store):
        spy_store.save.side_effect = StoreError("disk full")

        assert await registry.add(FANTOM)
        assert registry.has(250)


class TestUpdate:

    @pytest.mark.asyncio
    async def test_updates_user_chain(self, registry, spy_store):
        await registry.add(FANTOM)
        spy_store.save.reset_mock()

        edited = Network(chain_id=250, name="ignored", symbol="FTM2", explorer_url="https://explorer.test",
                         color="#000000", rpc_urls=["https://new.test"], is_user_added=True)
        assert registry.update(edited)

        fantom = registry.find(250)
        assert fantom.symbol == "FTM2"
        assert fantom.name == "Fantom Opera"
        assert fantom.rpc_urls == ["https://new.test"]
        record = spy_store.find(250)
        assert record.symbol == "FTM2"
        assert record.customize.color == "#000000"
        assert record.explorer == "https://explorer.test"
        spy_store.save.assert_called_once()

    def test_built_in_untouched(self, registry, spy_store):
        edited = Network(chain_id=1, name="Ethereum", symbol="XXX", rpc_urls=["https://x"])

        assert not registry.update(edited)
        assert registry.ethereum.symbol == "ETH"
        spy_store.save.assert_not_called()

    def test_unknown_chain_untouched(self, registry, spy_store):
        assert not registry.update(Network(chain_id=250, name="Fantom", symbol="FTM"))
        spy_store.save.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_record_updates_memory_only(self, registry, spy_store):
        await registry.add(FANTOM)
        spy_store.delete(250)
        spy_store.save.reset_mock()

        edited = Network(chain_id=250, name="Fantom", symbol="FTM2", rpc_urls=["https://new.test"])
        assert registry.update(edited)

        assert registry.find(250).symbol == "FTM2"
        spy_store.save.assert_not_called()


class TestRemove:

    @pytest.mark.parametrize("persisted_id", ["250", "0xfa", "fa"])
    def test_remove_legacy_encodings(self, write_store, built_ins, persisted_id):
        path = write_store([_fantom_record(persisted_id)])
        store = JsonChainStore(path)
        registry = NetworkRegistry(store, built_ins)
        registry.init()

        assert registry.remove(250)

        assert not registry.has(250)
        assert registry.find(250) is None
        assert store.find(250) is None
        assert json.loads(path.read_text())["chains"] == []

    def test_built_in_not_removable(self, registry):
        assert not registry.remove(1)
        assert registry.has(1)

    def test_unknown_not_removable(self, registry):
        assert not registry.remove(250)

    @pytest.mark.asyncio
    async def test_removing_current_switches_back(self, registry, spy_store):
        await registry.add(FANTOM)
        registry.switch(registry.find(250))

        registry.remove("0xfa")

        assert registry.current.chain_id == 1
        assert spy_store.get_current_chain_id() == 1

    @pytest.mark.asyncio
    async def test_store_failure_keeps_memory_change(self, registry, spy_store):
        await registry.add(FANTOM)
        spy_store.delete.side_effect = StoreError("disk full")

        assert registry.remove(250)
        assert not registry.has(250)


class TestReset:

    @pytest.mark.asyncio
    async def test_reset(self, registry):
        await registry.add(FANTOM)
        registry.switch(registry.find(250))

        registry.reset()

        assert registry.current.chain_id == 1
        assert registry.user_chains == []
