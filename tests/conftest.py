# PATH: tests/conftest.py
"""
Pytest configuration and fixtures for chain access tests.
"""

import json
import sys
from pathlib import Path

import httpx
import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from chains.store import JsonChainStore  # noqa: E402
from core.models import Network  # noqa: E402


def pytest_configure(config):
    """Configure pytest."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )


class FakeEndpoints:
    """
    Scripted JSON-RPC endpoints behind httpx.MockTransport.

    Behaviour is keyed by URL host; unknown hosts refuse the connection.
    Every request is recorded as (host, payload).
    """

    def __init__(self):
        self.behaviours = {}
        self.calls = []

    def result(self, host, result):
        self.behaviours[host] = lambda request, payload: httpx.Response(
            200, json={"jsonrpc": "2.0", "id": payload["id"], "result": result}
        )

    def results(self, host, by_method):
        """Answer per method name; unlisted methods get a null result."""
        self.behaviours[host] = lambda request, payload: httpx.Response(
            200, json={"jsonrpc": "2.0", "id": payload["id"], "result": by_method.get(payload["method"])}
        )

    def error(self, host, message="execution reverted", code=-32000):
        self.behaviours[host] = lambda request, payload: httpx.Response(
            200, json={"jsonrpc": "2.0", "id": payload["id"], "error": {"code": code, "message": message}}
        )

    def down(self, host):
        def _refuse(request, payload):
            raise httpx.ConnectError("connection refused", request=request)
        self.behaviours[host] = _refuse

    def timeout(self, host):
        def _hang(request, payload):
            raise httpx.ReadTimeout("timed out", request=request)
        self.behaviours[host] = _hang

    def garbage(self, host):
        self.behaviours[host] = lambda request, payload: httpx.Response(
            502, text="<html>Bad Gateway</html>"
        )

    def handler(self, request: httpx.Request) -> httpx.Response:
        host = request.url.host
        payload = json.loads(request.content)
        self.calls.append((host, payload))

        behaviour = self.behaviours.get(host)
        if behaviour is None:
            raise httpx.ConnectError(f"no route to {host}", request=request)
        return behaviour(request, payload)

    def contacted(self, host) -> int:
        return sum(1 for h, _ in self.calls if h == host)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def endpoints():
    return FakeEndpoints()


@pytest.fixture
def http_client(endpoints):
    return endpoints.client()


@pytest.fixture
def built_ins():
    return [
        Network(chain_id=1, name="Ethereum", symbol="ETH", explorer_url="https://etherscan.io",
                color="#6186ff", rpc_urls=["https://eth.test/rpc"], eip1559=True),
        Network(chain_id=42161, name="Arbitrum One", symbol="ETH", explorer_url="https://arbiscan.io",
                color="#28a0f0", rpc_urls=["https://arb.test/rpc"], eip1559=True),
        Network(chain_id=10, name="Optimism", symbol="ETH", explorer_url="https://optimistic.etherscan.io",
                color="#FF0420", rpc_urls=["https://op.test/rpc"], eip1559=True),
        Network(chain_id=137, name="Polygon", symbol="MATIC", explorer_url="https://polygonscan.com",
                color="#8247E5", rpc_urls=["https://polygon.test/rpc"], eip1559=True),
    ]


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "chains.json"


@pytest.fixture
def store(store_path):
    return JsonChainStore(store_path)


@pytest.fixture
def write_store(store_path):
    """Write a store file the way older versions left it."""
    def _write(chains: list, current_chain_id=None) -> Path:
        store_path.write_text(json.dumps({"current_chain_id": current_chain_id, "chains": chains}))
        return store_path
    return _write
