# PATH: config/__init__.py
"""
Configuration loading utilities.

Static configuration lives in YAML next to this module:
- providers.yaml: chain id (as string) -> ordered candidate RPC URLs
- networks.yaml: built-in public networks, first entry is the default

Runtime knobs come from the environment (.env honoured via python-dotenv).
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

import yaml
from dotenv import load_dotenv

from core.constants import DEFAULT_ERROR_BUDGETS, DEFAULT_RPC_TIMEOUT_SECONDS, RPCMethod
from core.validators import canonical_chain_id


CONFIG_DIR = Path(__file__).parent

# Placeholders substituted from the environment inside provider URLs
URL_PLACEHOLDERS = ("ALCHEMY_API_KEY", "INFURA_API_KEY")


def load_yaml(filename: str) -> Dict[str, Any]:
    """
    Load a YAML configuration file.

    Args:
        filename: Name of file in config directory

    Returns:
        Parsed YAML as dict
    """
    filepath = CONFIG_DIR / filename
    if not filepath.exists():
        raise FileNotFoundError(f"Config file not found: {filepath}")

    with open(filepath, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def resolve_url(url: str) -> str | None:
    """
    Substitute ${VAR} placeholders from the environment.

    Returns None when a referenced key is not set, so keyed endpoints
    silently drop out of the candidate list.
    """
    for name in URL_PLACEHOLDERS:
        token = f"${{{name}}}"
        if token in url:
            value = os.getenv(name, "")
            if not value:
                return None
            url = url.replace(token, value)
    return url


def load_providers(filename: str = "providers.yaml") -> Dict[str, List[str]]:
    """
    Load static provider configuration.

    Keys are normalised to decimal strings ("0x89" and 137 both become
    "137"); URL order is preserved.

    Raises:
        ValidationError: If a key is not a valid chain id
    """
    raw = load_yaml(filename)
    providers: Dict[str, List[str]] = {}
    for chain_key, urls in raw.items():
        resolved = [u for u in (resolve_url(str(url)) for url in urls or []) if u]
        providers[canonical_chain_id(chain_key)] = resolved
    return providers


def load_networks(filename: str = "networks.yaml") -> List[Dict[str, Any]]:
    """Load built-in network definitions in declaration order."""
    return load_yaml(filename).get("networks", [])


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    try:
        return float(raw) if raw is not None else float(default)
    except ValueError:
        return float(default)


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    try:
        return int(raw) if raw is not None else int(default)
    except ValueError:
        return int(default)


def _get_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name, str(default))
    return str(raw).strip().lower() in {"1", "true", "yes", "y", "on"}


@dataclass
class Settings:
    """Runtime settings for the chain access layer."""
    data_dir: Path = Path("data")
    rpc_timeout_seconds: float = DEFAULT_RPC_TIMEOUT_SECONDS
    error_budgets: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_ERROR_BUDGETS))
    log_level: str = "INFO"
    log_json: bool = True
    providers_file: str = "providers.yaml"
    networks_file: str = "networks.yaml"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the environment, reading .env if present."""
        load_dotenv(override=False)

        budgets = dict(DEFAULT_ERROR_BUDGETS)
        budgets[RPCMethod.ESTIMATE_GAS.value] = _get_int(
            "RPC_ESTIMATE_GAS_MAX_ERRORS",
            DEFAULT_ERROR_BUDGETS[RPCMethod.ESTIMATE_GAS.value],
        )

        return cls(
            data_dir=Path(os.getenv("CHAINS_DATA_DIR", "data")),
            rpc_timeout_seconds=_get_float("RPC_TIMEOUT_SECONDS", DEFAULT_RPC_TIMEOUT_SECONDS),
            error_budgets=budgets,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_json=_get_bool("LOG_JSON", True),
            providers_file=os.getenv("PROVIDERS_FILE", "providers.yaml"),
            networks_file=os.getenv("NETWORKS_FILE", "networks.yaml"),
        )
