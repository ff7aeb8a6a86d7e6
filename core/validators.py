# PATH: core/validators.py
"""
Input normalisation for chain ids, RPC quantities and endpoint URLs.

Chain ids reach this layer as ints, decimal strings ("250"), 0x-prefixed hex
("0xfa") or bare hex ("fa"). Everything downstream compares the integer value;
the store persists the decimal form.

USAGE:
    from core.validators import parse_chain_id, canonical_chain_id

    parse_chain_id("0xfa")       # 250
    canonical_chain_id("fa")     # "250"
"""

import re
from typing import Any, Union
from urllib.parse import urlparse

from core.constants import ErrorCode, MAX_SAFE_CHAIN_ID
from core.exceptions import ValidationError

ChainIdLike = Union[int, str]

_DECIMAL_RE = re.compile(r"^[0-9]+$")
_HEX_RE = re.compile(r"^(0x)?[0-9a-f]+$")


def parse_chain_id(value: ChainIdLike) -> int:
    """
    Parse any supported chain id encoding into its integer value.

    Digit-only strings are read as decimal; strings with a 0x prefix or any
    a-f digit are read as hex.

    Raises:
        ValidationError: If the value is not a positive safe integer
    """
    if isinstance(value, bool):
        raise ValidationError(
            f"Invalid chain id: {value!r}",
            ErrorCode.VALIDATION_CHAIN_ID,
        )

    if isinstance(value, int):
        chain_id = value
    elif isinstance(value, str):
        text = value.strip().lower()
        if _DECIMAL_RE.match(text):
            chain_id = int(text, 10)
        elif text and _HEX_RE.match(text) and text != "0x":
            chain_id = int(text, 16)
        else:
            raise ValidationError(
                f"Invalid chain id: {value!r}",
                ErrorCode.VALIDATION_CHAIN_ID,
            )
    else:
        raise ValidationError(
            f"Invalid chain id type: {type(value).__name__}",
            ErrorCode.VALIDATION_CHAIN_ID,
        )

    if not 0 < chain_id <= MAX_SAFE_CHAIN_ID:
        raise ValidationError(
            f"Chain id out of range: {chain_id}",
            ErrorCode.VALIDATION_CHAIN_ID,
            details={"chain_id": chain_id},
        )
    return chain_id


def canonical_chain_id(value: ChainIdLike) -> str:
    """Decimal text form used for persisted records."""
    return str(parse_chain_id(value))


def parse_quantity(value: Any) -> int:
    """
    Parse a JSON-RPC quantity: 0x-hex string, decimal string or int.

    Raises:
        ValidationError: If the value is missing or not an integer quantity
    """
    if isinstance(value, bool) or value is None:
        raise ValidationError(
            f"Invalid quantity: {value!r}",
            ErrorCode.VALIDATION_QUANTITY,
        )
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip().lower()
        try:
            if text.startswith("0x"):
                return int(text, 16)
            return int(text, 10)
        except ValueError:
            pass
    raise ValidationError(
        f"Invalid quantity: {value!r}",
        ErrorCode.VALIDATION_QUANTITY,
    )


def is_http_url(url: Any) -> bool:
    """True for well-formed http(s) URLs with a host."""
    if not isinstance(url, str):
        return False
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)
