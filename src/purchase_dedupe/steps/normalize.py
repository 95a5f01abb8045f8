from __future__ import annotations

import re
from types import MappingProxyType
from typing import Mapping

# Known retailer spellings -> canonical retailer name.
RETAILER_ALIASES: Mapping[str, str] = MappingProxyType(
    {
        "amazon": "amazon",
        "amazon.com": "amazon",
        "amzn": "amazon",
        "apple": "apple",
        "apple.com": "apple",
        "best buy": "bestbuy",
        "bestbuy": "bestbuy",
        "target": "target",
        "target.com": "target",
        "walmart": "walmart",
        "walmart.com": "walmart",
    }
)

# Spelling variants that refer to the same retailer.
RETAILER_GROUPS: Mapping[str, frozenset[str]] = MappingProxyType(
    {
        "amazon": frozenset({"amazon", "amzn", "amazon.com"}),
        "apple": frozenset({"apple", "apple.com", "itunes"}),
        "bestbuy": frozenset({"best buy", "bestbuy", "bestbuy.com"}),
        "target": frozenset({"target", "target.com"}),
        "walmart": frozenset({"walmart", "walmart.com"}),
    }
)

_NON_ALNUM = re.compile(r"[^\w\s]|_")
_WHITESPACE = re.compile(r"\s+")


def normalize_product_name(name: str) -> str:
    """Lower-case, strip punctuation and collapse whitespace.

    >>> normalize_product_name("iPhone 15 Pro!!")
    'iphone 15 pro'
    """
    text = _NON_ALNUM.sub("", name.lower())
    return _WHITESPACE.sub(" ", text).strip()


def normalize_retailer_name(retailer: str) -> str:
    normalized = retailer.lower().strip()
    return RETAILER_ALIASES.get(normalized, normalized)


def retailer_group(retailer: str) -> str | None:
    """Canonical group a retailer spelling belongs to, if any."""
    spelling = retailer.lower().strip()
    canonical = normalize_retailer_name(spelling)
    for group, variants in RETAILER_GROUPS.items():
        if spelling in variants or canonical in variants:
            return group
    return None
