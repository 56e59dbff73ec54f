"""
Affiliate Shopping Links
Amazon search URLs tagged with our associate ID. No price lookup - that needs
the paid Product Advertising API, so every link carries a "Check Price" label.
"""

from typing import Optional
from urllib.parse import quote
from models.guide import AffiliateLink
from config import DEFAULT_AFFILIATE_TAG

AMAZON_SEARCH_URL = "https://www.amazon.com/s"
PRICE_PLACEHOLDER = "Check Price"

# Same set encodeURIComponent leaves alone, so links match the web client's
_URI_COMPONENT_SAFE = "-_.!~*'()"


def _encode(query: str) -> str:
    return quote(query, safe=_URI_COMPONENT_SAFE)


def amazon_search_url(query: str, tag: Optional[str] = None) -> str:
    # Callers pass the configured tag; bare calls get the house tag
    tag = tag or DEFAULT_AFFILIATE_TAG
    return f"{AMAZON_SEARCH_URL}?k={_encode(query.strip())}&tag={_encode(tag)}"


def generate_part_links(
    part_name: str, vehicle_string: str, tag: Optional[str] = None
) -> list[AffiliateLink]:
    """Shopping links for a part, scoped to the vehicle ('2015 Honda Civic brake pads')"""
    query = f"{vehicle_string or ''} {part_name or ''}"
    return [
        AffiliateLink(
            provider="Amazon",
            url=amazon_search_url(query, tag),
            price=PRICE_PLACEHOLDER,
        )
    ]


def generate_tool_links(tool_name: str, tag: Optional[str] = None) -> list[AffiliateLink]:
    """Tools are not vehicle specific, search by name only"""
    return [
        AffiliateLink(
            provider="Amazon",
            url=amazon_search_url(tool_name or "", tag),
            price=PRICE_PLACEHOLDER,
        )
    ]


def shop_all_link(vehicle_string: str, tag: Optional[str] = None) -> str:
    return amazon_search_url(f"{vehicle_string or ''} maintenance parts", tag)
