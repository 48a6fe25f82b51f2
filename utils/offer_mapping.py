#!/usr/bin/env python3
"""
offer_mapping.py
Pure mapping from a normalized Shopify variant to a Google Merchant
ProductInput. No I/O happens here.

The offer id (trimmed SKU, else the variant's legacy numeric id) is the
key Merchant Center uses to match later status lookups, so it must stay
stable between runs.
"""

from __future__ import annotations
import html
import math
import re
from dataclasses import dataclass
from typing import Optional

_TAG_RE = re.compile(r"<[^>]*>")
_WS_RE = re.compile(r"\s+")
_NON_DIGIT_RE = re.compile(r"\D")
_DECIMAL_RE = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?\s*$")

GTIN_LENGTHS = {8, 12, 13, 14}
MICROS_PER_UNIT = 1_000_000


@dataclass(frozen=True)
class NormalizedVariant:
    """One sellable Shopify variant, carrying its parent product's context."""
    product_title: str
    description_html: str
    handle: str
    product_image: Optional[str]
    variant_id: str
    legacy_id: str
    sku: Optional[str]
    barcode: Optional[str]
    price: str
    currency_code: str
    inventory_quantity: int = 0
    variant_image: Optional[str] = None


@dataclass(frozen=True)
class MappedOffer:
    offer_id: str
    attributes: dict
    link: str

    def to_product_input(self, content_language: str, feed_label: str) -> dict:
        # The data source goes in the query string, never in this body.
        return {
            "offerId": self.offer_id,
            "contentLanguage": content_language,
            "feedLabel": feed_label,
            "productAttributes": self.attributes,
        }


# --- Field helpers ----------------------------------------------------------

def strip_html(value: Optional[str]) -> str:
    """Removes tags, decodes entities and collapses whitespace."""
    if not value:
        return ""
    no_tags = _TAG_RE.sub(" ", value)
    return _WS_RE.sub(" ", html.unescape(no_tags)).strip()


def to_micros(amount: str | float) -> str:
    """
    "15.99" -> "15990000".
    Float multiply then round half up, the same rounding the live feed
    has always used.
    """
    if isinstance(amount, str) and not _DECIMAL_RE.match(amount):
        raise ValueError(f"Price is not a decimal number: {amount!r}")
    number = float(amount)
    if not math.isfinite(number):
        raise ValueError(f"Price is not a finite number: {amount!r}")
    return str(math.floor(number * MICROS_PER_UNIT + 0.5))


def pick_image(variant_image: Optional[str], product_image: Optional[str]) -> Optional[str]:
    return variant_image or product_image or None


def clean_gtin(value: Optional[str]) -> str:
    return _NON_DIGIT_RE.sub("", value or "")


def is_valid_gtin(value: Optional[str]) -> bool:
    """Digits-only length check (8/12/13/14) plus Luhn mod-10."""
    digits = clean_gtin(value)
    if len(digits) not in GTIN_LENGTHS:
        return False

    total = 0
    for i, ch in enumerate(reversed(digits)):
        d = int(ch)
        if i % 2 == 1:
            d *= 2
            if d > 9:
                d -= 9
        total += d
    return total % 10 == 0


def offer_id_for(variant: NormalizedVariant) -> str:
    sku = (variant.sku or "").strip()
    return sku or variant.legacy_id


def product_link(store_domain: str, handle: str, legacy_id: str) -> str:
    return f"{store_domain.rstrip('/')}/products/{handle}?variant={legacy_id}"


# --- Mapper -----------------------------------------------------------------

def map_variant_to_offer(variant: NormalizedVariant, store_domain: str) -> MappedOffer:
    link = product_link(store_domain, variant.handle, variant.legacy_id)

    attributes = {
        "title": variant.product_title,
        "description": strip_html(variant.description_html),
        "link": link,
        "availability": "IN_STOCK" if variant.inventory_quantity > 0 else "OUT_OF_STOCK",
        "condition": "NEW",
        "price": {
            "amountMicros": to_micros(variant.price),
            "currencyCode": variant.currency_code,
        },
    }

    image_link = pick_image(variant.variant_image, variant.product_image)
    if image_link:
        attributes["imageLink"] = image_link

    # An invalid barcode is dropped, not reported.
    if is_valid_gtin(variant.barcode):
        attributes["gtins"] = [clean_gtin(variant.barcode)]

    return MappedOffer(offer_id=offer_id_for(variant), attributes=attributes, link=link)
