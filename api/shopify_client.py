#!/usr/bin/env python3
"""
shopify_client.py
Central GraphQL helper for reading the catalog out of Shopify.
Takes its shop URL, token and API version from `SyncSettings`
and exposes a `ShopifyClient` class.
"""

import json
import logging
from typing import Iterator

import requests

from utils.offer_mapping import NormalizedVariant
from utils.settings import SyncSettings

log = logging.getLogger(__name__)

PAGE_SIZE = 50
BODY_PREVIEW_CHARS = 600

PRODUCTS_QUERY = """
query activeProducts($first: Int!, $after: String) {
  products(first: $first, after: $after, query: "status:active") {
    pageInfo {
      hasNextPage
      endCursor
    }
    nodes {
      id
      title
      handle
      descriptionHtml
      images(first: 1) { nodes { url } }
      variants(first: 100) {
        nodes {
          id
          legacyResourceId
          sku
          barcode
          inventoryQuantity
          price
          image { url }
        }
      }
    }
  }
}
"""

SHOP_QUERY = """
query shopCurrency { shop { currencyCode } }
"""


class ShopifyError(RuntimeError):
    """HTTP failure or GraphQL error list from the Admin API."""


class ShopifyClient:
    def __init__(self, settings: SyncSettings, session: requests.Session | None = None):
        settings.require_shopify()
        self.shop_url = settings.shop_url.rstrip("/")
        self.api_version = settings.shopify_api_version

        self.endpoint = f"{self.shop_url}/admin/api/{self.api_version}/graphql.json"
        self.session = session or requests.Session()
        self.session.headers.update({
            "Content-Type": "application/json",
            "X-Shopify-Access-Token": settings.shopify_token,
        })

    # ------------------------------------------------------------------
    def graphql(self, query: str, variables: dict | None = None) -> dict:
        """Perform a GraphQL POST. Raises on non-200 and on a GraphQL errors list."""
        payload = {"query": query, "variables": variables or {}}
        resp = self.session.post(self.endpoint, json=payload)
        if resp.status_code != 200:
            raise ShopifyError(
                f"Shopify GraphQL HTTP {resp.status_code} {resp.reason}: {resp.text[:BODY_PREVIEW_CHARS]}"
            )

        try:
            data = resp.json()
        except ValueError:
            raise ShopifyError(f"Shopify GraphQL returned a non-JSON body: {resp.text[:BODY_PREVIEW_CHARS]}")
        if data.get("errors"):
            # Usually missing read_products / read_inventory scopes or a bad token
            raise ShopifyError(f"Shopify GraphQL errors: {json.dumps(data['errors'], indent=2)}")
        return data

    def get_shop_currency(self) -> str:
        response = self.graphql(SHOP_QUERY)
        code = ((response.get("data") or {}).get("shop") or {}).get("currencyCode")
        if not code:
            raise ShopifyError(f"Could not read shop.currencyCode from Shopify response: {json.dumps(response)}")
        return code

    # ------------------------------------------------------------------
    # --- Active variants (feeds the Merchant sync) ---
    # ------------------------------------------------------------------

    def iter_active_variants(self, limit: int) -> Iterator[NormalizedVariant]:
        """
        Lazily yields up to `limit` variants of active products, one per
        sellable variant, with the parent product's title, description,
        handle and first image copied onto each.

        The shop currency is looked up once, on the first pull. Pages are
        requested only as the caller consumes them.
        """
        if limit <= 0:
            return

        currency_code = self.get_shop_currency()
        yielded = 0
        cursor = None

        while yielded < limit:
            variables = {"first": min(PAGE_SIZE, limit - yielded), "after": cursor}
            response = self.graphql(PRODUCTS_QUERY, variables)

            page = (response.get("data") or {}).get("products")
            if page is None:
                raise ShopifyError(f"Unexpected Shopify response (no 'products'): {json.dumps(response)}")

            for product in page.get("nodes") or []:
                for variant in _variant_nodes(product):
                    yield _normalize(product, variant, currency_code)
                    yielded += 1
                    if yielded >= limit:
                        return

            page_info = page.get("pageInfo") or {}
            if not (page_info.get("hasNextPage") and page_info.get("endCursor")):
                break
            cursor = page_info["endCursor"]
            log.debug("Next products page after cursor %s", cursor)

    def fetch_active_variants(self, limit: int) -> list[NormalizedVariant]:
        return list(self.iter_active_variants(limit))


def _variant_nodes(product: dict) -> list:
    return (product.get("variants") or {}).get("nodes") or []


def _first_image(product: dict) -> str | None:
    nodes = (product.get("images") or {}).get("nodes") or []
    return nodes[0].get("url") if nodes else None


def _normalize(product: dict, variant: dict, currency_code: str) -> NormalizedVariant:
    quantity = variant.get("inventoryQuantity")
    return NormalizedVariant(
        product_title=product.get("title") or "",
        description_html=product.get("descriptionHtml") or "",
        handle=product.get("handle") or "",
        product_image=_first_image(product),
        variant_id=variant["id"],
        legacy_id=str(variant["legacyResourceId"]),
        sku=variant.get("sku"),
        barcode=variant.get("barcode"),
        price=str(variant["price"]),
        currency_code=currency_code,
        inventory_quantity=quantity if quantity is not None else 0,
        variant_image=(variant.get("image") or {}).get("url"),
    )
