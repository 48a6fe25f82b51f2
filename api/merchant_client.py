#!/usr/bin/env python3
"""
merchant_client.py
REST helper for the Google Merchant API.

Covers the pieces the Shopify sync needs:
- service-account auth (JWT exchange for a `content` scoped token)
- finding or creating the primary data source for our language/feed label
- inserting ProductInputs into that data source
- looking up a processed product by offerId (status CLI)
- registering the developer's GCP project (one-shot setup)
"""

import json
import logging
from typing import Iterator, Optional

import requests
from google.auth.transport.requests import Request as GoogleAuthRequest
from google.oauth2 import service_account

from utils.offer_mapping import MappedOffer
from utils.settings import SyncSettings, load_service_account_key

log = logging.getLogger(__name__)

MERCHANT_API_ROOT = "https://merchantapi.googleapis.com"
CONTENT_SCOPE = "https://www.googleapis.com/auth/content"

# Insert is tried against each revision in order. Only a 404 moves on to the
# next one; any other failure stops immediately.
PRODUCTS_API_VERSIONS = ("v1", "v1beta")

BODY_PREVIEW_CHARS = 600


class MerchantApiError(RuntimeError):
    """Non-success response (or unusable payload) from the Merchant API."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def _describe(resp: requests.Response) -> str:
    return f"HTTP {resp.status_code} {resp.reason} {resp.text[:BODY_PREVIEW_CHARS]}"


class MerchantClient:
    def __init__(
        self,
        settings: SyncSettings,
        session: requests.Session | None = None,
        credentials=None,
    ):
        settings.require_merchant()
        self.merchant_id = settings.merchant_id
        self.content_language = settings.content_language
        self.feed_label = settings.feed_label
        self.feed_countries = list(settings.feed_countries)
        self.parent = f"accounts/{self.merchant_id}"

        if credentials is None:
            key = load_service_account_key(settings.key_path)
            credentials = service_account.Credentials.from_service_account_info(key, scopes=[CONTENT_SCOPE])
        self.credentials = credentials

        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

    # ------------------------------------------------------------------
    # --- Auth ---
    # ------------------------------------------------------------------

    def access_token(self) -> str:
        """Returns a bearer token, refreshing the service-account credentials if needed."""
        if not self.credentials.valid:
            self.credentials.refresh(GoogleAuthRequest())
        if not self.credentials.token:
            raise MerchantApiError("Could not obtain Google access token")
        return self.credentials.token

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        headers = {"Authorization": f"Bearer {self.access_token()}"}
        headers.update(kwargs.pop("headers", {}))
        log.debug("%s %s", method, url)
        return self.session.request(method, url, headers=headers, **kwargs)

    def _paged(self, url: str, items_key: str) -> Iterator[dict]:
        """Follows nextPageToken over a list endpoint, yielding each item."""
        params: dict = {}
        while True:
            resp = self._request("GET", url, params=params)
            if not resp.ok:
                raise MerchantApiError(f"List {items_key} failed: {_describe(resp)}", resp.status_code)
            body = resp.json() if resp.text else {}
            yield from body.get(items_key) or []

            token = body.get("nextPageToken")
            if not token:
                return
            params = {"pageToken": token}

    # ------------------------------------------------------------------
    # --- Data sources ---
    # ------------------------------------------------------------------

    def _data_sources_url(self) -> str:
        return f"{MERCHANT_API_ROOT}/datasources/v1/{self.parent}/dataSources"

    def list_data_sources(self) -> list[dict]:
        return list(self._paged(self._data_sources_url(), "dataSources"))

    def _matches_feed(self, data_source: dict) -> bool:
        primary = data_source.get("primaryProductDataSource") or {}
        return (
            primary.get("contentLanguage") == self.content_language
            and primary.get("feedLabel") == self.feed_label
        )

    def ensure_primary_data_source(self, display_name: str) -> str:
        """
        Returns the name (accounts/{id}/dataSources/{id}) of the primary data
        source for our contentLanguage/feedLabel, creating it if none exists.
        """
        for data_source in self.list_data_sources():
            if self._matches_feed(data_source) and data_source.get("name"):
                log.debug("Existing data source: %s", data_source["name"])
                return data_source["name"]

        body = {
            "displayName": display_name,
            "primaryProductDataSource": {
                "contentLanguage": self.content_language,
                "feedLabel": self.feed_label,
                "countries": self.feed_countries,
            },
        }
        resp = self._request("POST", self._data_sources_url(), json=body)
        if not resp.ok:
            raise MerchantApiError(f"Create data source failed: {_describe(resp)}", resp.status_code)

        name = (resp.json() if resp.text else {}).get("name")
        if not name:
            raise MerchantApiError("Failed to create data source; no name returned", resp.status_code)
        log.debug("Created data source: %s", name)
        return name

    # ------------------------------------------------------------------
    # --- Product inputs ---
    # ------------------------------------------------------------------

    def insert_product_input(self, data_source: str, offer: MappedOffer) -> Optional[str]:
        """
        Inserts one ProductInput. The data source is a query parameter and the
        body is the bare ProductInput. Returns the processed product's name
        when Google already assigned one (processing is async, so often None).
        """
        if not data_source:
            raise ValueError("insert_product_input: missing data_source")

        body = offer.to_product_input(self.content_language, self.feed_label)
        resp = None
        version = None

        for version in PRODUCTS_API_VERSIONS:
            url = f"{MERCHANT_API_ROOT}/products/{version}/{self.parent}/productInputs:insert"
            log.debug("Insert body (%s): %s", version, json.dumps(body, indent=2))
            resp = self._request("POST", url, params={"dataSource": data_source}, json=body)

            if resp.ok:
                try:
                    payload = json.loads(resp.text) if resp.text else {}
                except ValueError:
                    return None
                return payload.get("product") if isinstance(payload, dict) else None

            if resp.status_code != 404:
                break

        raise MerchantApiError(f"Insert failed ({version}): {_describe(resp)}", resp.status_code)

    # ------------------------------------------------------------------
    # --- Processed products (status CLI) ---
    # ------------------------------------------------------------------

    def get_product_by_offer_id(self, offer_id: str) -> Optional[dict]:
        url = f"{MERCHANT_API_ROOT}/products/v1/{self.parent}/products"
        for product in self._paged(url, "products"):
            if (
                product.get("offerId") == offer_id
                and product.get("contentLanguage") == self.content_language
                and product.get("feedLabel") == self.feed_label
            ):
                return product
        return None

    # ------------------------------------------------------------------
    # --- Developer registration ---
    # ------------------------------------------------------------------

    def register_gcp(self, developer_email: str) -> requests.Response:
        """Links the service account's GCP project to the Merchant account."""
        url = f"{MERCHANT_API_ROOT}/accounts/v1/{self.parent}/developerRegistration:registerGcp"
        return self._request("POST", url, json={"developerEmail": developer_email})
