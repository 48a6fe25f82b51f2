#!/usr/bin/env python3
"""
settings.py
Reads the sync configuration from the environment (and .env) once
and exposes it as a frozen `SyncSettings` object that is passed to
every client and entry point.
"""

from __future__ import annotations
import json
import logging
import os
import pathlib
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv


class SettingsError(EnvironmentError):
    """Missing or invalid configuration. Raised before any network call."""


def setup_logging(debug: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(levelname)s: %(message)s"
    )


def _normalize_shop_url(raw: str) -> str:
    raw = raw.strip().rstrip("/")
    if raw and not raw.startswith(("http://", "https://")):
        raw = f"https://{raw}"
    return raw


def _parse_countries(raw: str) -> tuple:
    return tuple(c.strip().upper() for c in raw.split(",") if c.strip())


@dataclass(frozen=True)
class SyncSettings:
    shop_url: str = ""
    shopify_token: str = ""
    shopify_api_version: str = "2024-10"
    merchant_id: str = ""
    feed_label: str = "US"
    content_language: str = "en"
    feed_countries: tuple = field(default_factory=lambda: ("US",))
    key_path: str = "./gsa-key.json"
    max_products: int = 10
    store_domain: str = ""
    developer_email: str = ""
    debug: bool = False

    @classmethod
    def from_env(cls, env: Optional[dict] = None) -> "SyncSettings":
        """
        Builds settings from `env` (defaults to os.environ after loading .env).
        Only parses values here; use the require_* methods to check that a
        given entry point has what it needs.
        """
        if env is None:
            load_dotenv()
            env = os.environ

        raw_max = env.get("MAX_PRODUCTS", "10").strip() or "10"
        try:
            max_products = int(raw_max)
        except ValueError:
            raise SettingsError(f"MAX_PRODUCTS must be an integer, got {raw_max!r}")

        return cls(
            shop_url=_normalize_shop_url(env.get("SHOP_URL") or env.get("SHOPIFY_SHOP") or ""),
            shopify_token=(env.get("SHOPIFY_ACCESS_TOKEN") or env.get("SHOPIFY_ADMIN_TOKEN") or "").strip(),
            shopify_api_version=env.get("API_VERSION", "2024-10").strip() or "2024-10",
            merchant_id=env.get("MERCHANT_ID", "").strip(),
            feed_label=env.get("FEED_LABEL", "US").strip() or "US",
            content_language=env.get("CONTENT_LANGUAGE", "en").strip() or "en",
            feed_countries=_parse_countries(env.get("FEED_COUNTRIES", "US")) or ("US",),
            key_path=env.get("GOOGLE_APPLICATION_CREDENTIALS", "./gsa-key.json").strip() or "./gsa-key.json",
            max_products=max_products,
            store_domain=env.get("STORE_DOMAIN", "").strip(),
            developer_email=env.get("DEVELOPER_EMAIL", "").strip(),
            debug=env.get("DEBUG", "").strip().lower() == "1",
        )

    # --- Checks per entry point ----------------------------------------------

    def require_shopify(self) -> None:
        if not all([self.shop_url, self.shopify_token]):
            raise SettingsError("Missing SHOP_URL or SHOPIFY_ACCESS_TOKEN in .env")

    def require_merchant(self) -> None:
        if not self.merchant_id:
            raise SettingsError("Missing MERCHANT_ID in .env")
        if not pathlib.Path(self.key_path).exists():
            raise SettingsError(f"Key file not found at {self.key_path}")

    def require_sync(self) -> None:
        self.require_shopify()
        self.require_merchant()
        if not self.store_domain:
            raise SettingsError("Missing STORE_DOMAIN in .env")

    def require_registration(self) -> None:
        self.require_merchant()
        if not self.developer_email:
            raise SettingsError("DEVELOPER_EMAIL missing from .env")


def load_service_account_key(path: str | pathlib.Path) -> dict:
    """
    Reads a Google service-account JSON key and checks that it really is one
    (type, private_key and client_email present).
    """
    key_path = pathlib.Path(path)
    if not key_path.exists():
        raise SettingsError(f"Key file not found at {key_path}")
    try:
        key = json.loads(key_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise SettingsError(f"{key_path} is not valid JSON: {e}") from e

    if not isinstance(key, dict) or key.get("type") != "service_account" \
            or not key.get("private_key") or not key.get("client_email"):
        raise SettingsError(
            f"{key_path.name} is not a valid service-account key (missing private_key/client_email)"
        )
    return key
