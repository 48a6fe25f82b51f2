"""Shared fixtures. The fake HTTP sessions live in tests/fakes.py."""

import pytest

from utils.settings import SyncSettings


@pytest.fixture
def settings(tmp_path) -> SyncSettings:
    key_file = tmp_path / "gsa-key.json"
    key_file.write_text("{}")
    return SyncSettings(
        shop_url="https://test-shop.myshopify.com",
        shopify_token="shpat_test",
        merchant_id="123",
        feed_label="US",
        content_language="en",
        feed_countries=("US", "CA"),
        key_path=str(key_file),
        max_products=10,
        store_domain="https://shop.example.com/",
    )
