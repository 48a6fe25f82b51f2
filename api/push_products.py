#!/usr/bin/env python3
"""
push_products.py

Pushes active Shopify variants to Google Merchant Center as ProductInputs.

Steps:
  1. Ensure the primary API data source exists for our language/feed label
  2. Fetch up to MAX_PRODUCTS active variants from Shopify
  3. Map each variant and insert it, one at a time

A failed insert is reported and skipped; it never stops the run.

Usage:
    python -m api.push_products
"""

import logging
import sys
from dataclasses import dataclass, field

from api.merchant_client import MerchantClient
from api.shopify_client import ShopifyClient
from utils.offer_mapping import map_variant_to_offer, offer_id_for
from utils.settings import SyncSettings, setup_logging

log = logging.getLogger(__name__)

DATA_SOURCE_DISPLAY_NAME = "Primary API Source"


@dataclass
class SyncReport:
    data_source: str
    pushed: list = field(default_factory=list)   # (offer_id, product_name | None)
    failed: list = field(default_factory=list)   # (offer_id, reason)

    @property
    def attempted(self) -> int:
        return len(self.pushed) + len(self.failed)


def run_sync(settings: SyncSettings, shopify: ShopifyClient, merchant: MerchantClient) -> SyncReport:
    log.info("Ensuring Primary API Data Source exists...")
    data_source = merchant.ensure_primary_data_source(DATA_SOURCE_DISPLAY_NAME)
    log.info(f"Data Source: {data_source}")
    report = SyncReport(data_source=data_source)

    log.info(f"Fetching up to {settings.max_products} active Shopify products...")
    log.info("Pushing variant-level offers via Merchant API...")
    for variant in shopify.iter_active_variants(settings.max_products):
        offer_id = offer_id_for(variant)
        try:
            offer = map_variant_to_offer(variant, settings.store_domain)
            product_name = merchant.insert_product_input(data_source, offer)
        except Exception as e:
            log.error(f"FAIL: offerId={offer_id} reason={e}")
            report.failed.append((offer_id, str(e)))
            continue

        suffix = f" product={product_name}" if product_name else ""
        log.info(f"OK: offerId={offer_id} link={offer.link}{suffix}")
        report.pushed.append((offer_id, product_name))

    log.info(f"Pushed {len(report.pushed)} of {report.attempted} offers ({len(report.failed)} failed).")
    log.info("Done. NOTE: processed products may take a few minutes to appear in Products list.")
    return report


def main() -> None:
    try:
        settings = SyncSettings.from_env()
        setup_logging(settings.debug)
        settings.require_sync()
        run_sync(settings, ShopifyClient(settings), MerchantClient(settings))
    except Exception as e:
        setup_logging()
        log.error(f"❌ Sync aborted: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
