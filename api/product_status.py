#!/usr/bin/env python3
"""
product_status.py
Looks up the processed Merchant Center product for one offerId and
prints a short JSON summary.

Usage:
    python -m api.product_status <offerId>
"""

import argparse
import json
import logging
import sys

from api.merchant_client import MerchantClient
from utils.settings import SyncSettings, setup_logging

log = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "No processed product found yet. It may still be processing. Try again in a few minutes."

SUMMARY_FIELDS = ("name", "offerId", "contentLanguage", "feedLabel", "channel", "productStatus")


def summarize(product: dict) -> dict:
    return {key: product.get(key) for key in SUMMARY_FIELDS}


def report_status(merchant: MerchantClient, offer_id: str) -> str:
    product = merchant.get_product_by_offer_id(offer_id)
    if not product:
        return NOT_FOUND_MESSAGE
    return json.dumps(summarize(product), indent=2)


def main(argv: list | None = None) -> None:
    parser = argparse.ArgumentParser(description="Show Merchant Center processing status for one offer.")
    parser.add_argument("offer_id", help="offerId pushed by push_products (SKU or Shopify variant id).")
    args = parser.parse_args(argv)

    try:
        settings = SyncSettings.from_env()
        setup_logging(settings.debug)
        print(report_status(MerchantClient(settings), args.offer_id))
    except Exception as e:
        setup_logging()
        log.error(f"❌ Status lookup failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
