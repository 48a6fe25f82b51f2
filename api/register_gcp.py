#!/usr/bin/env python3
"""
register_gcp.py
One-shot setup: registers the service account's GCP project with the
Merchant account so the Merchant API accepts its calls.
Reads MERCHANT_ID, DEVELOPER_EMAIL and GOOGLE_APPLICATION_CREDENTIALS.

Usage:
    python -m api.register_gcp
"""

import logging
import sys

from api.merchant_client import MerchantClient
from utils.settings import SyncSettings, setup_logging

log = logging.getLogger(__name__)


def main() -> None:
    try:
        settings = SyncSettings.from_env()
        setup_logging(settings.debug)
        settings.require_registration()

        merchant = MerchantClient(settings)
        resp = merchant.register_gcp(settings.developer_email)
    except Exception as e:
        setup_logging()
        log.error(f"❌ Registration failed: {e}")
        sys.exit(1)

    print("HTTP", resp.status_code, resp.reason)
    print(resp.text)


if __name__ == "__main__":
    main()
