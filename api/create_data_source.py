#!/usr/bin/env python3
"""
create_data_source.py
Creates (or reuses) the primary API data source for the configured
CONTENT_LANGUAGE / FEED_LABEL and prints its resource name.

Usage:
    python -m api.create_data_source
"""

import logging
import sys

from api.merchant_client import MerchantClient
from api.push_products import DATA_SOURCE_DISPLAY_NAME
from utils.settings import SyncSettings, setup_logging

log = logging.getLogger(__name__)


def main() -> None:
    try:
        settings = SyncSettings.from_env()
        setup_logging(settings.debug)
        name = MerchantClient(settings).ensure_primary_data_source(DATA_SOURCE_DISPLAY_NAME)
    except Exception as e:
        setup_logging()
        log.error(f"❌ Could not ensure data source: {e}")
        sys.exit(1)

    print(name)


if __name__ == "__main__":
    main()
