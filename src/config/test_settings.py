"""Settings for the pytest suite.

Supplies the values production must configure explicitly and swaps the
Redis cache for local memory so tests need no external services.
"""

import os

os.environ.setdefault("SECRET_KEY", "test-only-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from config.settings import *  # noqa: E402,F401,F403

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "storefront-tests",
    }
}

STOCK_UPDATE_MAX_RETRIES = 3
RESTOCK_UNPAID_CANCELLATIONS = False
