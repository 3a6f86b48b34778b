"""Unit test conftest for setting up test environment."""

import os

# Set minimal required environment variables before importing any flowsync modules
# so Settings() sees a complete configuration during test collection
os.environ.setdefault("AIRTABLE_API_KEY", "pat-test")
os.environ.setdefault("AIRTABLE_BASE_ID", "appTEST")
os.environ.setdefault("WEBFLOW_API_TOKEN", "wf-test-token")
os.environ.setdefault("WF_COLLECTION_ID_PRODUITS", "col-products")
os.environ.setdefault("WF_COLLECTION_ID_CATEGORIES", "col-categories")
os.environ.setdefault("WF_COLLECTION_ID_PARTENAIRES", "col-partners")
os.environ.setdefault("SYNC_SECRET", "test-secret")
os.environ.setdefault("OPTION_SETTLE_DELAY_SECONDS", "0")
os.environ.setdefault("LOG_LEVEL", "INFO")
