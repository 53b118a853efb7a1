"""Marketplace Adapters.

This package contains concrete implementations of the SiteClient interface
for the supported parts marketplaces.

Available adapters:
- KleinanzeigenAdapter: Scraped HTML classifieds (kleinanzeigen_adapter.py)
- SchadeAutosAdapter: Bulk form search returning JSON (schadeautos_adapter.py)
- EbayAdapter: OAuth-protected Browse API (ebay_adapter.py)
- MockAdapter: For testing purposes (mock_adapter.py)
"""

from .ebay_adapter import EbayAdapter, TokenHolder
from .kleinanzeigen_adapter import KleinanzeigenAdapter
from .mock_adapter import MockAdapter
from .schadeautos_adapter import SchadeAutosAdapter

# Adapter keys accepted in config/sites.yml
ADAPTERS = {
    "kleinanzeigen": KleinanzeigenAdapter,
    "schadeautos": SchadeAutosAdapter,
    "ebay": EbayAdapter,
    "mock": MockAdapter,
}

__all__ = [
    "ADAPTERS",
    "EbayAdapter",
    "KleinanzeigenAdapter",
    "MockAdapter",
    "SchadeAutosAdapter",
    "TokenHolder",
]
