"""Parts Finder Package.

Aggregates used car part listings from several marketplaces:
- site_clients: Fetches and normalizes listings from each marketplace
"""

__version__ = "0.1.0"
