"""Route modules for the CatalogRec API."""
