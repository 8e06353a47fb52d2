"""FastAPI application module for CatalogRec.

This module contains the FastAPI application, route handlers, and API
endpoints that expose the recommendation engine, the product catalog and
user interaction history over HTTP.
"""
