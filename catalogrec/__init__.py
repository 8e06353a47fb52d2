"""CatalogRec: rule-based product recommendations from interaction history.

This package provides a recommendation engine that ranks catalog products
using content similarity, user-user collaborative filtering, weighted
personalization and popularity trending, plus a FastAPI service around it.

Modules:
    api: FastAPI application and REST API endpoints
    recommender: Data contracts, stores and scoring logic
"""

__version__ = "0.1.0"
