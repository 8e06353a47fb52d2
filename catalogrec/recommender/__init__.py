"""Recommendation engine module for CatalogRec.

This module contains the typed product and interaction records, the store
interfaces the engine reads from, and the scorers that turn a user's
interaction history into ordered product lists.
"""
