"""Catalog importer for the storefront database."""

__version__ = "0.1.0"
