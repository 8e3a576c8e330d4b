"""Retail backend clients"""

from .retail_client import RetailServerClient

__all__ = ['RetailServerClient']
