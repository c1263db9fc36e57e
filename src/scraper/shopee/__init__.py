"""Shopee marketplace support."""

from .adapter import ShopeeAdapter

__all__ = ["ShopeeAdapter"]
