"""Tokopedia marketplace support."""

from .adapter import TokopediaAdapter

__all__ = ["TokopediaAdapter"]
