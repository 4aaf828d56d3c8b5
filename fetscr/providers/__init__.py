"""Upstream search providers."""

from .base import PageFetcher
from .google_cse import GoogleCSEFetcher

__all__ = ["GoogleCSEFetcher", "PageFetcher"]
