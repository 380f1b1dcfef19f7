"""Site scrapers used by the sync pipeline."""

from .tamilan24 import ContentLister, DetailResolver, parse_listing_label

__all__ = ["ContentLister", "DetailResolver", "parse_listing_label"]
