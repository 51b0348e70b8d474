"""
Catalog module for the soundboard.

This package contains the Segment model and the ClipCatalog index.
"""

from soundboard.catalog.segment import Segment
from soundboard.catalog.clip_catalog import ALL_FILES, ClipCatalog, load_catalog_file

__all__ = ["Segment", "ClipCatalog", "ALL_FILES", "load_catalog_file"]
