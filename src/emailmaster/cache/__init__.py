"""Local email cache.

The cache holds the full set of fetched (and possibly analyzed) emails as a
single JSON snapshot, plus the watermark used to scope incremental fetches.
"""

from .repository import EMAILS_FILENAME, METADATA_FILENAME, EmailCache, WatermarkRepository

__all__ = ["EMAILS_FILENAME", "METADATA_FILENAME", "EmailCache", "WatermarkRepository"]
