"""Stable email references.

This package assigns every cached email a unique ID and a persistent integer
index, and resolves user-supplied references back to cached emails.
"""

from .resolver import ResolveResult, format_reference, resolve, resolve_identifier
from .store import IdentityStore, generate_unique_id

__all__ = [
    "IdentityStore",
    "ResolveResult",
    "format_reference",
    "generate_unique_id",
    "resolve",
    "resolve_identifier",
]
