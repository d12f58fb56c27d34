"""Resolve user-supplied email references.

A reference is either an assigned index (``3``), a full unique ID, or a
unique-ID prefix of at least eight characters. Misses are an expected outcome
for interactive use, so they come back as a failed ``ResolveResult`` rather
than an exception.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

import structlog

from emailmaster.cache import EmailCache
from emailmaster.identity.store import IdentityStore
from emailmaster.models import EmailRecord, IdentityMapping

logger = structlog.get_logger()


MIN_PREFIX_LENGTH = 8


@dataclass(frozen=True)
class ResolveResult:
    """Outcome of resolving a reference."""

    success: bool
    email: EmailRecord | None = None
    index: int | None = None
    unique_id: str | None = None
    error: str | None = None
    candidates: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def found(cls, email: EmailRecord, index: int) -> ResolveResult:
        return cls(success=True, email=email, index=index, unique_id=email.unique_id)

    @classmethod
    def failure(cls, error: str, candidates: Sequence[str] = ()) -> ResolveResult:
        return cls(success=False, error=error, candidates=tuple(candidates))


def _parse_index(token: str) -> int | None:
    try:
        return int(token.strip())
    except ValueError:
        return None


def _not_found(token: str) -> ResolveResult:
    return ResolveResult.failure(
        f'Email not found: {token}. Use "emailmaster list" to see available emails.'
    )


def resolve(
    token: str,
    emails: Sequence[EmailRecord],
    mapping: IdentityMapping,
    *,
    allow_index: bool = True,
) -> ResolveResult:
    """Find the email a token refers to.

    Args:
        token: Index, full unique ID, or unique-ID prefix (>= 8 chars).
        emails: Cached emails, already stamped with assigned indices.
        mapping: The persisted identity mapping.
        allow_index: Treat integer tokens as indices. Disable to look up
            unique IDs that happen to be all digits.

    Returns:
        A successful result carrying the email, or a failure with a message.
        A prefix shared by several IDs is reported as ambiguous, listing the
        candidates, instead of guessing.
    """

    token = token.strip()
    if not token:
        return ResolveResult.failure("Empty email identifier.")

    target = _parse_index(token) if allow_index else None
    if target is None:
        target = mapping.id_to_index.get(token)

    if target is None and len(token) >= MIN_PREFIX_LENGTH:
        matches = sorted(uid for uid in mapping.id_to_index if uid.startswith(token))
        if len(matches) > 1:
            logger.info("identifier_ambiguous", token=token, match_count=len(matches))
            return ResolveResult.failure(
                f"Ambiguous email identifier: {token} matches {len(matches)} emails. "
                "Use more characters or the numeric index.",
                candidates=matches,
            )
        if matches:
            target = mapping.id_to_index[matches[0]]

    if target is None:
        return _not_found(token)

    for email in emails:
        if email.assigned_index == target:
            return ResolveResult.found(email, target)

    return _not_found(token)


def resolve_identifier(
    token: str,
    cache: EmailCache,
    identity_store: IdentityStore,
    *,
    allow_index: bool = True,
) -> ResolveResult:
    """Resolve a token against the persisted cache and mapping.

    Raises:
        StateCorruptionError: If emails.json exists but cannot be parsed.
    """

    if not cache.exists():
        return ResolveResult.failure('No emails found. Run "emailmaster fetch" first.')

    return resolve(token, cache.load(), identity_store.load(), allow_index=allow_index)


def format_reference(email: EmailRecord) -> str:
    """Short display form, e.g. ``#3 (ID: 18c2f0a1...)``."""

    if email.assigned_index and email.unique_id:
        return f"#{email.assigned_index} (ID: {email.unique_id[:8]}...)"
    return "Unknown"
