"""Stable references for fetched emails.

Every email gets a unique ID (the provider message ID, or a content hash when
there is none) and a small integer index. The index for a given unique ID is
allocated once and never changes or gets reused, so ``view 3`` keeps pointing
at the same email across fetches.

The mapping lives in ``email_id_mapping.json``::

    {"indexToId": {"1": "18c..."}, "idToIndex": {"18c...": 1}, "nextIndex": 2}
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable
from pathlib import Path

import structlog
from pydantic import ValidationError as PydanticValidationError

from emailmaster.exceptions import StateCorruptionError
from emailmaster.models import EmailRecord, IdentityMapping
from emailmaster.utils import read_json, write_json_atomic

logger = structlog.get_logger()


MAPPING_FILENAME = "email_id_mapping.json"

# 12 hex chars = 48 bits; plenty for a local cache of thousands of emails.
_FALLBACK_ID_LENGTH = 12


def generate_unique_id(email: EmailRecord) -> str:
    """Return the stable reference ID for an email.

    The provider message ID is used verbatim when present. Otherwise the ID is
    a truncated SHA-256 over sender, subject and date, so identical inputs
    always yield the same ID across runs.
    """

    if email.id:
        return email.id

    material = f"{email.sender}|{email.subject}|{email.date_iso}"
    return hashlib.sha256(material.encode("utf-8")).hexdigest()[:_FALLBACK_ID_LENGTH]


class IdentityStore:
    """Persisted index <-> unique ID mapping."""

    def __init__(self, data_dir: Path) -> None:
        """Create a store.

        Args:
            data_dir: Directory holding email_id_mapping.json.
        """

        self._path = Path(data_dir) / MAPPING_FILENAME

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> IdentityMapping:
        """Load the mapping, falling back to an empty one on any bad state.

        Losing the mapping only costs index stability; the next assignment
        rebuilds it from the cached emails, so this never raises.
        """

        try:
            raw = read_json(self._path)
        except StateCorruptionError as exc:
            logger.warning("identity_mapping_unreadable", path=str(self._path), error=str(exc))
            return IdentityMapping()

        if raw is None:
            return IdentityMapping()

        try:
            mapping = IdentityMapping.model_validate(raw)
        except PydanticValidationError as exc:
            logger.warning(
                "identity_mapping_invalid",
                path=str(self._path),
                error_count=exc.error_count(),
            )
            return IdentityMapping()

        if not mapping.is_consistent():
            logger.warning("identity_mapping_inconsistent", path=str(self._path))
            return IdentityMapping()

        highest = max(mapping.index_to_id, default=0)
        if mapping.next_index <= highest:
            logger.warning(
                "identity_mapping_next_index_repaired",
                next_index=mapping.next_index,
                highest=highest,
            )
            mapping.next_index = highest + 1

        return mapping

    def save(self, mapping: IdentityMapping) -> None:
        """Persist the mapping (full overwrite).

        Raises:
            PersistenceError: If the file cannot be written.
        """

        write_json_atomic(self._path, mapping.model_dump(mode="json", by_alias=True))

    def assign_indices(
        self, emails: Iterable[EmailRecord]
    ) -> tuple[list[EmailRecord], IdentityMapping]:
        """Stamp every email with its unique ID and stable index.

        Known unique IDs keep their index; unknown ones get the next free index.
        The mapping is saved before returning, so calling this repeatedly with
        overlapping sets is idempotent for already-known emails.

        Returns:
            Copies of the input emails (same order) plus the updated mapping.

        Raises:
            PersistenceError: If the mapping cannot be saved.
        """

        mapping = self.load()
        start_next = mapping.next_index

        annotated: list[EmailRecord] = []
        for email in emails:
            unique_id = generate_unique_id(email)
            index = mapping.allocate(unique_id)
            annotated.append(
                email.model_copy(update={"unique_id": unique_id, "assigned_index": index})
            )

        self.save(mapping)
        logger.info(
            "indices_assigned",
            email_count=len(annotated),
            newly_allocated=mapping.next_index - start_next,
            next_index=mapping.next_index,
        )
        return annotated, mapping
