"""JSON snapshot storage for fetched emails and the fetch watermark.

The email cache is a point-in-time snapshot: every fetch cycle computes the
complete merged set and overwrites ``emails.json`` wholesale. Nothing is
appended or partially updated.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import structlog
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from emailmaster.exceptions import StateCorruptionError
from emailmaster.models import CacheWatermark, EmailRecord
from emailmaster.utils import read_json, write_json_atomic

logger = structlog.get_logger()


EMAILS_FILENAME = "emails.json"
METADATA_FILENAME = "cache_metadata.json"

_EMAIL_LIST = TypeAdapter(list[EmailRecord])


class EmailCache:
    """Repository for the cached email snapshot."""

    def __init__(self, data_dir: Path) -> None:
        """Create a repository.

        Args:
            data_dir: Directory holding emails.json.
        """

        self._path = Path(data_dir) / EMAILS_FILENAME

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.exists()

    def load(self) -> list[EmailRecord]:
        """Return the last saved snapshot, or an empty list if there is none.

        Raises:
            StateCorruptionError: If the file exists but does not hold a list of
                email records. The file is left untouched so nothing the user
                cares about is silently thrown away.
        """

        raw = read_json(self._path)
        if raw is None:
            return []

        if not isinstance(raw, list):
            raise StateCorruptionError(f"{self._path} must contain a JSON array of emails")

        try:
            emails = _EMAIL_LIST.validate_python(raw)
        except PydanticValidationError as exc:
            raise StateCorruptionError(
                f"{self._path} contains invalid email records ({exc.error_count()} errors)"
            ) from exc

        logger.debug("email_cache_loaded", path=str(self._path), email_count=len(emails))
        return emails

    def save(self, emails: Sequence[EmailRecord]) -> None:
        """Overwrite the snapshot with emails.

        Raises:
            PersistenceError: If the file cannot be written.
        """

        write_json_atomic(self._path, [email.to_json_dict() for email in emails])
        logger.info("email_cache_saved", path=str(self._path), email_count=len(emails))


class WatermarkRepository:
    """Repository for ``cache_metadata.json``."""

    def __init__(self, data_dir: Path) -> None:
        self._path = Path(data_dir) / METADATA_FILENAME

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> CacheWatermark:
        """Return the stored watermark, or an empty one if none was saved yet.

        Raises:
            StateCorruptionError: If the file exists but is malformed.
        """

        raw = read_json(self._path)
        if raw is None:
            return CacheWatermark()

        try:
            return CacheWatermark.model_validate(raw)
        except PydanticValidationError as exc:
            raise StateCorruptionError(f"{self._path} is not a valid cache watermark") from exc

    def save(self, watermark: CacheWatermark) -> None:
        """Persist the watermark.

        Raises:
            PersistenceError: If the file cannot be written.
        """

        write_json_atomic(self._path, watermark.model_dump(mode="json", by_alias=True))
