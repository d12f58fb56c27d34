"""Persisted identity and watermark state."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class IdentityMapping(BaseModel):
    """Bidirectional mapping between assigned indices and unique IDs.

    Stored as ``{"indexToId": {...}, "idToIndex": {...}, "nextIndex": n}``.
    JSON object keys are strings, so indices round-trip through str.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    index_to_id: dict[int, str] = Field(default_factory=dict)
    id_to_index: dict[str, int] = Field(default_factory=dict)
    next_index: int = Field(default=1, ge=1)

    def is_consistent(self) -> bool:
        """Whether the two directions are exact inverses of each other."""
        if len(self.index_to_id) != len(self.id_to_index):
            return False
        return all(self.index_to_id.get(idx) == uid for uid, idx in self.id_to_index.items())

    def allocate(self, unique_id: str) -> int:
        """Return the index for unique_id, allocating the next one if it is new."""
        existing = self.id_to_index.get(unique_id)
        if existing is not None:
            return existing
        index = self.next_index
        self.index_to_id[index] = unique_id
        self.id_to_index[unique_id] = index
        self.next_index += 1
        return index


class CacheWatermark(BaseModel):
    """The newest email seen by the last successful fetch."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    last_fetched_id: str | None = None
    last_fetched_timestamp: datetime | None = None

    @property
    def is_empty(self) -> bool:
        return self.last_fetched_timestamp is None
