from datetime import datetime, timezone
from typing import Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LexiconTerm(BaseModel):
    """A written term and how it should be spoken."""

    model_config = ConfigDict(frozen=True)

    term: str = Field(..., description="Written token or phrase, matched case-insensitively")
    spoken: str = Field(..., description="Text sent to the synthesis provider instead")

    @field_validator("term", "spoken", mode="before")
    @classmethod
    def _strip(cls, value):
        return str(value or "").strip()

    @property
    def is_usable(self) -> bool:
        return bool(self.term) and bool(self.spoken)


class LexiconSnapshot(BaseModel):
    """Immutable set of lexicon terms with its freshness window."""

    model_config = ConfigDict(frozen=True)

    terms: Tuple[LexiconTerm, ...] = Field(default_factory=tuple, description="Terms in source order")
    fetched_at: float = Field(..., description="Epoch seconds of the fetch")
    expires_at: float = Field(..., description="Epoch seconds after which the snapshot is stale")

    def is_fresh(self, now: float) -> bool:
        return now < self.expires_at

    @property
    def last_fetched(self) -> str:
        return datetime.fromtimestamp(self.fetched_at, tz=timezone.utc).isoformat()
