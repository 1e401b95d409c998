import uuid
from datetime import datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from journal_memory.errors import MalformedCandidate

MemoryType = Literal[
    "entity", "fact", "preference", "event", "goal", "procedure", "decision", "action"
]
EntityType = Literal["person", "project", "place", "pet", "organization", "concept"]
Importance = Literal["critical", "high", "medium", "low", "trivial"]
SensitivityLevel = Literal["normal", "sensitive", "private"]
RecordStatus = Literal["active", "superseded", "archived"]
MergeStrategy = Literal["replace", "append", "supersede"]
AuditOperation = Literal["ADD", "UPDATE", "DELETE", "NOOP", "ERROR", "CONSOLIDATE"]

MEMORY_TYPES = ("entity", "fact", "preference", "event", "goal", "procedure", "decision", "action")
ENTITY_TYPES = ("person", "project", "place", "pet", "organization", "concept")
IMPORTANCE_LEVELS = ("critical", "high", "medium", "low", "trivial")
SENSITIVITY_LEVELS = ("normal", "sensitive", "private")

IMPORTANCE_SCORES = {
    "critical": 1.0,
    "high": 0.8,
    "medium": 0.5,
    "low": 0.3,
    "trivial": 0.1,
}

# Extraction prompts ask for these labels but upstream models drift
ENTITY_TYPE_ALIASES = {
    "company": "organization",
    "org": "organization",
    "team": "organization",
    "city": "place",
    "location": "place",
    "topic": "concept",
    "other": "concept",
}

SENTIMENT_LABELS = {
    "positive": 1.0,
    "neutral": 0.0,
    "mixed": 0.0,
    "negative": -1.0,
}


def importance_score(importance: Optional[str]) -> float:
    """Map an importance label to its ranking score (unknown labels rank as medium)."""
    return IMPORTANCE_SCORES.get(importance or "medium", 0.5)


def coerce_entity_type(value: Optional[str]) -> str:
    """Normalize an extracted entity type, defaulting to ``concept``."""
    if not value:
        return "concept"
    key = str(value).strip().lower()
    if key in ENTITY_TYPES:
        return key
    return ENTITY_TYPE_ALIASES.get(key, "concept")


def identity_key(owner_id: str, name: str, memory_type: str) -> tuple[str, str, str]:
    """Logical identity of a record: owner, case-insensitive name and memory type."""
    return owner_id, name.strip().casefold(), memory_type


class RecurrencePattern(BaseModel):
    """Structured recurrence, e.g. weekly on Monday at 09:00."""

    type: Literal["daily", "weekly", "monthly", "yearly"]
    day: Optional[str | int] = None
    time: Optional[str] = None
    month: Optional[int] = Field(default=None, ge=1, le=12)


class MemoryRecord(BaseModel):
    """A durable, versioned unit of knowledge about one owner."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Record identifier")
    owner_id: str = Field(..., description="User this record belongs to")
    name: str = Field(..., description="Short label used for identity matching")
    memory_type: MemoryType = "entity"
    entity_type: EntityType = "concept"
    content: str
    importance: Importance = "medium"
    importance_score: float = Field(default=0.5, ge=0.1, le=1.0)
    is_historical: bool = False
    recurrence_pattern: Optional[RecurrencePattern] = None
    sensitivity_level: SensitivityLevel = "normal"
    sentiment_average: float = Field(default=0.0, ge=-1.0, le=1.0)
    confidence: float = Field(default=0.8, ge=0.0, le=1.0)
    embedding: Optional[List[float]] = None
    status: RecordStatus = "active"
    version: int = Field(default=1, ge=1)
    supersedes_id: Optional[str] = Field(
        default=None, description="Record this one replaced through a supersede merge"
    )
    superseded_by_id: Optional[str] = Field(
        default=None, description="Record that replaced this one"
    )
    mention_count: int = Field(default=1, ge=1)
    first_mentioned_at: datetime = Field(default_factory=datetime.now)
    last_mentioned_at: datetime = Field(default_factory=datetime.now)
    effective_from: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
    archived_at: Optional[datetime] = None

    @field_validator("entity_type", mode="before")
    @classmethod
    def _coerce_entity_type(cls, value):
        return coerce_entity_type(value)

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        now = now or datetime.now()
        return self.expires_at < now

    def snapshot(self) -> dict:
        """JSON-safe copy without the embedding, used for audit snapshots."""
        return self.model_dump(mode="json", exclude={"embedding"})


class CandidateFact(BaseModel):
    """A piece of extracted information proposed for consolidation."""

    name: str
    content: str
    memory_type: MemoryType = "fact"
    entity_type: EntityType = "concept"
    importance: Importance = "medium"
    sentiment: Optional[float] = Field(default=None, ge=-1.0, le=1.0)
    is_historical: bool = False
    effective_from: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    recurrence_pattern: Optional[RecurrencePattern] = None
    sensitivity_level: SensitivityLevel = "normal"
    confidence: float = Field(default=0.8, ge=0.0, le=1.0)
    is_deletion_request: bool = Field(
        default=False,
        description="True only when the note explicitly asks to forget or delete something",
    )

    @field_validator("entity_type", mode="before")
    @classmethod
    def _coerce_entity_type(cls, value):
        return coerce_entity_type(value)

    @field_validator("name", "content")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @classmethod
    def from_raw(cls, data: Any) -> "CandidateFact":
        """
        Build a candidate from one raw extraction item.

        Tolerates the usual upstream drift (sentiment labels, ``summary``
        instead of ``content``, missing name) and raises MalformedCandidate
        for anything that still fails validation.
        """
        if not isinstance(data, dict):
            raise MalformedCandidate(f"Candidate is not an object: {data!r}")

        item = dict(data)
        if not item.get("content"):
            item["content"] = item.get("summary") or item.get("text") or ""
        if not item.get("name") and item.get("content"):
            item["name"] = str(item["content"])[:100]
        if "type" in item and "memory_type" not in item:
            item["memory_type"] = item.pop("type")
        if isinstance(item.get("memory_type"), str):
            item["memory_type"] = item["memory_type"].strip().lower()
        if isinstance(item.get("importance"), str):
            importance = item["importance"].strip().lower()
            item["importance"] = importance if importance in IMPORTANCE_LEVELS else "medium"
        if isinstance(item.get("sensitivity_level"), str):
            level = item["sensitivity_level"].strip().lower()
            item["sensitivity_level"] = level if level in SENSITIVITY_LEVELS else "normal"
        sentiment = item.get("sentiment")
        if isinstance(sentiment, str):
            item["sentiment"] = SENTIMENT_LABELS.get(sentiment.strip().lower())
        elif isinstance(sentiment, (int, float)) and not isinstance(sentiment, bool):
            item["sentiment"] = max(-1.0, min(1.0, float(sentiment)))
        if item.get("recurrence_pattern") in ({}, ""):
            item["recurrence_pattern"] = None

        try:
            return cls.model_validate(item)
        except ValidationError as e:
            raise MalformedCandidate(f"Invalid candidate: {e.error_count()} validation errors") from e


class AuditEntry(BaseModel):
    """Append-only record of one attempted consolidation operation."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    owner_id: str
    operation: AuditOperation
    candidate_content: str
    candidate_memory_type: Optional[str] = None
    decision_rationale: Optional[str] = None
    affected_record_id: Optional[str] = None
    merge_strategy: Optional[MergeStrategy] = None
    source_note_id: Optional[str] = None
    processing_time_ms: int = 0
    created_at: datetime = Field(default_factory=datetime.now)

    note: Optional[str] = Field(
        default=None, description="Why a decision was rejected, degraded or failed"
    )
    similar_record_ids: List[str] = Field(default_factory=list)
    old_content: Optional[str] = None
    new_content: Optional[str] = None
    old_version: Optional[int] = None
    new_version: Optional[int] = None
    hard_delete: Optional[bool] = None
    deleted_snapshot: Optional[dict] = None
    merged_record_ids: List[str] = Field(default_factory=list)
