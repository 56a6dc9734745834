"""Shared pydantic base and helpers for planner models."""
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional
import uuid

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive timestamps from older documents as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def split_labels(value: Any) -> List[str]:
    """
    Normalize tag/group input into an ordered, de-duplicated list.

    Accepts a comma-separated string or any iterable of strings.
    """
    if value is None:
        return []
    if isinstance(value, str):
        items: Iterable[Any] = value.split(",")
    else:
        items = value
    labels: List[str] = []
    for item in items:
        label = str(item).strip()
        if label and label not in labels:
            labels.append(label)
    return labels


class CamelModel(BaseModel):
    """Models serialize with camelCase keys and accept snake_case or camelCase on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self, **kwargs) -> dict:
        return self.model_dump(mode="json", by_alias=True, **kwargs)
