# models.py
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import AliasGenerator, BaseModel, ConfigDict, Field, StrictBool, StrictStr, field_validator
from pydantic.alias_generators import to_camel

ComponentState = Literal["up", "down"]


class ExtractedItem(BaseModel):
    """One action item exactly as the language model reported it."""

    model_config = ConfigDict(extra="forbid", strict=True)

    taskDescription: StrictStr = Field(min_length=1)
    owner: Optional[StrictStr]
    dueDate: Optional[StrictStr]


class TranscriptRequest(BaseModel):
    transcript: StrictStr = Field(min_length=10)


class ActionItemUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid", alias_generator=to_camel)

    task_description: Optional[StrictStr] = Field(default=None, min_length=1)
    owner: Optional[StrictStr] = None
    due_date: Optional[StrictStr] = None
    is_done: Optional[StrictBool] = None
    tags: Optional[List[StrictStr]] = None

    @field_validator("task_description", "is_done", "tags", mode="before")
    @classmethod
    def _reject_null(cls, value):
        if value is None:
            raise ValueError("Field may be omitted but not null")
        return value


class ActionItemOut(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=AliasGenerator(serialization_alias=to_camel),
    )

    id: int
    transcript_id: int
    task_description: str
    owner: Optional[str] = None
    due_date: Optional[str] = None
    is_done: bool = False
    tags: List[str] = Field(default_factory=list)


class TranscriptOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    raw_text: str
    created_at: datetime
    action_items: List[ActionItemOut]


class HistoryEntry(BaseModel):
    id: int
    preview_text: str
    created_at: datetime
    action_item_count: int


class HealthReport(BaseModel):
    backend: ComponentState = "up"
    database: ComponentState
    llm: ComponentState
    timestamp: str
