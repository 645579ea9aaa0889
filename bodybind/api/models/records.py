from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from bodybind.core.binding.field_index import wire_field


@dataclass
class UserRecord:
    id: int = wire_field("id", default=0)
    first_name: str = wire_field("first_name", default="")
    last_name: str = wire_field("last_name", default="")
    active: bool = wire_field("active", default=False)
    email: Optional[str] = wire_field("email,omitempty", default=None)
    # untagged: never bound from a request body
    created_by: str = "api"


class ProfileRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    display_name: str = Field("", alias="displayName")
    age: int = Field(0, alias="age")
    score: float = Field(0.0, alias="score")
    newsletter: bool = Field(False, alias="newsletter")
    nickname: Optional[str] = Field(None, alias="nickname")


class BindResponse(BaseModel):
    columns: List[str] = Field(default_factory=list)
    record: Dict[str, Any] = Field(default_factory=dict)
