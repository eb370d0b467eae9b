"""Pydantic models for the remote catalog and test-authoring API."""

from typing import Generic, Literal, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class APIResponse(BaseModel, Generic[T]):
    """Uniform envelope returned by catalog client calls that never raise."""
    status: int = Field(description="HTTP status, 500 for transport failures")
    message: str
    error: bool = False
    data: Optional[T] = None


class Pattern(BaseModel):
    """A question/option/answer/solution writing pattern offered to authors."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    pattern_id: int = Field(alias="patternId")
    pattern_type: Literal["question", "option", "solution", "answer", "writeup"] = Field(
        alias="patternType"
    )
    pattern_text: str = Field(alias="patternText")
    language: Optional[str] = None
    is_active: bool = Field(default=True, alias="isActive")
    created_by: Optional[str] = Field(default=None, alias="createdBy")
    created_date: Optional[str] = Field(default=None, alias="createdDate")
    modified_by: Optional[str] = Field(default=None, alias="modifiedBy")
    modified_date: Optional[str] = Field(default=None, alias="modifiedDate")


class CatalogOption(BaseModel):
    """Value/label pair for reference data (languages, difficulty levels, subjects)."""
    value: Union[int, str]
    label: str
