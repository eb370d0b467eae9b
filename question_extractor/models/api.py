"""Request and response bodies for the HTTP API."""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from question_extractor.models.document import ParagraphColor
from question_extractor.models.question import AppliedRange, BulkSettings, CheckResult, QuestionRecord


class CheckResponse(CheckResult):
    """Check outcome plus the extracted questions on success."""
    questions: List[QuestionRecord] = Field(default_factory=list)


class CheckParagraphsRequest(BaseModel):
    """Paragraphs sent by an editor client instead of a .docx upload."""

    paragraphs: List[str] = Field(description="Paragraph texts in document order")
    html: Optional[List[Optional[str]]] = Field(
        default=None,
        description="Optional per-paragraph HTML, same length as paragraphs"
    )

    @model_validator(mode="after")
    def html_matches_paragraphs(self) -> "CheckParagraphsRequest":
        if self.html is not None and len(self.html) != len(self.paragraphs):
            raise ValueError(
                f"html has {len(self.html)} entries but paragraphs has {len(self.paragraphs)}"
            )
        return self


class CheckParagraphsResponse(CheckResponse):
    """Adds the color decided for each recolored paragraph index."""
    colors: Dict[int, ParagraphColor] = Field(default_factory=dict)


class BulkSettingsRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    range_start: Optional[int] = Field(default=None, alias="rangeStart")
    range_end: Optional[int] = Field(default=None, alias="rangeEnd")
    values: BulkSettings = Field(default_factory=BulkSettings)
    applied_ranges: List[AppliedRange] = Field(default_factory=list, alias="appliedRanges")


class BulkSettingsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    questions: List[QuestionRecord]
    applied_ranges: List[AppliedRange] = Field(alias="appliedRanges")


class SubmitRequest(BaseModel):
    """Questions to submit; the stored set is used when omitted."""
    questions: Optional[List[QuestionRecord]] = None
