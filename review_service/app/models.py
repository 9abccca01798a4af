from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional


class ReviewRequest(BaseModel):
    # Missing / null fields become "" so the validator reports them, not pydantic
    title: str = ""
    author: Optional[str] = None
    focus: str = ""

    @field_validator("title", "focus", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return "" if v is None else v

    @field_validator("title", "author", "focus")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v


class ReviewMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    character_count: int = Field(alias="characterCount")
    model: str
    search_used: bool = Field(alias="searchUsed")


class ReviewResponse(BaseModel):
    text: str
    metadata: ReviewMetadata


class ReviewResult(BaseModel):
    """Internal result of one generation, before it is shaped for the wire."""
    model_config = ConfigDict(protected_namespaces=())

    text: str
    character_count: int
    model_identifier: str
    search_used: bool

    def to_response(self) -> ReviewResponse:
        return ReviewResponse(
            text=self.text,
            metadata=ReviewMetadata(
                character_count=self.character_count,
                model=self.model_identifier,
                search_used=self.search_used,
            ),
        )


class ErrorResponse(BaseModel):
    error: str
    details: Optional[list[str] | str] = None
    required: Optional[list[str]] = None
    feedback: Optional[dict] = None


class HealthResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: str = "ok"
    timestamp: str
    gemini_configured: bool = Field(alias="geminiConfigured")
    node_env: str = Field(alias="nodeEnv")
