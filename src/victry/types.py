from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from victry.core.fields import camel_name

KeywordImportance = Literal["high", "medium", "low"]
RequirementImportance = Literal["must_have", "preferred", "nice_to_have"]
RequirementType = Literal["hard_skill", "soft_skill", "experience", "education", "certification"]
FeedbackSeverity = Literal["low", "medium", "high"]
ApplicationStatus = Literal[
    "not_applied",
    "applied",
    "interview_scheduled",
    "interview_completed",
    "offer_received",
    "accepted",
    "rejected",
    "withdrawn",
]
MessageRole = Literal["user", "assistant"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=camel_name, populate_by_name=True)

    def dump(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class TailoringSettings(CamelModel):
    intensity: int = 50
    preserve_voice: bool = True
    focus_keywords: bool = True

    @field_validator("intensity")
    @classmethod
    def validate_intensity(cls, value: int) -> int:
        if value < 0 or value > 100:
            raise ValueError("intensity must be between 0 and 100")
        return value

    @property
    def intensity_level(self) -> Literal["low", "medium", "high"]:
        if self.intensity < 33:
            return "low"
        if self.intensity < 66:
            return "medium"
        return "high"


class KeywordMatch(CamelModel):
    keyword: str
    found: bool
    importance: KeywordImportance = "medium"


class ATSFeedbackItem(CamelModel):
    category: str
    message: str
    severity: FeedbackSeverity


class ATSScoreResult(CamelModel):
    score: int
    feedback: list[ATSFeedbackItem] = Field(default_factory=list)


class NotesKeyword(CamelModel):
    model_config = ConfigDict(alias_generator=camel_name, populate_by_name=True, extra="allow")

    keyword: str | None = None
    source: str | None = None
    importance: str | None = None
    section: str | None = None


class MajorChange(CamelModel):
    model_config = ConfigDict(alias_generator=camel_name, populate_by_name=True, extra="allow")

    section: str | None = None
    description: str | None = None


class ImprovementSuggestion(CamelModel):
    model_config = ConfigDict(alias_generator=camel_name, populate_by_name=True, extra="allow")

    suggestion: str | None = None
    reasoning: str | None = None


class TailoringNotes(CamelModel):
    model_config = ConfigDict(alias_generator=camel_name, populate_by_name=True, extra="allow")

    summary: str | None = None
    keyword_matches: list[NotesKeyword] = Field(default_factory=list)
    major_changes: list[MajorChange] = Field(default_factory=list)
    improvement_suggestions: list[ImprovementSuggestion] = Field(default_factory=list)

    @field_validator("keyword_matches", "major_changes", "improvement_suggestions", mode="before")
    @classmethod
    def none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class TailoringPayload(CamelModel):
    tailored_resume: dict[str, Any]
    tailoring_notes: TailoringNotes


class AnalysisItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    skill: str | None = None
    description: str | None = None
    type: str | None = None
    field: str | None = None
    name: str | None = None
    importance: str | None = None


class AnalysisKeyword(BaseModel):
    model_config = ConfigDict(extra="allow")

    text: str | None = None
    frequency: int | float | None = None
    context: str | None = None


class AnalysisQualifications(BaseModel):
    model_config = ConfigDict(extra="allow")

    experience: list[AnalysisItem] = Field(default_factory=list)
    education: list[AnalysisItem] = Field(default_factory=list)
    certifications: list[AnalysisItem] = Field(default_factory=list)


class AnalysisCulture(BaseModel):
    model_config = ConfigDict(extra="allow")

    trait: str | None = None


class AnalysisExperienceLevel(BaseModel):
    model_config = ConfigDict(extra="allow")

    level: str | None = None


class JobAnalysisPayload(BaseModel):
    """Structured job analysis as returned by the model (camelCase keys)."""

    model_config = ConfigDict(extra="allow")

    hardSkills: list[AnalysisItem] = Field(default_factory=list)
    softSkills: list[AnalysisItem] = Field(default_factory=list)
    qualifications: AnalysisQualifications = Field(default_factory=AnalysisQualifications)
    keywords: list[AnalysisKeyword] = Field(default_factory=list)
    companyCulture: list[AnalysisCulture] = Field(default_factory=list)
    experienceLevel: AnalysisExperienceLevel = Field(default_factory=AnalysisExperienceLevel)
    industry: str | None = None
    remoteStatus: str | None = None

    @field_validator("hardSkills", "softSkills", "keywords", "companyCulture", mode="before")
    @classmethod
    def none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("qualifications", "experienceLevel", mode="before")
    @classmethod
    def none_as_default(cls, value: Any) -> Any:
        return {} if value is None else value


class JobRequirement(CamelModel):
    id: str
    type: RequirementType
    content: str
    importance: RequirementImportance = "nice_to_have"


class JobKeyword(CamelModel):
    id: str
    text: str
    frequency: int = 1
    context: str | None = None


class ChatMessage(BaseModel):
    role: MessageRole
    content: str


class ToolSchema(BaseModel):
    name: str
    description: str
    input_schema: dict[str, Any]


class LLMRequest(BaseModel):
    messages: list[ChatMessage]
    system: str | None = None
    model: str | None = None
    temperature: float = 0.7
    max_tokens: int = 1024
    top_p: float | None = None
    top_k: int | None = None
    stop_sequences: list[str] = Field(default_factory=list)
    tools: list[ToolSchema] = Field(default_factory=list)

    @field_validator("messages")
    @classmethod
    def validate_messages(cls, value: list[ChatMessage]) -> list[ChatMessage]:
        if not value:
            raise ValueError("at least one message is required")
        return value


class ModelResponse(BaseModel):
    content: str
    tool_calls: dict[str, dict[str, Any]] = Field(default_factory=dict)
    id: str | None = None
    model: str | None = None
    stop_reason: str | None = None
    stop_sequence: str | None = None
    input_tokens: int | None = None
    output_tokens: int | None = None
    raw: dict[str, Any] = Field(default_factory=dict)
