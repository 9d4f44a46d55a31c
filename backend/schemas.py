# schemas.py
"""Request payloads and AI response shapes.

Request models reject malformed input with field-level errors. AI models do
the opposite: every field has a named default so a partially valid LLM reply
is coerced instead of rejected.
"""
from __future__ import annotations
import re
from enum import Enum
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
SECTION_RE = re.compile(r"^(summary|experience-(\d+))$")


class QuestionType(str, Enum):
    TECHNICAL = "technical"
    HR = "hr"
    MIXED = "mixed"


class SessionStatus(str, Enum):
    SETUP = "setup"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


# ------------------------------
# Auth
# ------------------------------
class Credentials(BaseModel):
    username: str = Field(min_length=1, max_length=64)
    password: str = Field(min_length=1, max_length=256)

    @field_validator("username")
    @classmethod
    def _strip_username(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("username must not be blank")
        return v


# ------------------------------
# Resume content
# ------------------------------
class Basics(BaseModel):
    name: str
    email: str
    phone: str
    summary: str

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        v = v.strip()
        if not EMAIL_RE.match(v):
            raise ValueError("invalid email format")
        return v


class Experience(BaseModel):
    company: str
    position: str
    start_date: str
    end_date: Optional[str] = None
    description: str


class Project(BaseModel):
    name: str
    technologies: str
    description: str


class Education(BaseModel):
    institution: str
    degree: str
    year: str


class ResumeContent(BaseModel):
    basics: Basics
    experience: List[Experience] = Field(default_factory=list)
    skills: List[str] = Field(default_factory=list)
    projects: Optional[List[Project]] = None
    education: Optional[List[Education]] = None


class ResumeCreate(BaseModel):
    # ats_score is deliberately absent: only the analyze step writes it
    title: str = Field(min_length=1, max_length=200)
    content: ResumeContent
    template: str = "modern"


class ResumeUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    content: Optional[ResumeContent] = None
    template: Optional[str] = None


class AnalyzeRequest(BaseModel):
    job_description: Optional[str] = None


class OptimizeRequest(BaseModel):
    target_role: Optional[str] = None


class ApplyOptimizationRequest(BaseModel):
    section: str
    optimized_text: str

    @field_validator("section")
    @classmethod
    def _section(cls, v: str) -> str:
        if not SECTION_RE.match(v):
            raise ValueError("section must be 'summary' or 'experience-<index>'")
        return v


# ------------------------------
# Interviews
# ------------------------------
def _question_type(v: Any) -> Any:
    # the UI labels the hr option "HR / Behavioral"
    if isinstance(v, str) and v.strip().lower() == "behavioral":
        return QuestionType.HR.value
    return v


class SessionCreate(BaseModel):
    job_role: str = Field(min_length=1, max_length=200)
    question_type: QuestionType

    @field_validator("question_type", mode="before")
    @classmethod
    def _qt(cls, v: Any) -> Any:
        return _question_type(v)


class SessionUpdate(BaseModel):
    job_role: Optional[str] = Field(default=None, min_length=1, max_length=200)
    question_type: Optional[QuestionType] = None
    status: Optional[SessionStatus] = None

    @field_validator("question_type", mode="before")
    @classmethod
    def _qt(cls, v: Any) -> Any:
        return _question_type(v)


class GenerateQuestionsRequest(BaseModel):
    resume_content: Optional[ResumeContent] = None
    resume_id: Optional[str] = None


class AnswerRequest(BaseModel):
    answer: str = Field(min_length=1)
    job_role: Optional[str] = None


# ------------------------------
# AI responses (coerced, never rejected)
# ------------------------------
def _coerce_list(v: Any) -> List[str]:
    if not isinstance(v, list):
        return []
    return [str(x).strip() for x in v if isinstance(x, (str, int, float)) and str(x).strip()]


def _coerce_score(v: Any) -> int:
    if isinstance(v, bool):
        return 0
    if isinstance(v, str):
        try:
            v = float(v.strip())
        except ValueError:
            return 0
    if not isinstance(v, (int, float)) or v != v:  # NaN
        return 0
    # clamp before rounding; int() cannot take infinity
    return int(round(max(0, min(100, v))))


def _coerce_str(v: Any) -> str:
    if v is None:
        return ""
    return v if isinstance(v, str) else str(v)


class _AIModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ATSAnalysis(_AIModel):
    score: int = 0
    keywords: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)

    @field_validator("score", mode="before")
    @classmethod
    def _score(cls, v: Any) -> int:
        return _coerce_score(v)

    @field_validator("keywords", "suggestions", "strengths", "weaknesses", mode="before")
    @classmethod
    def _lists(cls, v: Any) -> List[str]:
        return _coerce_list(v)


class Optimization(_AIModel):
    section: str = ""
    original: str = ""
    optimized: str = ""
    improvement: str = ""

    @field_validator("section", "original", "optimized", "improvement", mode="before")
    @classmethod
    def _strs(cls, v: Any) -> str:
        return _coerce_str(v)


class AnswerEvaluation(_AIModel):
    score: int = 0
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    feedback: str = ""

    @field_validator("score", mode="before")
    @classmethod
    def _score(cls, v: Any) -> int:
        return _coerce_score(v)

    @field_validator("strengths", "improvements", mode="before")
    @classmethod
    def _lists(cls, v: Any) -> List[str]:
        return _coerce_list(v)

    @field_validator("feedback", mode="before")
    @classmethod
    def _feedback(cls, v: Any) -> str:
        return _coerce_str(v)


class ReportFeedback(_AIModel):
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    summary: str = ""

    @field_validator("strengths", "improvements", mode="before")
    @classmethod
    def _lists(cls, v: Any) -> List[str]:
        return _coerce_list(v)

    @field_validator("summary", mode="before")
    @classmethod
    def _summary(cls, v: Any) -> str:
        return _coerce_str(v)


class ReportData(_AIModel):
    confidence_score: int = Field(default=0, validation_alias=AliasChoices("confidence_score", "confidenceScore"))
    grammar_score: int = Field(default=0, validation_alias=AliasChoices("grammar_score", "grammarScore"))
    relevance_score: int = Field(default=0, validation_alias=AliasChoices("relevance_score", "relevanceScore"))
    overall_score: int = Field(default=0, validation_alias=AliasChoices("overall_score", "overallScore"))
    feedback: ReportFeedback = Field(default_factory=ReportFeedback)

    @field_validator("confidence_score", "grammar_score", "relevance_score", "overall_score", mode="before")
    @classmethod
    def _scores(cls, v: Any) -> int:
        return _coerce_score(v)

    @field_validator("feedback", mode="before")
    @classmethod
    def _feedback(cls, v: Any) -> Any:
        return v if isinstance(v, dict) else {}
