"""Pydantic models for answer evaluation.

Inputs (answers, speech metrics, proctoring signals) accept the camelCase
payloads produced by the interview client; results and reports are frozen
once built and serialise back to camelCase with ``model_dump(by_alias=True)``.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

UNANSWERED_MARKER = "[UNANSWERED"


def is_unanswered_text(text: str | None) -> bool:
    """True for empty/whitespace text or the legacy client timeout marker."""
    if not text or not text.strip():
        return True
    return UNANSWERED_MARKER in text.upper()


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _FrozenCamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class InterviewType(str, Enum):
    SKILL = "skill"
    CODING = "coding"
    HR = "hr"
    COMPREHENSIVE = "comprehensive"


class AnswerStatus(str, Enum):
    ANSWERED = "answered"
    UNANSWERED = "unanswered"


class Language(str, Enum):
    PYTHON = "python"
    JAVASCRIPT = "javascript"
    JAVA = "java"
    CPP = "cpp"
    OTHER = "other"


def coerce_language(value: object) -> Language:
    """Map a client-supplied language to :class:`Language`; unknown names become ``OTHER``."""
    if value is None:
        return Language.PYTHON
    if isinstance(value, Language):
        return value
    try:
        return Language(str(value).strip().lower())
    except ValueError:
        return Language.OTHER


class SpeechMetrics(_CamelModel):
    words_per_minute: float = Field(default=0, ge=0, le=220)
    pause_duration_sec: float = Field(default=0, ge=0, le=300)
    filler_words: int = Field(default=0, ge=0)
    clarity_score: float = Field(default=0, ge=0, le=100)


class CodeAnswer(_CamelModel):
    code: str = ""
    language: Language = Language.PYTHON
    complexity_note: str = ""

    @field_validator("code", "complexity_note", mode="before")
    @classmethod
    def _null_as_empty(cls, value: object) -> object:
        return "" if value is None else value

    @field_validator("language", mode="before")
    @classmethod
    def _known_or_other(cls, value: object) -> Language:
        return coerce_language(value)


class Answer(_CamelModel):
    """A single candidate answer.

    ``status`` is the explicit answered/unanswered tag the scorers read. When a
    caller leaves it unset, :meth:`resolve` derives it for the interview type.
    """

    transcript: str = ""
    speech_metrics: SpeechMetrics = SpeechMetrics()
    code_answer: CodeAnswer | None = None
    status: AnswerStatus | None = None

    @model_validator(mode="before")
    @classmethod
    def _accept_plain_transcript(cls, data: object) -> object:
        if isinstance(data, str):
            return {"transcript": data}
        return data

    @field_validator("transcript", mode="before")
    @classmethod
    def _null_transcript(cls, value: object) -> object:
        return "" if value is None else value

    @field_validator("speech_metrics", mode="before")
    @classmethod
    def _null_speech_metrics(cls, value: object) -> object:
        return SpeechMetrics() if value is None else value

    @property
    def code(self) -> str:
        return self.code_answer.code if self.code_answer else ""

    def resolve(self, interview_type: InterviewType) -> "Answer":
        """Return a copy with ``status`` set, looking at code for coding rounds."""
        if self.status is not None:
            return self
        text = self.code if interview_type == InterviewType.CODING else self.transcript
        status = AnswerStatus.UNANSWERED if is_unanswered_text(text) else AnswerStatus.ANSWERED
        return self.model_copy(update={"status": status})

    @property
    def is_unanswered(self) -> bool:
        return self.status == AnswerStatus.UNANSWERED


class ProctoringSignals(_CamelModel):
    tab_switches: int = Field(default=0, ge=0)
    long_silence_events: int = Field(default=0, ge=0)
    background_noise_events: int = Field(default=0, ge=0)
    multiple_face_events: int = Field(default=0, ge=0)
    mic_on_ratio: float = Field(default=1.0, ge=0, le=1)
    face_detected_ratio: float = Field(default=1.0, ge=0, le=1)


class QuestionMetrics(_FrozenCamelModel):
    keyword_coverage: int = 0
    structure: int = 0
    clarity: int = 0
    communication: int = 0
    speech_clarity: int = 0
    filler_words: int = 0
    words_per_minute: int = 0


class QuestionResult(_FrozenCamelModel):
    """Per-question outcome, identical in shape for theory and coding rounds."""

    question_number: int
    question: str
    answer: str
    status: AnswerStatus
    score: int
    word_count: int = 0
    metrics: QuestionMetrics = QuestionMetrics()
    feedback: tuple[str, ...] = ()
    improvements: tuple[str, ...] = ()

    # Sub-scores consumed by the report aggregator
    relevance: int = 0
    coverage: int = 0
    correctness: int = 0
    test_pass_percent: int = 0
    execution_quality: int = 0
    is_correct: bool = False
    passed: bool = False
    passed_count: int = 0
    total_tests: int = 0


class ScoreBreakdown(_FrozenCamelModel):
    relevance: int = 0
    coverage: int = 0
    completeness: int = 0
    structure: int = 0
    grammar: int = 0
    communication: int = 0
    confidence: int = 0
    eye_contact: int = 0


class SpeechSummary(_FrozenCamelModel):
    words_per_minute_avg: int = 0
    pause_duration_total_sec: int = 0
    filler_words_total: int = 0
    clarity_avg: int = 0


class InterviewReport(_FrozenCamelModel):
    interview_type: InterviewType
    topic: str
    duration_sec: int
    overall_score: int
    breakdown: ScoreBreakdown
    speech_metrics: SpeechSummary = SpeechSummary()
    summary: str
    strengths: tuple[str, ...]
    improvements: tuple[str, ...]
    suggestions: tuple[str, ...]
    unanswered_count: int
    question_breakdown: tuple[QuestionResult, ...]
