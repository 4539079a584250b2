"""Interview evaluation backend: FastAPI application.

Thin HTTP layer over the evaluation engine: no auth, no persistence. The
interview service calls these endpoints and stores the returned reports.
"""

import logging

import sentry_sdk
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from config import settings
from evaluation import (
    Answer,
    InterviewReport,
    InterviewType,
    Language,
    ProctoringSignals,
    QuestionResult,
    coerce_language,
    evaluate,
    grade_code,
    score_theory_answer,
)
from question_bank import MIN_QUESTIONS, generate_questions

logger = logging.getLogger(__name__)

# Ensure logs reach the console
_root = logging.getLogger()
if not _root.handlers:
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    _root.addHandler(console_handler)
_root.setLevel(settings.log_level.upper())

if settings.sentry_dsn:
    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        integrations=[
            StarletteIntegration(transaction_style="endpoint"),
            FastApiIntegration(transaction_style="endpoint"),
        ],
        traces_sample_rate=0.1,
        environment=settings.environment,
    )

# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------

app = FastAPI(title="Interview Evaluation Engine", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Request / response schemas
# ---------------------------------------------------------------------------


class _Request(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class QuestionsRequest(_Request):
    type: InterviewType
    topic: str = Field(min_length=1)
    resume_text: str = ""


class QuestionsResponse(BaseModel):
    questions: list[str]


class EvaluateRequest(_Request):
    type: InterviewType
    topic: str = "default"
    questions: list[str]
    answers: list[Answer] = []
    duration_sec: int = Field(default=0, ge=0)
    proctoring_signals: ProctoringSignals = ProctoringSignals()


class GradeCodeRequest(_Request):
    code: str
    language: Language = Language.PYTHON
    question_index: int = Field(ge=0)
    question_text: str
    complexity_note: str = ""

    @field_validator("code", "complexity_note", mode="before")
    @classmethod
    def _null_as_empty(cls, value: object) -> object:
        return "" if value is None else value

    @field_validator("language", mode="before")
    @classmethod
    def _known_or_other(cls, value: object) -> Language:
        return coerce_language(value)


class ScoreTheoryRequest(_Request):
    question: str
    answer: Answer
    topic: str = "default"
    question_number: int = Field(default=1, ge=1)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@app.get("/api/health")
async def health():
    return {"status": "ok", "sandbox": settings.sandbox_backend}


@app.post("/api/questions")
async def create_questions(req: QuestionsRequest) -> QuestionsResponse:
    """Generate the ordered question list for a new interview."""
    generated = generate_questions(req.type, req.topic, req.resume_text)
    if len(generated) < MIN_QUESTIONS:
        raise HTTPException(
            status_code=500,
            detail=f"Interview generation failed to meet minimum {MIN_QUESTIONS}-question requirement",
        )
    return QuestionsResponse(questions=generated)


@app.post("/api/evaluate", response_model=InterviewReport, response_model_by_alias=True)
async def evaluate_interview(req: EvaluateRequest) -> InterviewReport:
    """Evaluate a completed interview and return its report."""
    if len(req.questions) < MIN_QUESTIONS:
        raise HTTPException(status_code=400, detail=f"Interview must contain at least {MIN_QUESTIONS} questions")

    return await evaluate(
        req.type,
        req.topic,
        req.questions,
        req.answers,
        req.duration_sec,
        req.proctoring_signals,
    )


@app.post("/api/grade-code", response_model=QuestionResult, response_model_by_alias=True)
async def grade_code_preview(req: GradeCodeRequest) -> QuestionResult:
    """Grade a single code submission without building a report."""
    return await grade_code(
        req.code,
        req.language,
        req.question_index,
        req.question_text,
        req.complexity_note,
    )


@app.post("/api/score-theory", response_model=QuestionResult, response_model_by_alias=True)
async def score_theory_preview(req: ScoreTheoryRequest) -> QuestionResult:
    """Score a single theory answer without building a report."""
    return score_theory_answer(req.question, req.answer, req.topic, question_number=req.question_number)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)
