"""Answer evaluation engine for mock interviews.

This package contains all scoring functionality:
- Lexical relevance utilities
- Theory answer scoring
- Sandboxed code grading
- Proctoring confidence
- Report aggregation
"""

from .coding import grade_code
from .engine import evaluate, evaluate_sync
from .models import (
    Answer,
    AnswerStatus,
    CodeAnswer,
    InterviewReport,
    InterviewType,
    Language,
    ProctoringSignals,
    QuestionResult,
    SpeechMetrics,
    coerce_language,
)
from .proctoring import score_confidence, score_eye_contact
from .theory import score_theory_answer

__all__ = [
    "evaluate",
    "evaluate_sync",
    "grade_code",
    "score_theory_answer",
    "score_confidence",
    "score_eye_contact",
    "Answer",
    "AnswerStatus",
    "CodeAnswer",
    "InterviewReport",
    "InterviewType",
    "Language",
    "ProctoringSignals",
    "QuestionResult",
    "SpeechMetrics",
    "coerce_language",
]
