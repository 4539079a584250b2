"""Single entry point for evaluating a completed interview.

Questions are graded concurrently under a bounded semaphore, then collected
back in question order before the report is built. The engine performs no
I/O beyond the sandbox and attaches no timestamps, so identical inputs give
identical reports.
"""

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

from config import settings
from sandbox import Sandbox, get_sandbox

from .aggregator import evaluate_question
from .models import Answer, AnswerStatus, InterviewReport, InterviewType, ProctoringSignals, QuestionResult
from .report import build_coding_report, build_theory_report

logger = logging.getLogger(__name__)


def normalize_answers(
    answers: Sequence[Answer | dict[str, Any] | str | None],
    interview_type: InterviewType,
    count: int,
) -> list[Answer]:
    """One resolved Answer per question; missing answers are tagged unanswered."""
    normalized: list[Answer] = []
    for index in range(count):
        raw = answers[index] if index < len(answers) else None
        if raw is None:
            normalized.append(Answer(status=AnswerStatus.UNANSWERED))
            continue
        answer = raw if isinstance(raw, Answer) else Answer.model_validate(raw)
        normalized.append(answer.resolve(interview_type))
    return normalized


async def evaluate(
    interview_type: InterviewType | str,
    topic: str | None,
    questions: Sequence[str],
    answers: Sequence[Answer | dict[str, Any] | str | None],
    duration_sec: int = 0,
    proctoring_signals: ProctoringSignals | dict[str, Any] | None = None,
    *,
    sandbox: Sandbox | None = None,
    max_concurrency: int | None = None,
) -> InterviewReport:
    """Evaluate every answer and build the interview report.

    Cancelling the awaiting task cancels every in-flight grading and kills
    its sandbox; no partial report is produced.
    """
    interview_type = InterviewType(interview_type)
    topic = topic or "default"
    if proctoring_signals is None:
        signals = ProctoringSignals()
    elif isinstance(proctoring_signals, ProctoringSignals):
        signals = proctoring_signals
    else:
        signals = ProctoringSignals.model_validate(proctoring_signals)

    question_texts = [q or f"Question {i + 1}" for i, q in enumerate(questions)]
    normalized = normalize_answers(answers, interview_type, len(question_texts))
    if interview_type == InterviewType.CODING and sandbox is None:
        sandbox = get_sandbox()

    semaphore = asyncio.Semaphore(max_concurrency or settings.max_concurrent_gradings)

    async def _grade(index: int) -> QuestionResult:
        async with semaphore:
            return await evaluate_question(
                interview_type, topic, index, question_texts[index], normalized[index], sandbox
            )

    # gather preserves argument order, so results line up with questions
    results = await asyncio.gather(*(_grade(i) for i in range(len(question_texts))))
    logger.info(
        "Evaluated %s interview on %r: %d question(s), %d unanswered",
        interview_type.value, topic, len(results),
        sum(1 for r in results if r.status == AnswerStatus.UNANSWERED),
    )

    if interview_type == InterviewType.CODING:
        return build_coding_report(interview_type, topic, duration_sec, results, signals)
    return build_theory_report(interview_type, topic, duration_sec, results, normalized, signals)


def evaluate_sync(*args: Any, **kwargs: Any) -> InterviewReport:
    """Blocking wrapper around :func:`evaluate` for callers without an event loop."""
    return asyncio.run(evaluate(*args, **kwargs))
