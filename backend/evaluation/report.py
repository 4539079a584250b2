"""Fold per-question results into the final interview report.

Theory overall score:

    0.40 * relevance + 0.18 * coverage + 0.12 * structure + 0.10 * grammar
  + 0.10 * communication + 0.06 * confidence + 0.04 * eyeContact

Coding overall score:

    0.60 * avgTestPassPercent + 0.25 * avgCorrectness + 0.15 * avgExecutionQuality

A theory session where fewer than 35% of answers are correct has relevance,
coverage, confidence and eye contact forced to 0 and is capped at 12.
"""

from collections.abc import Callable, Sequence

from .lexical import clamp, round_score
from .models import (
    Answer,
    AnswerStatus,
    InterviewReport,
    InterviewType,
    ProctoringSignals,
    QuestionResult,
    ScoreBreakdown,
    SpeechSummary,
)
from .proctoring import score_confidence, score_eye_contact

SESSION_CORRECTNESS_THRESHOLD = 0.35
GATED_OVERALL_CAP = 12
CODING_PASS_TARGET = 5

NO_STRENGTHS = "No strong areas identified in this attempt."


def average(results: Sequence[QuestionResult], metric: Callable[[QuestionResult], float]) -> int:
    """Rounded arithmetic mean; an empty sequence averages to 0."""
    return round_score(sum(metric(r) for r in results) / max(1, len(results)))


def completeness(results: Sequence[QuestionResult]) -> int:
    answered = sum(1 for r in results if r.status == AnswerStatus.ANSWERED)
    return round_score(clamp(answered / max(1, len(results)) * 100, 0, 100))


def unanswered_count(results: Sequence[QuestionResult]) -> int:
    return sum(1 for r in results if r.status == AnswerStatus.UNANSWERED)


def summarize_speech(answers: Sequence[Answer]) -> SpeechSummary:
    if not answers:
        return SpeechSummary()
    metrics = [a.speech_metrics for a in answers]
    return SpeechSummary(
        words_per_minute_avg=round_score(sum(m.words_per_minute for m in metrics) / len(metrics)),
        pause_duration_total_sec=round_score(sum(m.pause_duration_sec for m in metrics)),
        filler_words_total=sum(m.filler_words for m in metrics),
        clarity_avg=round_score(sum(m.clarity_score for m in metrics) / len(metrics)),
    )


def build_theory_report(
    interview_type: InterviewType,
    topic: str,
    duration_sec: int,
    results: Sequence[QuestionResult],
    answers: Sequence[Answer],
    signals: ProctoringSignals,
) -> InterviewReport:
    correct = sum(1 for r in results if r.is_correct)
    correctness_ratio = correct / len(results) if results else 0.0
    gated = correctness_ratio < SESSION_CORRECTNESS_THRESHOLD

    relevance = 0 if gated else average(results, lambda r: r.relevance)
    coverage = 0 if gated else average(results, lambda r: r.metrics.keyword_coverage)
    structure = average(results, lambda r: r.metrics.structure)
    grammar = average(results, lambda r: r.metrics.clarity)
    communication = average(results, lambda r: r.metrics.communication)
    confidence = 0 if gated else score_confidence(signals)
    eye_contact = 0 if gated else score_eye_contact(signals)

    weighted = round_score(
        relevance * 0.4
        + coverage * 0.18
        + structure * 0.12
        + grammar * 0.1
        + communication * 0.1
        + confidence * 0.06
        + eye_contact * 0.04
    )
    overall = min(weighted, GATED_OVERALL_CAP) if gated else weighted
    unanswered = unanswered_count(results)

    strengths = []
    if relevance >= 75:
        strengths.append("Strong semantic correctness against asked questions.")
    if coverage >= 70:
        strengths.append("Good concept coverage using relevant domain terms.")
    if structure >= 70:
        strengths.append("Answers are generally structured and coherent.")
    if communication >= 70:
        strengths.append("Clear delivery with controlled speech quality.")

    improvements = []
    if gated:
        improvements.append("CRITICAL: Most answers are incorrect or irrelevant to the actual questions.")
    if coverage < 60:
        improvements.append("CRITICAL: Concept coverage is low; include core technical terms and mechanisms.")
    if structure < 60:
        improvements.append("Improve answer structure using clear step-wise explanation.")
    if grammar < 60:
        improvements.append("Improve grammar and sentence clarity for professional communication.")
    if communication < 60:
        improvements.append("Reduce pauses/fillers and improve speaking clarity.")
    if unanswered > 0:
        improvements.append(f"⚠️ {unanswered} question(s) were unanswered.")

    if overall < 50:
        suggestions = (
            "Practice answering with direct semantic focus on what is asked.",
            "Build topic-wise keyword sheets and use them in mock responses.",
            "Use a strict 3-step response: concept, method, example.",
        )
    else:
        suggestions = (
            "Continue timed mocks and maintain semantic precision.",
            "Improve weak metrics shown in per-question feedback.",
        )

    if overall >= 75:
        summary = "Strong interview performance driven by correct, relevant and structured answers."
    elif overall >= 50:
        summary = "Moderate performance: some answers are correct, but consistency and depth need improvement."
    else:
        summary = "Low performance: many answers are incorrect/irrelevant or incomplete; focus on correctness first."

    return InterviewReport(
        interview_type=interview_type,
        topic=topic,
        duration_sec=duration_sec,
        overall_score=overall,
        breakdown=ScoreBreakdown(
            relevance=relevance,
            coverage=coverage,
            completeness=completeness(results),
            structure=structure,
            grammar=grammar,
            communication=communication,
            confidence=confidence,
            eye_contact=eye_contact,
        ),
        speech_metrics=summarize_speech(answers),
        summary=summary,
        strengths=tuple(strengths) or (NO_STRENGTHS,),
        improvements=tuple(improvements) or ("Improve semantic correctness and keyword coverage.",),
        suggestions=suggestions,
        unanswered_count=unanswered,
        question_breakdown=tuple(results),
    )


def build_coding_report(
    interview_type: InterviewType,
    topic: str,
    duration_sec: int,
    results: Sequence[QuestionResult],
    signals: ProctoringSignals,
) -> InterviewReport:
    relevance = average(results, lambda r: r.relevance)
    coverage = average(results, lambda r: r.coverage)
    structure = average(results, lambda r: r.metrics.structure)
    correctness = average(results, lambda r: r.correctness)
    test_pass = average(results, lambda r: r.test_pass_percent)
    execution_quality = average(results, lambda r: r.execution_quality)

    overall = round_score(test_pass * 0.6 + correctness * 0.25 + execution_quality * 0.15)
    passed = sum(1 for r in results if r.passed)
    unanswered = unanswered_count(results)

    strengths = []
    if test_pass >= 80:
        strengths.append("High test-case pass percentage across coding questions.")
    if correctness >= 75:
        strengths.append("Strong logical correctness in implemented solutions.")
    if execution_quality >= 90:
        strengths.append("Submissions executed without syntax/runtime failures.")

    improvements = []
    if passed < CODING_PASS_TARGET:
        improvements.append("CRITICAL: Most coding answers failed automated test cases.")
    if correctness < 60:
        improvements.append("CRITICAL: Solution logic does not match required problem behavior.")
    if coverage < 50:
        improvements.append("Missing algorithmic concepts and edge-case handling in explanations.")
    if unanswered > 0:
        improvements.append(f"⚠️ {unanswered} coding question(s) unanswered.")

    if overall >= 75:
        summary = "Strong coding interview performance based on test-case passes and logic correctness."
    else:
        summary = (
            "Coding performance needs improvement: automated test validation and "
            "execution reliability are mandatory."
        )

    return InterviewReport(
        interview_type=interview_type,
        topic=topic,
        duration_sec=duration_sec,
        overall_score=overall,
        breakdown=ScoreBreakdown(
            relevance=relevance,
            coverage=coverage,
            completeness=completeness(results),
            structure=structure,
            eye_contact=score_eye_contact(signals),
        ),
        summary=summary,
        strengths=tuple(strengths) or (NO_STRENGTHS,),
        improvements=tuple(improvements) or ("Improve test pass rate and logical correctness.",),
        suggestions=(
            "Write solve(...) with exact problem intent before optimization.",
            "Validate edge cases explicitly (empty input, duplicates, boundaries).",
            "Add concise complexity notes to strengthen technical communication.",
        ),
        unanswered_count=unanswered,
        question_breakdown=tuple(results),
    )
