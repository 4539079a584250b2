"""Scoring for spoken/transcribed theory answers.

Per-question score for a correct answer:

    0.50 * semantic% + 0.20 * coverage + 0.12 * structure
  + 0.10 * grammar   + 0.08 * communication

An answer is correct only when semantic relevance >= 0.20 and keyword
coverage >= 20%. Anything else is capped at 15 so fluent but off-topic
answers cannot score well.
"""

import re
from types import MappingProxyType

from .lexical import clamp, keyword_hits, round_score, semantic_similarity, tokenize, word_count
from .models import Answer, AnswerStatus, InterviewType, QuestionMetrics, QuestionResult, SpeechMetrics

SEMANTIC_THRESHOLD = 0.2
COVERAGE_THRESHOLD = 20
INCORRECT_SCORE_CAP = 15

KEYWORD_BANK = MappingProxyType({
    "react": ("state", "props", "hooks", "component", "performance", "virtual dom"),
    "python": ("function", "list", "dictionary", "complexity", "exception", "module"),
    "java": ("class", "object", "inheritance", "interface", "collection", "thread"),
    "ml": ("model", "feature", "training", "overfitting", "evaluation", "dataset"),
    "sql": ("join", "index", "query", "normalization", "transaction", "constraint"),
    "javascript": ("closure", "promise", "async", "scope", "event loop", "prototype"),
    "nodejs": ("event loop", "middleware", "api", "stream", "async", "express"),
    "system-design": ("scalability", "latency", "cache", "availability", "load balancer", "database"),
    "arrays": ("iteration", "index", "complexity", "edge case", "memory", "array"),
    "linked-lists": ("node", "pointer", "traversal", "complexity", "insertion", "deletion"),
    "trees": ("traversal", "recursion", "height", "balanced", "node", "complexity"),
    "dp": ("subproblem", "memoization", "tabulation", "state", "transition", "optimal"),
    "sorting": ("comparison", "partition", "stability", "complexity", "pivot", "merge"),
    "recursion": ("base case", "stack", "call", "termination", "depth", "backtracking"),
    "behavioral": ("team", "challenge", "impact", "learning", "ownership", "result"),
    "situational": ("conflict", "decision", "priority", "stakeholder", "result", "adapt"),
    "resume": ("project", "impact", "responsibility", "achievement", "metric", "role"),
    "culture": ("value", "collaboration", "growth", "ethics", "adaptability", "communication"),
    "default": ("problem", "approach", "example", "result", "tradeoff", "clarity"),
})

DISCOURSE_MARKERS = (
    "first", "then", "because", "for example", "therefore", "finally", "however", "additionally",
)

_STRUCTURE_STEPS = {0: 15, 1: 30, 2: 50, 3: 65}
_SENTENCE_END = re.compile(r"[.!?]+")


def topic_keywords(topic: str | None) -> tuple[str, ...]:
    return KEYWORD_BANK.get(topic or "default", KEYWORD_BANK["default"])


def required_concepts(topic: str | None, question: str) -> list[str]:
    """Up to 6 bank terms for the topic plus the question's first 8 tokens, deduplicated in order."""
    terms = [*topic_keywords(topic)[:6], *tokenize(question)[:8]]
    return list(dict.fromkeys(terms))


def score_structure(transcript: str) -> int:
    text = (transcript or "").lower()
    if not text:
        return 0
    hits = sum(1 for marker in DISCOURSE_MARKERS if marker in text)
    if hits in _STRUCTURE_STEPS:
        return _STRUCTURE_STEPS[hits]
    return min(90, 65 + hits * 5)


def score_grammar_clarity(transcript: str) -> int:
    if not transcript:
        return 0
    punctuation = sum(1 for ch in transcript if ch in ".,;:!?")
    sentences = len([s for s in _SENTENCE_END.split(transcript) if s])

    score = 40.0
    if punctuation > 0 and sentences > 0:
        score += min(25, (punctuation / sentences) * 8)
    if sentences > 2:
        score += 15
    if sentences > 4:
        score += 10
    return round_score(min(95, score))


def score_communication(metrics: SpeechMetrics) -> int:
    score = (
        metrics.clarity_score * 0.6
        + clamp(100 - metrics.filler_words * 12, 0, 100) * 0.25
        + clamp(100 - metrics.pause_duration_sec * 1.5, 0, 100) * 0.15
    )
    return round_score(clamp(score, 0, 100))


def score_theory_answer(
    question: str,
    answer: Answer | str,
    topic: str | None = "default",
    question_number: int = 1,
) -> QuestionResult:
    """Score a single theory answer against its question."""
    if isinstance(answer, str):
        answer = Answer(transcript=answer)
    if answer.status is None:
        answer = answer.resolve(InterviewType.SKILL)

    transcript = answer.transcript.strip()
    unanswered = answer.is_unanswered
    speech = answer.speech_metrics

    semantic = 0.0 if unanswered else semantic_similarity(transcript, question)
    semantic_percent = round_score(clamp(semantic * 100, 0, 100))

    concepts = required_concepts(topic, question)
    coverage = 0
    if concepts and not unanswered:
        coverage = round_score(clamp(keyword_hits(transcript, concepts) / len(concepts) * 100, 0, 100))

    structure = 0 if unanswered else score_structure(transcript)
    grammar = 0 if unanswered else score_grammar_clarity(transcript)
    communication = 0 if unanswered else score_communication(speech)

    is_correct = not unanswered and semantic >= SEMANTIC_THRESHOLD and coverage >= COVERAGE_THRESHOLD
    if is_correct:
        score = round_score(
            semantic_percent * 0.5
            + coverage * 0.2
            + structure * 0.12
            + grammar * 0.1
            + communication * 0.08
        )
    else:
        score = round_score(clamp(semantic_percent * 0.1 + coverage * 0.05, 0, INCORRECT_SCORE_CAP))

    feedback: list[str] = []
    improvements: list[str] = []
    if unanswered:
        feedback.append("Incorrect: unanswered (timeout or empty response).")
        improvements.append("Provide a complete response within the question timer.")
    elif not is_correct:
        feedback.append("Incorrect: response is not sufficiently relevant to the asked question.")
        if semantic < SEMANTIC_THRESHOLD:
            improvements.append("Explain the exact concept asked before adding extra details.")
        if coverage < COVERAGE_THRESHOLD:
            improvements.append(f"Include core concepts like: {', '.join(concepts[:5])}.")
        if structure < 50:
            improvements.append("Use a clear structure: definition, approach, and practical example.")
    else:
        if semantic_percent >= 75:
            feedback.append("Correct: strong semantic alignment with the question.")
        if coverage >= 70:
            feedback.append("Correct: key concepts are covered adequately.")
        if structure < 60:
            improvements.append("Improve structure using step-wise explanation.")
        if communication < 60:
            improvements.append("Reduce filler words and improve clarity of delivery.")
        if grammar < 60:
            improvements.append("Improve sentence clarity and grammar quality.")

    if not feedback:
        feedback.append("Correct: relevant answer; add depth and core terms to score higher.")

    return QuestionResult(
        question_number=question_number,
        question=question,
        answer=transcript if not unanswered else "[No answer provided]",
        status=AnswerStatus.UNANSWERED if unanswered else AnswerStatus.ANSWERED,
        score=score,
        word_count=0 if unanswered else word_count(transcript),
        metrics=QuestionMetrics(
            keyword_coverage=coverage,
            structure=structure,
            clarity=grammar,
            communication=communication,
            speech_clarity=round_score(speech.clarity_score),
            filler_words=speech.filler_words,
            words_per_minute=round_score(speech.words_per_minute),
        ),
        feedback=tuple(feedback),
        improvements=tuple(improvements),
        relevance=semantic_percent,
        coverage=coverage,
        is_correct=is_correct,
        passed=is_correct,
    )
