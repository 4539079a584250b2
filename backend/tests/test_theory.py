"""Tests for theory answer scoring."""

import pytest

from conftest import VDOM_ANSWER, VDOM_QUESTION
from evaluation import Answer, AnswerStatus, SpeechMetrics, score_theory_answer
from evaluation.theory import (
    INCORRECT_SCORE_CAP,
    required_concepts,
    score_communication,
    score_grammar_clarity,
    score_structure,
)

# ---------------------------------------------------------------------------
# Sub-scores
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "text, expected",
    [
        ("", 0),
        ("plain words only", 15),
        ("first we look", 30),
        ("first, because it works", 50),
        ("first, then, because", 65),
        ("first then because finally", 85),
        ("first then because finally however", 90),
        ("first then because finally however therefore additionally", 90),
    ],
)
def test_structure_step_function(text, expected):
    assert score_structure(text) == expected


def test_structure_matches_multi_word_marker():
    assert score_structure("For example, caching helps") == 30


def test_grammar_base_and_sentence_bonuses():
    assert score_grammar_clarity("") == 0
    assert score_grammar_clarity("Hello world") == 40
    # 3 punctuation marks / 3 sentences -> +8, >2 sentences -> +15
    assert score_grammar_clarity("One. Two. Three.") == 63
    # 5 sentences -> +8 +15 +10
    assert score_grammar_clarity("A. B. C. D. E.") == 73


def test_grammar_is_capped():
    text = "a, b, c, d, e, f; g: h. " * 6
    assert score_grammar_clarity(text) <= 95


def test_communication_blend():
    assert score_communication(SpeechMetrics(clarity_score=80)) == 88
    assert score_communication(SpeechMetrics(clarity_score=100, filler_words=10)) == 75
    assert score_communication(SpeechMetrics(clarity_score=0, filler_words=20, pause_duration_sec=300)) == 0


def test_required_concepts_merge_bank_and_question_tokens():
    concepts = required_concepts("react", "How do hooks help component reuse?")
    assert concepts[:6] == ["state", "props", "hooks", "component", "performance", "virtual dom"]
    # "hooks" and "component" are already in the bank and not repeated
    assert concepts[6:] == ["how", "help", "reuse"]


def test_required_concepts_unknown_topic_uses_default_bank():
    concepts = required_concepts("underwater-basket-weaving", "Why?")
    assert concepts == ["problem", "approach", "example", "result", "tradeoff", "clarity", "why"]


# ---------------------------------------------------------------------------
# Whole-answer scoring
# ---------------------------------------------------------------------------


def test_empty_transcript_is_unanswered_with_zero_score():
    result = score_theory_answer("Explain closures", Answer(transcript=""))
    assert result.status == AnswerStatus.UNANSWERED
    assert result.score == 0
    assert result.feedback == ("Incorrect: unanswered (timeout or empty response).",)
    assert result.answer == "[No answer provided]"


def test_timeout_marker_is_unanswered():
    result = score_theory_answer("Explain closures", "[UNANSWERED - TIMEOUT]")
    assert result.status == AnswerStatus.UNANSWERED
    assert result.score == 0


def test_explicit_unanswered_tag_wins_over_transcript():
    answer = Answer(transcript="Closures capture variables from scope.", status=AnswerStatus.UNANSWERED)
    result = score_theory_answer("Explain closures", answer)
    assert result.status == AnswerStatus.UNANSWERED
    assert result.score == 0


def test_off_topic_answer_is_capped_even_when_fluent():
    answer = Answer(
        transcript="I like football and cooking recipes on weekends.",
        speech_metrics=SpeechMetrics(words_per_minute=120, clarity_score=95),
    )
    result = score_theory_answer("Explain React virtual DOM and reconciliation.", answer, "react")
    assert result.status == AnswerStatus.ANSWERED
    assert not result.is_correct
    assert result.score <= INCORRECT_SCORE_CAP
    assert result.relevance == 0
    assert result.feedback[0].startswith("Incorrect")
    assert "Explain the exact concept asked before adding extra details." in result.improvements
    assert any(item.startswith("Include core concepts like: state, props") for item in result.improvements)


def test_relevant_structured_answer_is_correct():
    answer = Answer(
        transcript=VDOM_ANSWER,
        speech_metrics=SpeechMetrics(words_per_minute=130, clarity_score=85, filler_words=1, pause_duration_sec=4),
    )
    result = score_theory_answer(VDOM_QUESTION, answer, "react", question_number=3)
    assert result.is_correct
    assert result.question_number == 3
    assert result.relevance == 71  # 5 of 7 question tokens
    assert result.coverage == 69  # 9 of 13 required concepts
    assert result.metrics.structure == 90
    assert result.score > INCORRECT_SCORE_CAP
    assert not any(item.startswith("Incorrect") for item in result.feedback)
    assert result.word_count == len(VDOM_ANSWER.split())


def test_correct_answer_score_uses_weighted_blend():
    answer = Answer(transcript=VDOM_ANSWER, speech_metrics=SpeechMetrics(clarity_score=85))
    result = score_theory_answer(VDOM_QUESTION, answer, "react")
    m = result.metrics
    expected = (
        result.relevance * 0.5 + m.keyword_coverage * 0.2 + m.structure * 0.12
        + m.clarity * 0.1 + m.communication * 0.08
    )
    assert result.score == int(expected + 0.5)


def test_camel_case_answer_payload():
    answer = Answer.model_validate({
        "transcript": VDOM_ANSWER,
        "speechMetrics": {"wordsPerMinute": 110, "pauseDurationSec": 2, "fillerWords": 0, "clarityScore": 90},
    })
    result = score_theory_answer(VDOM_QUESTION, answer, "react")
    assert result.metrics.speech_clarity == 90
    assert result.metrics.words_per_minute == 110


def test_speech_metrics_bounds_are_enforced():
    with pytest.raises(ValueError):
        SpeechMetrics(words_per_minute=500)
