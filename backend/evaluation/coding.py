"""Grading for submitted code answers.

Score = 0.65 * TestPassPercent
      + 0.25 * LogicalCorrectness
      + 0.10 * ExecutionQuality

LogicalCorrectness = 0.7 * semantic% + 0.3 * keywordCoverage%, computed on the
code plus the candidate's complexity note. When no hidden test passes, or
the submission is barely related to the question (semantic < 0.12), the
score is capped at 12.
"""

import logging
from dataclasses import dataclass

from sandbox import ENTRY_POINT, Sandbox, SandboxError, SandboxRun, SandboxTimeout, get_sandbox

from .lexical import clamp, keyword_ratio, round_score, semantic_similarity, word_count
from .models import AnswerStatus, Language, QuestionMetrics, QuestionResult, coerce_language, is_unanswered_text
from .validators import Validator, get_validator, required_keywords_for

logger = logging.getLogger(__name__)

SUPPORTED_LANGUAGE = Language.PYTHON
SEMANTIC_GATE = 0.12
GATED_SCORE_CAP = 12


@dataclass
class ExecutionOutcome:
    """Normalised view of a sandbox run, independent of the backend."""

    passed_count: int = 0
    total_tests: int = 0
    error_free: bool = False
    syntax_error: bool = False
    message: str = ""

    @property
    def pass_rate(self) -> float:
        return self.passed_count / self.total_tests if self.total_tests else 0.0

    @property
    def passed(self) -> bool:
        return self.total_tests > 0 and self.passed_count == self.total_tests


async def execute_submission(code: str, validator: Validator | None, sandbox: Sandbox) -> ExecutionOutcome:
    """Run code against the validator's hidden tests; sandbox faults become failed outcomes."""
    if validator is None:
        return ExecutionOutcome(message="Coding validator missing for this question.")

    total = len(validator.tests)
    tests = [{"args": list(t.args), "expected": t.expected} for t in validator.tests]
    try:
        run: SandboxRun = await sandbox.run(code, ENTRY_POINT, tests)
    except SandboxTimeout as e:
        return ExecutionOutcome(total_tests=total, syntax_error=True, message=f"Syntax/runtime error: {e}")
    except SandboxError as e:
        logger.error("Sandbox failure on question %d: %s", validator.question_index, e)
        return ExecutionOutcome(total_tests=total, syntax_error=True, message=f"Syntax/runtime error: {e}")

    if run.timed_out:
        logger.info("Submission for question %d timed out: %s", validator.question_index, run.error)
        return ExecutionOutcome(total_tests=total, syntax_error=True, message=f"Syntax/runtime error: {run.error}")

    if not run.compiled:
        logger.info("Submission for question %d did not compile: %s", validator.question_index, run.error)
        return ExecutionOutcome(total_tests=total, syntax_error=True, message=f"Syntax/runtime error: {run.error}")

    if run.fatal:
        logger.info("Module body of question %d submission raised: %s", validator.question_index, run.error)
        return ExecutionOutcome(
            total_tests=total,
            syntax_error=True,
            message=f"Syntax/runtime error: {run.error} (raised while loading the module)",
        )

    if not run.entry_point_found:
        return ExecutionOutcome(
            total_tests=total,
            message=f"Define a function named {ENTRY_POINT}(...) in your code.",
        )

    passed = run.passed_count
    return ExecutionOutcome(
        passed_count=passed,
        total_tests=total,
        error_free=True,
        message=f"All {total} test cases passed." if passed == total else f"{passed}/{total} test cases passed.",
    )


def _zero_result(
    question_number: int,
    question_text: str,
    code: str,
    status: AnswerStatus,
    feedback: str,
    improvement: str,
) -> QuestionResult:
    return QuestionResult(
        question_number=question_number,
        question=question_text,
        answer=code if status == AnswerStatus.ANSWERED else "[No code provided]",
        status=status,
        score=0,
        word_count=word_count(code) if status == AnswerStatus.ANSWERED else 0,
        feedback=(feedback,),
        improvements=(improvement,),
    )


async def grade_code(
    code: str,
    language: Language | str,
    question_index: int,
    question_text: str,
    complexity_note: str = "",
    *,
    question_number: int | None = None,
    sandbox: Sandbox | None = None,
) -> QuestionResult:
    """Grade one code submission against the hidden tests for ``question_index``."""
    number = question_number if question_number is not None else question_index + 1
    code = code or ""
    language = coerce_language(language)

    if is_unanswered_text(code):
        return _zero_result(
            number, question_text, code, AnswerStatus.UNANSWERED,
            "Incorrect: no valid code submitted.",
            f"Submit a working {ENTRY_POINT}(...) function for this question.",
        )

    if language != SUPPORTED_LANGUAGE:
        return _zero_result(
            number, question_text, code, AnswerStatus.ANSWERED,
            f"Incorrect: current runtime validates only Python `{ENTRY_POINT}(...)` submissions.",
            "Switch language to Python and submit executable code to run test cases.",
        )

    validator = get_validator(question_index)
    execution = await execute_submission(code, validator, sandbox or get_sandbox())

    explained = f"{code} {complexity_note or ''}"
    semantic = semantic_similarity(explained, question_text)
    ratio = keyword_ratio(explained, required_keywords_for(question_index))

    test_pass_percent = round_score(clamp(execution.pass_rate * 100, 0, 100))
    logical = round_score(clamp(semantic * 70 + ratio * 30, 0, 100))
    execution_quality = 100 if execution.error_free else 0

    if test_pass_percent == 0 or semantic < SEMANTIC_GATE:
        syntax_error = execution.syntax_error
        structure = 0 if syntax_error else round_score(clamp(ratio * 40, 0, 40))
        grammar = 0 if syntax_error else 20
        return QuestionResult(
            question_number=number,
            question=question_text,
            answer=code,
            status=AnswerStatus.ANSWERED,
            score=0 if syntax_error else min(GATED_SCORE_CAP, round_score(test_pass_percent * 0.2 + logical * 0.1)),
            word_count=word_count(code),
            metrics=QuestionMetrics(structure=structure, clarity=grammar),
            feedback=(f"Incorrect: {execution.message}",),
            improvements=(
                "Fix logic so test cases pass for expected outputs.",
                f"Handle edge cases and ensure `{ENTRY_POINT}(...)` returns correct values.",
            ),
            test_pass_percent=test_pass_percent,
            execution_quality=execution_quality,
            passed_count=execution.passed_count,
            total_tests=execution.total_tests,
        )

    relevance = round_score(clamp(semantic * 100, 0, 100))
    coverage = round_score(clamp(ratio * 100, 0, 100))
    structure = round_score(clamp(55 + ratio * 35, 0, 95))
    correctness = round_score(test_pass_percent * 0.7 + logical * 0.3)
    score = round_score(test_pass_percent * 0.65 + logical * 0.25 + execution_quality * 0.1)

    return QuestionResult(
        question_number=number,
        question=question_text,
        answer=code,
        status=AnswerStatus.ANSWERED,
        score=score,
        word_count=word_count(code),
        metrics=QuestionMetrics(keyword_coverage=coverage, structure=structure),
        feedback=(f"Correct: {execution.message}",),
        improvements=("Add concise complexity and edge-case notes with algorithm keywords.",) if coverage < 50 else (),
        relevance=relevance,
        coverage=coverage,
        correctness=correctness,
        test_pass_percent=test_pass_percent,
        execution_quality=execution_quality,
        is_correct=True,
        passed=True,
        passed_count=execution.passed_count,
        total_tests=execution.total_tests,
    )
