"""Tests for code-answer grading."""

import pytest

from conftest import DEDUP_CODE, DEDUP_NOTE, DEDUP_QUESTION, FakeSandbox
from evaluation import AnswerStatus, Language, grade_code
from evaluation.coding import GATED_SCORE_CAP, execute_submission
from evaluation.validators import get_validator
from sandbox import LocalSandbox, SandboxRun, SandboxTimeout, SandboxUnavailable


@pytest.fixture
def local():
    return LocalSandbox(time_budget=1.0, grace=3.0)


@pytest.mark.asyncio
async def test_empty_code_is_unanswered(fake_sandbox):
    result = await grade_code("   ", Language.PYTHON, 3, DEDUP_QUESTION, sandbox=fake_sandbox)
    assert result.status == AnswerStatus.UNANSWERED
    assert result.score == 0
    assert result.feedback == ("Incorrect: no valid code submitted.",)
    assert result.answer == "[No code provided]"
    assert fake_sandbox.calls == []


@pytest.mark.asyncio
async def test_unsupported_language_scores_zero_without_running(fake_sandbox):
    result = await grade_code("function solve(a) { return a; }", "javascript", 3, DEDUP_QUESTION, sandbox=fake_sandbox)
    assert result.status == AnswerStatus.ANSWERED
    assert result.score == 0
    assert not result.passed
    assert "validates only Python" in result.feedback[0]
    assert fake_sandbox.calls == []


@pytest.mark.asyncio
async def test_correct_dedup_solution_end_to_end(local):
    result = await grade_code(DEDUP_CODE, Language.PYTHON, 3, DEDUP_QUESTION, DEDUP_NOTE, sandbox=local)
    assert result.test_pass_percent == 100
    assert result.passed_count == 3
    assert result.total_tests == 3
    assert result.relevance == 50
    assert result.coverage == 100
    assert result.correctness == 90
    assert result.execution_quality == 100
    assert result.score == 91
    assert result.passed
    assert result.is_correct
    assert result.feedback == ("Correct: All 3 test cases passed.",)
    assert result.improvements == ()
    assert result.question_number == 4


@pytest.mark.asyncio
async def test_all_tests_failing_is_capped():
    sandbox = FakeSandbox(SandboxRun(compiled=True, entry_point_found=True, results=[False, False, False]))
    result = await grade_code(DEDUP_CODE, Language.PYTHON, 3, DEDUP_QUESTION, DEDUP_NOTE, sandbox=sandbox)
    assert result.score <= GATED_SCORE_CAP
    assert result.score == 7  # 0.1 * logical(65), rounded
    assert not result.passed
    assert result.feedback == ("Incorrect: 0/3 test cases passed.",)
    assert result.metrics.structure == 40
    assert result.metrics.clarity == 20
    assert len(sandbox.calls) == 1
    assert sandbox.calls[0]["entry_point"] == "solve"


@pytest.mark.asyncio
async def test_syntax_error_scores_zero(local):
    result = await grade_code("def solve(nums)\n    return nums", Language.PYTHON, 3, DEDUP_QUESTION, DEDUP_NOTE, sandbox=local)
    assert result.score == 0
    assert result.execution_quality == 0
    assert result.feedback[0].startswith("Incorrect: Syntax/runtime error: SyntaxError")
    assert result.metrics.structure == 0
    assert result.metrics.clarity == 0


@pytest.mark.asyncio
async def test_sandbox_timeout_scores_zero():
    sandbox = FakeSandbox(exc=SandboxTimeout("execution exceeded the 1.2s time budget"))
    result = await grade_code(DEDUP_CODE, Language.PYTHON, 3, DEDUP_QUESTION, DEDUP_NOTE, sandbox=sandbox)
    assert result.score == 0
    assert not result.passed
    assert "time budget" in result.feedback[0]


@pytest.mark.asyncio
async def test_sandbox_outage_scores_zero_instead_of_raising():
    sandbox = FakeSandbox(exc=SandboxUnavailable("modal down"))
    result = await grade_code(DEDUP_CODE, Language.PYTHON, 3, DEDUP_QUESTION, DEDUP_NOTE, sandbox=sandbox)
    assert result.score == 0
    assert result.status == AnswerStatus.ANSWERED


@pytest.mark.asyncio
async def test_missing_validator(fake_sandbox):
    result = await grade_code(DEDUP_CODE, Language.PYTHON, 42, DEDUP_QUESTION, DEDUP_NOTE, sandbox=fake_sandbox)
    assert result.feedback == ("Incorrect: Coding validator missing for this question.",)
    assert result.total_tests == 0
    assert result.score == 4  # 0.1 * logical(35)
    assert not result.passed
    assert fake_sandbox.calls == []


@pytest.mark.asyncio
async def test_partial_pass_blends_scores():
    sandbox = FakeSandbox(SandboxRun(compiled=True, entry_point_found=True, results=[True, False, True]))
    result = await grade_code(DEDUP_CODE, Language.PYTHON, 3, DEDUP_QUESTION, DEDUP_NOTE, sandbox=sandbox)
    assert result.test_pass_percent == 67
    assert result.score == 70  # 0.65 * 67 + 0.25 * 65 + 0.1 * 100
    assert result.feedback == ("Correct: 2/3 test cases passed.",)


@pytest.mark.asyncio
async def test_low_relevance_submission_is_gated_even_when_tests_pass(local):
    code = "def solve(a):\n    return list(dict.fromkeys(a))\n"
    result = await grade_code(code, Language.PYTHON, 3, DEDUP_QUESTION, sandbox=local)
    assert result.test_pass_percent == 100
    assert result.score == GATED_SCORE_CAP
    assert not result.passed


@pytest.mark.asyncio
async def test_missing_entry_point_message():
    sandbox = FakeSandbox(SandboxRun(compiled=True, entry_point_found=False))
    outcome = await execute_submission("def other(): pass", get_validator(3), sandbox)
    assert outcome.message == "Define a function named solve(...) in your code."
    assert outcome.passed_count == 0
    assert not outcome.syntax_error


@pytest.mark.asyncio
async def test_module_body_error_is_reported_as_load_failure():
    sandbox = FakeSandbox(SandboxRun(compiled=True, error="ImportError: import of 'os' is not allowed"))
    outcome = await execute_submission("import os", get_validator(3), sandbox)
    assert outcome.syntax_error
    assert outcome.message == "Syntax/runtime error: ImportError: import of 'os' is not allowed (raised while loading the module)"


@pytest.mark.asyncio
async def test_compile_failure_is_not_reported_as_load_failure():
    sandbox = FakeSandbox(SandboxRun(compiled=False, error="SyntaxError: invalid syntax"))
    outcome = await execute_submission("def solve(:", get_validator(3), sandbox)
    assert outcome.syntax_error
    assert outcome.message == "Syntax/runtime error: SyntaxError: invalid syntax"


@pytest.mark.asyncio
async def test_timeout_during_tests_keeps_budget_message():
    run = SandboxRun(compiled=True, entry_point_found=True, error="execution exceeded the 1.2s time budget", timed_out=True)
    outcome = await execute_submission(DEDUP_CODE, get_validator(3), FakeSandbox(run))
    assert outcome.message == "Syntax/runtime error: execution exceeded the 1.2s time budget"
    assert outcome.passed_count == 0


@pytest.mark.asyncio
async def test_language_name_is_case_insensitive(fake_sandbox):
    result = await grade_code(DEDUP_CODE, " Python ", 3, DEDUP_QUESTION, DEDUP_NOTE, sandbox=fake_sandbox)
    assert len(fake_sandbox.calls) == 1
    assert result.test_pass_percent == 100
