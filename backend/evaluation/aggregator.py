"""Per-question dispatch: one uniform QuestionResult whatever the interview type."""

from sandbox import Sandbox

from .coding import grade_code
from .models import Answer, CodeAnswer, InterviewType, QuestionResult
from .theory import score_theory_answer


async def evaluate_question(
    interview_type: InterviewType,
    topic: str,
    index: int,
    question: str,
    answer: Answer,
    sandbox: Sandbox | None = None,
) -> QuestionResult:
    """Score the answer at ``index``; coding rounds go through the sandbox, everything else is theory."""
    answer = answer.resolve(interview_type)

    if interview_type == InterviewType.CODING:
        code_answer = answer.code_answer or CodeAnswer()
        return await grade_code(
            "" if answer.is_unanswered else code_answer.code,
            code_answer.language,
            index,
            question,
            code_answer.complexity_note,
            question_number=index + 1,
            sandbox=sandbox,
        )

    return score_theory_answer(question, answer, topic, question_number=index + 1)
