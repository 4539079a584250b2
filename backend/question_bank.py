"""Question bank provider: 10 questions per (interview type, topic)."""

from types import MappingProxyType

from evaluation.lexical import extract_resume_keywords

MIN_QUESTIONS = 10

QUESTION_MAP = MappingProxyType({
    "skill": {
        "react": (
            "Explain virtual DOM and how React optimizes rendering.",
            "How would you prevent unnecessary re-renders in a large React app?",
            "When would you choose Context API vs external state management?",
            "How do hooks improve component design and reuse?",
            "How do you optimize bundle size in React applications?",
            "Explain React reconciliation and key usage in lists.",
            "How do you structure reusable component architecture?",
            "What are controlled vs uncontrolled components and tradeoffs?",
            "Explain useMemo and useCallback with practical examples.",
            "How would you design robust error boundaries in production?",
        ),
    },
    "coding": {
        "arrays": (
            "Write a function solve(nums) that returns the first non-repeating element in an integer array, or -1.",
            "Write solve(nums, target) to return the indices of two numbers that add up to target.",
            "Write solve(nums, k) to rotate an array to the right by k positions and return the rotated array.",
            "Write solve(nums) that returns a deduplicated array preserving first occurrence order.",
            "Write solve(nums) that returns the maximum subarray sum.",
            "Write solve(nums) that returns true if duplicates exist, else false.",
            "Write solve(intervals) that merges overlapping intervals and returns merged intervals.",
            "Write solve(str) that returns the length of the longest substring without repeating characters.",
            "Write solve(nums, k) that returns the kth largest element in nums.",
            "Write solve(nums) that returns the sorted array in ascending order.",
        ),
    },
    "hr": {
        "behavioral": (
            "Tell me about a time you resolved a team conflict.",
            "Describe a difficult deadline and how you handled it.",
            "Share a failure and what you learned from it.",
            "How do you communicate technical issues to non-technical stakeholders?",
            "Describe a situation where you had to prioritize multiple tasks.",
            "Tell me about a time you received tough feedback.",
            "How do you handle disagreements with leadership decisions?",
            "Describe a high-pressure situation and your response.",
            "How do you ensure accountability in team projects?",
            "What motivates you and how do you stay consistent?",
        ),
    },
    "comprehensive": {
        "intermediate": (
            "Explain one technical concept deeply and where you applied it.",
            "How do you debug complex production failures systematically?",
            "Describe how you improved performance of a system you built.",
            "Solve a medium coding problem and explain trade-offs.",
            "Explain your approach to handling edge cases in coding tasks.",
            "How would you optimize time and space complexity in your solution?",
            "Describe a behavioral challenge using STAR framework.",
            "Tell me about a conflict you resolved across teams.",
            "How do you communicate progress and blockers proactively?",
            "What will you improve in the next 30 days for interviews?",
        ),
    },
})

FALLBACK_QUESTIONS = (
    "Explain your approach to solving this interview problem.",
    "What trade-offs did you consider in your answer?",
    "How would you improve your solution under production constraints?",
    "Summarize your final recommendation clearly.",
    "How do you validate correctness and reliability?",
    "How do you handle edge cases?",
    "What assumptions did you make?",
    "How do you communicate this to non-technical stakeholders?",
    "What metrics would you track post-implementation?",
    "What would be your next iteration?",
)


def _resume_questions(keywords: list[str]) -> list[str]:
    return [
        f"Walk me through your experience with {keywords[0]} and its measurable impact.",
        f"Tell me about a challenge you solved while working on {keywords[1] if len(keywords) > 1 else 'a key project'}.",
        f"How did your work on {keywords[2] if len(keywords) > 2 else 'your recent projects'} improve outcomes for stakeholders?",
        "How do you prioritize responsibilities when deadlines overlap?",
        "Tell me about one achievement you are most proud of and why.",
        "How do you handle critical feedback from mentors or managers?",
        "Describe a scenario where you had to adapt quickly.",
        "How do your project experiences align with this role?",
        "What communication strategy do you use in cross-functional teams?",
        "What is your 6-month professional growth plan?",
    ]


def generate_questions(interview_type: str, topic: str, resume_text: str = "") -> list[str]:
    """Return the ordered question list for an interview.

    HR interviews with a usable resume get questions built around the
    resume's most frequent terms; otherwise the topic's list is used,
    falling back to the type's default list and then a generic set.
    """
    interview_type = getattr(interview_type, "value", interview_type)
    if interview_type == "hr" and len((resume_text or "").strip()) > 20:
        keywords = extract_resume_keywords(resume_text)
        if keywords:
            return _resume_questions(keywords)

    by_type = QUESTION_MAP.get(interview_type, {})
    selected = by_type.get(topic) or by_type.get("intermediate") or by_type.get("behavioral")
    if selected:
        return list(selected[:MIN_QUESTIONS])
    return list(FALLBACK_QUESTIONS)
