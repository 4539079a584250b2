"""Shared fixtures for evaluation engine and API tests."""

import asyncio

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from main import app
from sandbox import SandboxRun

REACT_QUESTIONS = [
    "Explain React virtual DOM and reconciliation.",
    "How do hooks help component reuse?",
]

DEDUP_QUESTION = "Write solve(nums) that returns a deduplicated array preserving first occurrence order."

DEDUP_CODE = """def solve(nums):
    seen = set()
    unique = []
    for n in nums:
        if n not in seen:
            seen.add(n)
            unique.append(n)
    return unique
"""

DEDUP_NOTE = "Keeps the first occurrence of each value using a set so unique values stay in order. O(n) time."

VDOM_QUESTION = "Explain virtual DOM and how React optimizes rendering."
VDOM_ANSWER = (
    "First, the virtual DOM is a lightweight copy of the real DOM. React compares the new virtual "
    "tree with the previous one, because diffing is cheap. Then it optimizes rendering by batching "
    "only the changed nodes into real DOM updates. For example, a state change in one component "
    "re-renders just that component. Finally, this improves performance."
)


class FakeSandbox:
    """Sandbox double returning a canned run (or raising) and recording calls."""

    def __init__(self, run: SandboxRun | None = None, exc: Exception | None = None, delay: float = 0.0):
        self.result = run or SandboxRun(compiled=True, entry_point_found=True, results=[True, True, True])
        self.exc = exc
        self.delay = delay
        self.calls: list[dict] = []

    async def run(self, code, entry_point, tests, time_budget=None):
        self.calls.append({"code": code, "entry_point": entry_point, "tests": tests})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.exc is not None:
            raise self.exc
        return self.result


@pytest.fixture
def fake_sandbox():
    return FakeSandbox()


@pytest_asyncio.fixture
async def client():
    """Async HTTP client against the FastAPI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
