"""Isolated, time-boxed execution of submitted code against hidden tests.

Every submission gets a brand-new execution context that is torn down after
the run; nothing is reused between questions or candidates.

- ``LocalSandbox``: a fresh child interpreter (``python -I -S -B``) with an
  empty environment, a throw-away working directory and POSIX resource
  limits. Candidate code runs with a whitelist of builtins (no ``open``,
  ``eval``, ``exec``, ``compile`` ...) and may only import allowlisted names
  from a handful of stdlib modules. Source that touches private or dunder
  attributes, or frame and code introspection attributes, is rejected before
  it is compiled. The child enforces the time budget itself with
  ``ITIMER_REAL``; the parent kills it outright after budget + grace.
- ``ModalSandbox``: the same runner script inside a fresh ``modal.Sandbox``
  with networking blocked, terminated as soon as the run finishes.

The runner tags its report line with a per-run nonce; untagged output is
never read as a result.

Both return a :class:`SandboxRun`; infrastructure faults raise
:class:`SandboxError` subclasses, which the grader turns into zero scores.
"""

import asyncio
import json
import logging
import math
import resource
import secrets
import sys
import tempfile
from dataclasses import dataclass, field
from typing import Any, Protocol

import modal

from config import settings

logger = logging.getLogger(__name__)

ENTRY_POINT = "solve"


class SandboxError(Exception):
    """The sandbox could not produce a result for a submission."""


class SandboxTimeout(SandboxError):
    """The submission exceeded its wall-clock budget and was killed."""


class SandboxUnavailable(SandboxError):
    """The execution backend itself failed (could not start, crashed, ...)."""


@dataclass
class SandboxRun:
    """Outcome of one submission run.

    ``results`` holds one bool per hidden test, in order. ``error`` is set when
    the code failed to compile or its module body raised; ``timed_out`` when
    the child's own budget fired.
    """

    compiled: bool = False
    entry_point_found: bool = False
    results: list[bool] = field(default_factory=list)
    error: str | None = None
    timed_out: bool = False

    @property
    def fatal(self) -> bool:
        return self.timed_out or self.error is not None

    @property
    def passed_count(self) -> int:
        return sum(self.results)


class Sandbox(Protocol):
    async def run(
        self,
        code: str,
        entry_point: str,
        tests: list[dict[str, Any]],
        time_budget: float | None = None,
    ) -> SandboxRun: ...


# ---------------------------------------------------------------------------
# Runner script (executed inside the child / remote interpreter)
# ---------------------------------------------------------------------------

_RUNNER_TEMPLATE = '''
import ast
import json
import os
import signal
import sys
import types

payload = json.loads(__PAYLOAD__)
nonce = payload.pop("nonce")

SAFE_BUILTINS = (
    "abs", "all", "any", "bool", "dict", "divmod", "enumerate", "filter", "float",
    "frozenset", "hash", "int", "isinstance", "issubclass", "iter", "len", "list",
    "map", "max", "min", "next", "object", "ord", "chr", "pow", "print", "range",
    "repr", "reversed", "round", "set", "slice", "sorted", "str", "sum", "tuple",
    "zip", "bin", "hex", "oct", "format", "callable",
    "staticmethod", "classmethod", "property", "super", "type", "NotImplemented",
    "None", "True", "False", "__build_class__", "Exception", "ArithmeticError",
    "AssertionError", "AttributeError", "ImportError", "IndexError", "KeyError",
    "LookupError", "NotImplementedError", "OverflowError", "RecursionError",
    "RuntimeError", "StopIteration", "TypeError", "ValueError", "ZeroDivisionError",
)
# module -> importable names (None: every public name of a C module)
MODULE_EXPORTS = {
    "bisect": ("bisect", "bisect_left", "bisect_right", "insort", "insort_left", "insort_right"),
    "collections": ("ChainMap", "Counter", "OrderedDict", "defaultdict", "deque", "namedtuple"),
    "functools": ("cache", "cmp_to_key", "lru_cache", "partial", "reduce"),
    "heapq": ("heapify", "heappop", "heappush", "heappushpop", "heapreplace", "merge", "nlargest", "nsmallest"),
    "itertools": None,
    "math": None,
    "typing": (
        "Any", "Callable", "DefaultDict", "Deque", "Dict", "Iterable", "Iterator",
        "List", "Optional", "Set", "Tuple", "Union",
    ),
}
SAFE_DUNDERS = frozenset({
    "__init__", "__repr__", "__str__", "__eq__", "__ne__", "__lt__", "__le__",
    "__gt__", "__ge__", "__hash__", "__len__", "__iter__", "__next__",
    "__contains__", "__getitem__", "__setitem__", "__delitem__", "__call__", "__name__",
})
# attributes that lead from a value back to frames, code or globals
BLOCKED_ATTRS = frozenset({
    "gi_frame", "gi_code", "cr_frame", "cr_code", "ag_frame", "ag_code",
    "f_back", "f_globals", "f_locals", "f_builtins", "f_code", "tb_frame", "tb_next",
})

# Executed in an empty namespace so the guards' globals hold nothing usable.
GUARDS_SOURCE = """
def make_guards(modules, real_getattr, blocked, str_type, type_of, import_error, attribute_error):
    def is_blocked(name):
        return type_of(name) is not str_type or name.startswith("_") or name in blocked

    def guarded_import(name, globals=None, locals=None, fromlist=(), level=0):
        if type_of(name) is not str_type or level != 0 or name not in modules:
            raise import_error("import of %r is not allowed" % (name,))
        return modules[name]

    def guarded_getattr(obj, name, *default):
        if is_blocked(name):
            raise attribute_error("access to %r is not allowed" % (name,))
        return real_getattr(obj, name, *default)

    def guarded_hasattr(obj, name):
        if is_blocked(name):
            return False
        try:
            real_getattr(obj, name)
        except attribute_error:
            return False
        return True

    return guarded_import, guarded_getattr, guarded_hasattr
"""


class BudgetExceeded(BaseException):
    pass


class SourceRejected(Exception):
    pass


def on_alarm(signum, frame):
    raise BudgetExceeded()


def check_source(tree):
    for node in ast.walk(tree):
        if isinstance(node, ast.Attribute):
            name = node.attr
            if (name.startswith("_") and name not in SAFE_DUNDERS) or name in BLOCKED_ATTRS:
                raise SourceRejected("use of %r is not allowed" % name)
        elif isinstance(node, ast.Name):
            if node.id.startswith("__") and node.id not in SAFE_DUNDERS:
                raise SourceRejected("use of %r is not allowed" % node.id)
        elif isinstance(node, ast.alias):
            if node.name.startswith("_"):
                raise SourceRejected("import of %r is not allowed" % node.name)
        elif isinstance(node, ast.MatchClass):
            for name in node.kwd_attrs:
                if name.startswith("_") or name in BLOCKED_ATTRS:
                    raise SourceRejected("use of %r is not allowed" % name)


def build_module(name, exports):
    module = __import__(name)
    names = exports or [attr for attr in dir(module) if not attr.startswith("_")]
    return types.SimpleNamespace(**{attr: getattr(module, attr) for attr in names})


class Sink:
    def write(self, text):
        return len(text)

    def flush(self):
        pass


def normalize(value):
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, (list, tuple)):
        return [normalize(item) for item in value]
    if isinstance(value, dict):
        return {key: normalize(item) for key, item in value.items()}
    return value


def canonical(value):
    return json.dumps(normalize(value), sort_keys=True, allow_nan=False)


real_builtins = __builtins__ if isinstance(__builtins__, dict) else vars(__builtins__)
modules = {name: build_module(name, exports) for name, exports in MODULE_EXPORTS.items()}
guards_namespace = {"__builtins__": {}}
exec(GUARDS_SOURCE, guards_namespace)
guarded_import, guarded_getattr, guarded_hasattr = guards_namespace.pop("make_guards")(
    modules, getattr, BLOCKED_ATTRS, str, type, ImportError, AttributeError,
)

safe = {name: real_builtins[name] for name in SAFE_BUILTINS if name in real_builtins}
safe["__import__"] = guarded_import
safe["getattr"] = guarded_getattr
safe["hasattr"] = guarded_hasattr
namespace = {"__builtins__": safe, "__name__": "submission"}

report = {"compiled": False, "entry_point_found": False, "results": [], "error": None, "timed_out": False}
stdout = sys.stdout
sys.stdout = Sink()
signal.signal(signal.SIGALRM, on_alarm)
signal.setitimer(signal.ITIMER_REAL, payload["budget"])
try:
    try:
        tree = ast.parse(payload["code"], "<submission>", "exec")
        check_source(tree)
        program = compile(tree, "<submission>", "exec")
    except (SyntaxError, ValueError, SourceRejected) as exc:
        report["error"] = "%s: %s" % (type(exc).__name__, exc)
    else:
        report["compiled"] = True
        try:
            exec(program, namespace)
        except (Exception, SystemExit) as exc:
            report["error"] = "%s: %s" % (type(exc).__name__, exc)
        else:
            fn = namespace.get(payload["entry_point"])
            if callable(fn):
                report["entry_point_found"] = True
                for test in payload["tests"]:
                    try:
                        passed = canonical(fn(*test["args"])) == canonical(test["expected"])
                    except (Exception, SystemExit):
                        passed = False
                    report["results"].append(passed)
except BudgetExceeded:
    report["timed_out"] = True
    report["error"] = "execution exceeded the %.1fs time budget" % payload["budget"]
finally:
    signal.setitimer(signal.ITIMER_REAL, 0)
    sys.stdout = stdout

stdout.write(nonce + " " + json.dumps(report) + "\\n")
stdout.flush()
# skip interpreter teardown so no submission finalizer runs after the report
os._exit(0)
'''


def build_runner_script(
    code: str,
    entry_point: str,
    tests: list[dict[str, Any]],
    time_budget: float,
    nonce: str,
) -> str:
    """Build a self-contained Python script that runs all tests and prints a JSON report.

    The report line is prefixed with ``nonce`` so output the submission
    manages to emit can never pass for the runner's report.
    """
    payload = json.dumps({
        "code": code,
        "entry_point": entry_point,
        "tests": tests,
        "budget": time_budget,
        "nonce": nonce,
    })
    return _RUNNER_TEMPLATE.replace("__PAYLOAD__", repr(payload))


def parse_runner_output(stdout: str, stderr: str, returncode: int | None, nonce: str) -> SandboxRun:
    """Turn the runner's nonce-tagged report line into a SandboxRun.

    Only the first tagged line counts; the runner exits right after writing it.
    """
    prefix = nonce + " "
    reports = [line[len(prefix):] for line in stdout.splitlines() if line.startswith(prefix)]
    if not reports:
        detail = stderr.strip().splitlines()[-1] if stderr.strip() else f"exit code {returncode}"
        raise SandboxError(f"Sandbox produced no result: {detail}")
    try:
        data = json.loads(reports[0])
    except json.JSONDecodeError as e:
        raise SandboxError(f"Failed to parse sandbox output: {reports[0][:200]}") from e
    return SandboxRun(
        compiled=bool(data.get("compiled")),
        entry_point_found=bool(data.get("entry_point_found")),
        results=[bool(r) for r in data.get("results", [])],
        error=data.get("error"),
        timed_out=bool(data.get("timed_out")),
    )


# ---------------------------------------------------------------------------
# Local subprocess backend
# ---------------------------------------------------------------------------


def _limit_child(cpu_seconds: int, memory_bytes: int) -> None:
    """preexec_fn: cap CPU, memory, file writes and process creation for the child."""
    resource.setrlimit(resource.RLIMIT_CPU, (cpu_seconds, cpu_seconds + 1))
    resource.setrlimit(resource.RLIMIT_AS, (memory_bytes, memory_bytes))
    resource.setrlimit(resource.RLIMIT_FSIZE, (0, 0))
    resource.setrlimit(resource.RLIMIT_NPROC, (0, 0))
    resource.setrlimit(resource.RLIMIT_CORE, (0, 0))


class LocalSandbox:
    """Runs each submission in a fresh, resource-limited child interpreter."""

    def __init__(
        self,
        time_budget: float | None = None,
        grace: float | None = None,
        memory_limit_mb: int | None = None,
        python: str | None = None,
    ):
        self.time_budget = time_budget if time_budget is not None else settings.sandbox_timeout_sec
        self.grace = grace if grace is not None else settings.sandbox_grace_sec
        self.memory_limit_mb = memory_limit_mb or settings.sandbox_memory_limit_mb
        self.python = python or settings.sandbox_python or sys.executable

    async def run(
        self,
        code: str,
        entry_point: str,
        tests: list[dict[str, Any]],
        time_budget: float | None = None,
    ) -> SandboxRun:
        budget = time_budget if time_budget is not None else self.time_budget
        nonce = secrets.token_hex(16)
        script = build_runner_script(code, entry_point, tests, budget, nonce)
        hard_limit = budget + self.grace
        cpu_seconds = math.ceil(hard_limit) + 1
        memory_bytes = self.memory_limit_mb * 1024 * 1024

        with tempfile.TemporaryDirectory(prefix="grader-") as workdir:
            try:
                process = await asyncio.create_subprocess_exec(
                    self.python, "-I", "-S", "-B", "-c", script,
                    stdin=asyncio.subprocess.DEVNULL,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                    cwd=workdir,
                    env={},
                    preexec_fn=lambda: _limit_child(cpu_seconds, memory_bytes),
                )
            except OSError as e:
                raise SandboxUnavailable(f"Failed to start sandbox interpreter: {e}") from e

            try:
                stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=hard_limit)
            except asyncio.TimeoutError:
                await _kill(process)
                logger.warning("Sandbox child killed after %.1fs hard limit", hard_limit)
                raise SandboxTimeout(f"execution exceeded the {budget:.1f}s time budget")
            except asyncio.CancelledError:
                await _kill(process)
                raise

        return parse_runner_output(
            stdout.decode("utf-8", errors="replace"),
            stderr.decode("utf-8", errors="replace"),
            process.returncode,
            nonce,
        )


async def _kill(process: asyncio.subprocess.Process) -> None:
    if process.returncode is None:
        try:
            process.kill()
        except ProcessLookupError:
            pass
    await process.wait()


# ---------------------------------------------------------------------------
# Modal backend
# ---------------------------------------------------------------------------

_sandbox_image = modal.Image.debian_slim(python_version="3.11")


class ModalSandbox:
    """Runs each submission in a fresh Modal sandbox with networking blocked."""

    def __init__(self, time_budget: float | None = None, grace: float | None = None):
        self.time_budget = time_budget if time_budget is not None else settings.sandbox_timeout_sec
        self.grace = grace if grace is not None else settings.sandbox_grace_sec

    async def run(
        self,
        code: str,
        entry_point: str,
        tests: list[dict[str, Any]],
        time_budget: float | None = None,
    ) -> SandboxRun:
        budget = time_budget if time_budget is not None else self.time_budget
        nonce = secrets.token_hex(16)
        script = build_runner_script(code, entry_point, tests, budget, nonce)
        hard_limit = budget + self.grace

        try:
            app = await modal.App.lookup.aio(settings.modal_app_name, create_if_missing=True)
            sb = await asyncio.wait_for(
                modal.Sandbox.create.aio(
                    image=_sandbox_image,
                    app=app,
                    timeout=math.ceil(hard_limit) + 60,
                    block_network=True,
                ),
                timeout=settings.modal_startup_timeout_sec,
            )
        except Exception as e:
            logger.error("Modal sandbox creation failed: %s: %s", type(e).__name__, e)
            raise SandboxUnavailable(f"Failed to create Modal sandbox: {type(e).__name__}: {e}") from e

        try:
            process = await sb.exec.aio("python", "-I", "-S", "-B", "-c", script, timeout=math.ceil(hard_limit))
            stdout = await asyncio.wait_for(process.stdout.read.aio(), timeout=hard_limit)
            stderr = await process.stderr.read.aio()
            await process.wait.aio()
        except asyncio.TimeoutError:
            logger.warning("Modal sandbox %s exceeded %.1fs hard limit", sb.object_id, hard_limit)
            raise SandboxTimeout(f"execution exceeded the {budget:.1f}s time budget")
        except Exception as e:
            logger.error("Modal sandbox exec failed: %s: %s", type(e).__name__, e)
            raise SandboxUnavailable(f"Modal sandbox execution error: {type(e).__name__}: {e}") from e
        finally:
            try:
                await sb.terminate.aio()
            except Exception:
                logger.debug("Modal sandbox already terminated")

        return parse_runner_output(stdout, stderr, process.returncode, nonce)


def get_sandbox() -> Sandbox:
    """Build a sandbox for the configured backend."""
    if settings.sandbox_backend == "modal":
        return ModalSandbox()
    return LocalSandbox()
