from typing import Dict, List, Optional

import pytest

from minishell.backends import Platform
from minishell.detector import BackendContext
from minishell.dispatcher import Dispatcher
from minishell.models import FailureKind, Invocation, InvocationResult


def fake_which(*names):
    """A `which` that only knows the given executables."""
    known = set(names)

    def which(name: str) -> Optional[str]:
        return f"/usr/bin/{name}" if name in known else None

    return which


class FakeRunner:
    """
    Stands in for run_invocation and records every invocation.

    `responses` maps a backend name to (exit_code, stdout, stderr).
    Backends without a response succeed with one line of output.
    """

    def __init__(self, responses: Optional[Dict[str, tuple]] = None) -> None:
        self.responses = responses or {}
        self.calls: List[Invocation] = []

    @property
    def backends_called(self) -> List[str]:
        return [inv.backend.name for inv in self.calls]

    def __call__(self, invocation: Invocation, timeout=None) -> InvocationResult:
        self.calls.append(invocation)
        code, stdout, stderr = self.responses.get(invocation.backend.name, (0, f"{invocation.backend.name} ok\n", ""))
        return InvocationResult(
            backend=invocation.backend,
            exit_code=code,
            stdout=stdout,
            stderr=stderr,
            failure=None if code == 0 else FailureKind.EXIT_STATUS,
        )


@pytest.fixture
def make_dispatcher():
    def factory(*executables, platform=Platform.LINUX, responses=None, **kwargs):
        context = BackendContext(platform=platform, which=fake_which(*executables))
        runner = FakeRunner(responses)
        kwargs.setdefault("progress", False)
        return Dispatcher(context, runner=runner, **kwargs), runner

    return factory
