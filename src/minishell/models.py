from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from .backends import Backend, Platform, Verb


@dataclass(frozen=True)
class GenericRequest:
    verb: Verb
    query: Optional[str] = None
    # Explicit backend name chosen by the user; None lets policy decide
    backend: Optional[str] = None


@dataclass(frozen=True)
class Invocation:
    backend: Backend
    executable: str
    args: Tuple[str, ...]
    elevated: bool = False

    @property
    def argv(self) -> List[str]:
        argv = [self.executable, *self.args]
        if self.elevated:
            argv.insert(0, "sudo")
        return argv

    def __str__(self) -> str:
        return " ".join(self.argv)


class FailureKind(Enum):
    EXIT_STATUS = "exit status"
    NO_MATCHES = "no matches"
    BACKEND_NOT_FOUND = "backend not found"
    SPAWN_FAILED = "could not start process"
    TIMEOUT = "timed out"


@dataclass(frozen=True)
class InvocationResult:
    backend: Backend
    exit_code: Optional[int]
    stdout: str = ""
    stderr: str = ""
    failure: Optional[FailureKind] = None
    detail: str = ""

    @property
    def succeeded(self) -> bool:
        return self.failure is None


class OutcomeStatus(Enum):
    ALL_SUCCEEDED = "all succeeded"
    PARTIAL_SUCCESS = "partial success"
    ALL_FAILED = "all failed"
    NO_BACKEND_AVAILABLE = "no backend available"


@dataclass(frozen=True)
class DispatchOutcome:
    request: GenericRequest
    status: OutcomeStatus
    results: Tuple[InvocationResult, ...] = ()
    checked: Tuple[Backend, ...] = ()
    unsupported: Tuple[Backend, ...] = ()
    # Single-backend verbs report the tool's own exit code
    targeted: bool = False
    platform: Optional[Platform] = None

    @staticmethod
    def status_of(results: Tuple[InvocationResult, ...]) -> OutcomeStatus:
        if not results:
            return OutcomeStatus.NO_BACKEND_AVAILABLE
        succeeded = sum(1 for r in results if r.succeeded)
        if succeeded == len(results):
            return OutcomeStatus.ALL_SUCCEEDED
        if succeeded == 0:
            return OutcomeStatus.ALL_FAILED
        return OutcomeStatus.PARTIAL_SUCCESS
