import io

import pytest

from minishell.backends import Platform, Verb, get_backend
from minishell.models import DispatchOutcome, FailureKind, GenericRequest, InvocationResult, OutcomeStatus
from minishell.reporter import exit_code, render, render_status

APT = get_backend("apt")
SNAP = get_backend("snap")


def ok(backend, stdout="done\n"):
    return InvocationResult(backend=backend, exit_code=0, stdout=stdout)


def failed(backend, code=1, stderr="", stdout="", failure=FailureKind.EXIT_STATUS, detail=""):
    return InvocationResult(backend=backend, exit_code=code, stdout=stdout, stderr=stderr, failure=failure, detail=detail)


def outcome(verb, results, query=None, targeted=False, **kwargs):
    return DispatchOutcome(
        request=GenericRequest(verb, query),
        status=DispatchOutcome.status_of(tuple(results)),
        results=tuple(results),
        targeted=targeted,
        platform=Platform.LINUX,
        **kwargs,
    )


def test_partial_success_shows_failing_backend_and_its_stderr():
    text = render(outcome(Verb.LIST, [ok(APT, "vim/stable 9.0\n"), failed(SNAP, stderr="error: cannot communicate with server\n")]))
    assert "[OK] APT" in text
    assert "vim/stable 9.0" in text
    assert "[FAIL] Snap: exit status 1" in text
    assert "error: cannot communicate with server" in text
    assert "1 of 2 package managers succeeded" in text


def test_failure_without_stderr_falls_back_to_stdout():
    text = render(outcome(Verb.INSTALL, [failed(APT, code=100, stdout="No package foo\n")], query="foo", targeted=True))
    assert "No package foo" in text
    assert "Failed to install foo." in text


def test_timeout_and_not_found_are_described():
    text = render(
        outcome(
            Verb.LIST,
            [
                failed(APT, code=None, failure=FailureKind.TIMEOUT, detail="no result after 5s"),
                failed(SNAP, code=None, failure=FailureKind.BACKEND_NOT_FOUND, detail="'snap' is no longer on the search path"),
            ],
        )
    )
    assert "timed out (no result after 5s)" in text
    assert "backend not found" in text


def test_no_backend_available_names_what_was_checked():
    result = DispatchOutcome(
        request=GenericRequest(Verb.UPDATE),
        status=OutcomeStatus.NO_BACKEND_AVAILABLE,
        checked=(APT, SNAP),
        platform=Platform.LINUX,
        targeted=True,
    )
    text = render(result)
    assert "No package manager available for 'update'" in text
    assert "APT" in text and "'apt' not found" in text
    assert "Snap" in text and "'snap' not found" in text
    assert exit_code(result) == 2


def test_no_backend_for_foreign_platform_backend():
    brew = get_backend("homebrew")
    result = DispatchOutcome(
        request=GenericRequest(Verb.INSTALL, "jq", backend="brew"),
        status=OutcomeStatus.NO_BACKEND_AVAILABLE,
        checked=(brew,),
        platform=Platform.LINUX,
    )
    assert "not available on Linux" in render(result)


@pytest.mark.parametrize(
    "result, expected",
    [
        (ok(APT), 0),
        (failed(APT, code=100), 100),
        (failed(APT, code=-9), 137),
        (failed(APT, code=None, failure=FailureKind.TIMEOUT), 124),
        (failed(APT, code=None, failure=FailureKind.SPAWN_FAILED), 126),
        (failed(APT, code=None, failure=FailureKind.BACKEND_NOT_FOUND), 127),
        (failed(APT, code=0, failure=FailureKind.NO_MATCHES), 1),
    ],
)
def test_single_backend_exit_code_is_the_tools(result, expected):
    assert exit_code(outcome(Verb.INSTALL, [result], query="x", targeted=True)) == expected


def test_multi_backend_exit_codes():
    assert exit_code(outcome(Verb.LIST, [ok(APT), ok(SNAP)])) == 0
    assert exit_code(outcome(Verb.LIST, [ok(APT), failed(SNAP, code=42)])) == 1
    assert exit_code(outcome(Verb.LIST, [failed(APT, code=42), failed(SNAP, code=3)])) == 1


def test_render_status():
    text = render_status([(APT, True), (SNAP, False)], Platform.LINUX)
    assert "Linux" in text
    assert "APT" in text and "(installed)" in text
    assert "Snap" in text and "(not installed)" in text


class FakeTerminal(io.StringIO):
    def isatty(self):
        return True


def test_colour_follows_the_target_stream():
    result = outcome(Verb.LIST, [ok(APT), failed(SNAP)])
    assert "\033[" in render(result, FakeTerminal())
    assert "\033[" not in render(result, io.StringIO())
    assert "\033[" not in render_status([(APT, True)], Platform.LINUX, io.StringIO())
