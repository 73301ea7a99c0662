from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from .backends import Backend, Platform
from .logger import Colors, paint
from .models import DispatchOutcome, FailureKind, InvocationResult, OutcomeStatus

EXIT_NO_BACKEND = 2

# Shell-style exit codes for failures that have no exit status of their own
_FAILURE_EXIT_CODES = {
    FailureKind.NO_MATCHES: 1,
    FailureKind.TIMEOUT: 124,
    FailureKind.SPAWN_FAILED: 126,
    FailureKind.BACKEND_NOT_FOUND: 127,
}

_INSTALL_HINTS = {
    Platform.WINDOWS: "You may need to install a package manager first (chocolatey, winget, or scoop).",
    Platform.MACOS: "You may need to install a package manager first (homebrew or macports).",
    Platform.LINUX: "Your distribution's package manager might not be supported.",
}


def install_hint(platform: Optional[Platform]) -> str:
    return _INSTALL_HINTS.get(platform, "Please install a package manager appropriate for your platform.")


def _tag(ok: bool, stream=None) -> str:
    return paint("OK", Colors.GREEN, stream) if ok else paint("FAIL", Colors.RED, stream)


def _describe_failure(result: InvocationResult) -> str:
    if result.failure is FailureKind.EXIT_STATUS:
        return f"exit status {result.exit_code}"
    if result.detail:
        return f"{result.failure.value} ({result.detail})"
    return result.failure.value


def render_result(result: InvocationResult, stream=None) -> List[str]:
    label = paint(result.backend.label, Colors.BOLD, stream)
    if result.succeeded:
        lines = [f"[{_tag(True, stream)}] {label}"]
        if result.stdout.strip():
            lines.append(result.stdout.rstrip("\n"))
        return lines

    lines = [f"[{_tag(False, stream)}] {label}: {_describe_failure(result)}"]
    # The tool's own diagnostic goes out verbatim; some tools only write errors to stdout
    if result.stderr.strip():
        lines.append(result.stderr.rstrip("\n"))
    elif result.failure is not FailureKind.NO_MATCHES and result.stdout.strip():
        lines.append(result.stdout.rstrip("\n"))
    return lines


def _missing_reason(backend: Backend, outcome: DispatchOutcome) -> str:
    if backend in outcome.unsupported:
        return f"does not support '{outcome.request.verb.value}'"
    if not backend.available_on(outcome.platform):
        platform = outcome.platform.value if outcome.platform else "this platform"
        return f"not available on {platform}"
    return f"'{backend.executable_name}' not found"


def render_no_backend(outcome: DispatchOutcome, stream=None) -> List[str]:
    verb = outcome.request.verb.value
    lines = [paint(f"No package manager available for '{verb}'.", Colors.RED, stream)]
    if outcome.checked:
        lines.append("Checked:")
        for backend in outcome.checked:
            lines.append(f"  {backend.label:<12} {_missing_reason(backend, outcome)}")
    else:
        lines.append("No package managers are known for this platform.")
    lines.append(install_hint(outcome.platform))
    return lines


def _summary(outcome: DispatchOutcome, stream=None) -> Optional[str]:
    request = outcome.request
    what = f"{request.verb.value} {request.query}" if request.query else request.verb.value
    if outcome.status is OutcomeStatus.ALL_FAILED:
        return paint(f"Failed to {what}.", Colors.RED, stream)
    if outcome.status is OutcomeStatus.PARTIAL_SUCCESS:
        ok = sum(1 for r in outcome.results if r.succeeded)
        return paint(f"{what}: {ok} of {len(outcome.results)} package managers succeeded.", Colors.YELLOW, stream)
    return None


def render(outcome: DispatchOutcome, stream=None) -> str:
    """Format a dispatch outcome; colour is used only when `stream` is a terminal."""
    if outcome.status is OutcomeStatus.NO_BACKEND_AVAILABLE:
        return "\n".join(render_no_backend(outcome, stream))

    lines: List[str] = []
    for result in outcome.results:
        lines.extend(render_result(result, stream))
    summary = _summary(outcome, stream)
    if summary:
        lines.append(summary)
    return "\n".join(lines)


def _process_exit_code(result: InvocationResult) -> int:
    if result.succeeded:
        return 0
    if result.failure is FailureKind.EXIT_STATUS and result.exit_code is not None:
        code = result.exit_code
        # Negative return codes mean the child died from a signal
        return 128 - code if code < 0 else code
    return _FAILURE_EXIT_CODES.get(result.failure, 1)


def exit_code(outcome: DispatchOutcome) -> int:
    """
    Shell exit status for a dispatch.

    Single-backend requests pass the tool's own exit code through.
    Multi-backend requests give 0 only when every backend succeeded, 1
    otherwise. 2 always means no backend was available.
    """
    if outcome.status is OutcomeStatus.NO_BACKEND_AVAILABLE:
        return EXIT_NO_BACKEND
    if outcome.targeted and len(outcome.results) == 1:
        return _process_exit_code(outcome.results[0])
    return 0 if outcome.status is OutcomeStatus.ALL_SUCCEEDED else 1


def render_status(rows: Sequence[Tuple[Backend, bool]], platform: Optional[Platform], stream=None) -> str:
    name = platform.value if platform else "unknown"
    lines = [f"Package managers for your platform ({name}):"]
    if not rows:
        lines.append("  none known")
    for backend, installed in rows:
        state = paint("installed", Colors.GREEN, stream) if installed else paint("not installed", Colors.YELLOW, stream)
        lines.append(f"  {backend.label:<12} {backend.executable_name:<8} ({state})")
    return "\n".join(lines)
