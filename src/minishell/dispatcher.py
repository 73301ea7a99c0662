"""
Dispatch of generic package requests to the detected backends.

Selection policy:
  - list:    every available backend, reported in priority order
  - search:  priority order, moving on while a backend fails or finds nothing
  - install/update: the first backend that supports the verb, never a fallback
  - explicit backend: only that one, whatever the verb
"""

from __future__ import annotations

import dataclasses
import os
import re
import sys
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, List, Optional, Sequence, Tuple

from tqdm import tqdm

from .backends import Backend, Platform, Verb, get_backend
from .detector import BackendContext
from .logger import setup_logger
from .models import DispatchOutcome, FailureKind, GenericRequest, InvocationResult, OutcomeStatus
from .runner import Runner, run_invocation
from .translator import translate

_logger = setup_logger()

# Platforms where system package managers need root
_SUDO_PLATFORMS = (Platform.LINUX, Platform.MACOS)


def _is_root() -> bool:
    geteuid = getattr(os, "geteuid", None)
    return geteuid is not None and geteuid() == 0


def has_matches(output: str, noise: Sequence[str] = ()) -> bool:
    """True if `output` has at least one line that is not known search chatter."""
    patterns = [re.compile(p) for p in noise]
    for line in output.splitlines():
        line = line.strip()
        if line and not any(p.search(line) for p in patterns):
            return True
    return False


class Dispatcher:
    def __init__(
        self,
        context: BackendContext,
        runner: Runner = run_invocation,
        timeout: Optional[float] = None,
        use_sudo: bool = False,
        parallel_list: bool = False,
        max_workers: int = 4,
        is_root: Callable[[], bool] = _is_root,
        progress: Optional[bool] = None,
    ) -> None:
        self.context = context
        self.runner = runner
        self.timeout = timeout
        self.use_sudo = use_sudo
        self.parallel_list = parallel_list
        self.max_workers = max_workers
        self.is_root = is_root
        self.progress = sys.stderr.isatty() if progress is None else progress

    @classmethod
    def from_config(cls, context: BackendContext, config, **kwargs) -> "Dispatcher":
        return cls(
            context,
            timeout=config.timeout,
            use_sudo=config.use_sudo,
            parallel_list=config.parallel_list,
            max_workers=config.max_workers,
            **kwargs,
        )

    # --------------------------------------------------------
    # Entry point
    # --------------------------------------------------------

    def dispatch(self, request: GenericRequest) -> DispatchOutcome:
        verb = request.verb
        explicit = request.backend is not None

        if explicit:
            chosen = get_backend(request.backend, self.context.backends)
            checked: Tuple[Backend, ...] = (chosen,)
            pool = tuple(b for b in self.context.available if b is chosen)
        else:
            checked = self.context.candidates
            pool = self.context.available

        eligible = [b for b in pool if b.supports(verb)]
        unsupported = tuple(b for b in pool if not b.supports(verb))
        for backend in unsupported:
            _logger.debug("%s does not support '%s', skipping", backend.label, verb.value)

        if not eligible:
            _logger.debug("No backend available for '%s'", verb.value)
            return DispatchOutcome(
                request=request,
                status=OutcomeStatus.NO_BACKEND_AVAILABLE,
                checked=checked,
                unsupported=unsupported,
                targeted=explicit or verb.mutating,
                platform=self.context.platform,
            )

        if explicit or verb.mutating:
            results: Tuple[InvocationResult, ...] = (self._invoke(request, eligible[0]),)
        elif verb is Verb.LIST:
            results = self._fan_out(request, eligible)
        else:
            results = self._search(request, eligible)

        return DispatchOutcome(
            request=request,
            status=DispatchOutcome.status_of(results),
            results=results,
            checked=checked,
            unsupported=unsupported,
            targeted=explicit or verb.mutating,
            platform=self.context.platform,
        )

    # --------------------------------------------------------
    # Selection strategies
    # --------------------------------------------------------

    def _search(self, request: GenericRequest, backends: Sequence[Backend]) -> Tuple[InvocationResult, ...]:
        results: List[InvocationResult] = []
        for backend in backends:
            result = self._invoke(request, backend)
            results.append(result)
            if result.succeeded:
                break
            _logger.debug("%s: %s, trying next backend", backend.label, result.failure.value)
        return tuple(results)

    def _fan_out(self, request: GenericRequest, backends: Sequence[Backend]) -> Tuple[InvocationResult, ...]:
        results: List[Optional[InvocationResult]] = [None] * len(backends)
        with tqdm(
            total=len(backends),
            desc=f"pkg {request.verb.value}",
            unit="backend",
            leave=False,
            disable=not self.progress,
        ) as bar:
            if self.parallel_list and len(backends) > 1:
                workers = min(self.max_workers, len(backends))
                with ThreadPoolExecutor(max_workers=workers) as pool:
                    futures = {pool.submit(self._invoke, request, b): i for i, b in enumerate(backends)}
                    for fut in as_completed(futures):
                        results[futures[fut]] = fut.result()
                        bar.update(1)
            else:
                for i, backend in enumerate(backends):
                    results[i] = self._invoke(request, backend)
                    bar.update(1)
        # Slots are indexed by priority, so completion order never leaks into the report
        return tuple(results)

    # --------------------------------------------------------
    # Single invocation
    # --------------------------------------------------------

    def _should_elevate(self, backend: Backend, verb: Verb) -> bool:
        if not (self.use_sudo and verb.mutating and backend.needs_root):
            return False
        if self.context.platform not in _SUDO_PLATFORMS or self.is_root():
            return False
        if not self.context.which("sudo"):
            _logger.warning("%s usually needs root but sudo was not found; running unprivileged", backend.label)
            return False
        return True

    def _invoke(self, request: GenericRequest, backend: Backend) -> InvocationResult:
        invocation = translate(request, backend, elevate=self._should_elevate(backend, request.verb))
        _logger.info("Running: %s", invocation)

        result = self.runner(invocation, timeout=self.timeout)

        if request.verb is Verb.SEARCH and result.succeeded and not has_matches(result.stdout, backend.search_noise):
            result = dataclasses.replace(result, failure=FailureKind.NO_MATCHES, detail=f"no matches for '{request.query}'")
        return result
