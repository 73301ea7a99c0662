from __future__ import annotations

from typing import List

from .backends import UNSUPPORTED, Backend, Slot
from .errors import InvalidQuery, MissingQuery, UnsupportedVerb
from .models import GenericRequest, Invocation


def translate(request: GenericRequest, backend: Backend, elevate: bool = False) -> Invocation:
    """
    Materialize the argv for `request` on `backend`.

    The query fills its slot as exactly one argument and is never joined
    into a command string, so shell metacharacters in a package name stay
    inert.
    """
    template = backend.verb_templates.get(request.verb, UNSUPPORTED)
    if template is UNSUPPORTED:
        raise UnsupportedVerb(backend, request.verb)

    query = request.query if request.query else None
    # The tool would read a leading dash as one of its own options
    if query is not None and query.startswith("-"):
        raise InvalidQuery(query)
    args: List[str] = []
    for part in template:
        if not isinstance(part, Slot):
            args.append(part)
        elif query is not None:
            args.append(query)
        elif part.required:
            raise MissingQuery(request.verb)
        else:
            args.extend(part.fallback)

    return Invocation(backend=backend, executable=backend.executable_name, args=tuple(args), elevated=elevate)
