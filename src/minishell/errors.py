"""Exceptions raised by the package layer and the shell front-end."""


class MinishellError(Exception):
    """Base class for errors reported to the user without leaving the shell."""


class UnknownBackend(MinishellError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown package manager: {name}")
        self.name = name


class UnsupportedVerb(MinishellError):
    def __init__(self, backend, verb) -> None:
        super().__init__(f"{backend.label} does not support '{verb.value}'")
        self.backend = backend
        self.verb = verb


class MissingQuery(MinishellError):
    def __init__(self, verb) -> None:
        super().__init__(f"'{verb.value}' needs a package name or query")
        self.verb = verb


class UsageError(MinishellError):
    """Bad arguments to a built-in or to `pkg`."""


class InvalidQuery(UsageError):
    def __init__(self, query: str) -> None:
        super().__init__(f"'{query}' looks like an option, not a package name")
        self.query = query
