"""
Custom exceptions for the CDCL tutor.

The engine itself never raises for conflicts or UNSAT formulas; those are
states. Exceptions are reserved for the outer surfaces (session scripts and
configuration).
"""


class InvalidCommandError(Exception):
    """Raised when a session script line cannot be parsed."""

    def __init__(self, command: str, reason: str = "", line: int = -1):
        self.command = command
        self.reason = reason
        self.line = line
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = f"Invalid command: {repr(self.command)}"
        if self.line >= 0:
            msg += f" (line {self.line})"
        if self.reason:
            msg += f"\n  Reason: {self.reason}"
        return msg


class UnknownHeuristicError(Exception):
    """Raised when a clause-learning heuristic name is not recognised."""

    def __init__(self, name: str, choices=()):
        self.name = name
        self.choices = tuple(choices)
        msg = f"Unknown clause-learning heuristic: {repr(name)}"
        if self.choices:
            msg += f" (expected one of: {', '.join(self.choices)})"
        super().__init__(msg)
