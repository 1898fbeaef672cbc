"""
Session script parser.

A session script drives the engine the way a user would. One command per
line, or several separated by ';'. '#' starts a comment.

    submit (A,B)(-A,C)(-B,-C)
    decide A          # or just: A
    -B                # decide B = False
    C=0               # decide C = False
    undo
    redo
    commit
    heuristic neg
    reset
"""

import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import List, Optional

from .errors import InvalidCommandError
from .formula import Literal, parse_literal


class CommandType(Enum):
    """Engine operations a script can invoke."""
    SUBMIT = auto()
    DECIDE = auto()
    UNDO = auto()
    REDO = auto()
    RESET = auto()
    COMMIT = auto()
    HEURISTIC = auto()


@dataclass
class Command:
    """Represents a parsed script command."""
    type: CommandType
    argument: str = ""  # formula text for SUBMIT, heuristic name for HEURISTIC
    literal: Optional[Literal] = None  # for DECIDE
    raw: str = ""
    line: int = -1


NO_ARGUMENT = {
    "undo": CommandType.UNDO,
    "redo": CommandType.REDO,
    "reset": CommandType.RESET,
    "commit": CommandType.COMMIT,
}

WITH_ARGUMENT = {
    "submit": CommandType.SUBMIT,
    "decide": CommandType.DECIDE,
    "heuristic": CommandType.HEURISTIC,
}

TRUE_VALUES = {"1", "true", "t", "yes"}
FALSE_VALUES = {"0", "false", "f", "no"}

ASSIGN_PATTERN = re.compile(r"^(?P<var>[^=\s]+)\s*=\s*(?P<value>\S+)$")
SEPARATOR = ";"
COMMENT = "#"


def parse_decision(text: str, raw: str = "", line: int = -1) -> Literal:
    """
    Parse the literal of a decision.

    Accepts 'A', '-A', 'A=1', 'A=false'.
    """
    text = text.strip()
    match = ASSIGN_PATTERN.match(text)
    if match:
        value = match.group("value").lower()
        if value in TRUE_VALUES:
            return Literal(match.group("var"), True)
        if value in FALSE_VALUES:
            return Literal(match.group("var"), False)
        raise InvalidCommandError(raw or text, f"Unknown truth value: {match.group('value')}", line)

    if not text or len(text.split()) != 1:
        raise InvalidCommandError(raw or text, "Expected a single literal", line)
    literal = parse_literal(text)
    if literal is None:
        raise InvalidCommandError(raw or text, "Empty literal", line)
    return literal


class ScriptParser:
    """
    Line-oriented parser producing Command objects.

    Keeps a line counter so errors point at the offending line.
    """

    def __init__(self):
        self.line_number = 0

    def reset(self):
        """Reset parser state."""
        self.line_number = 0

    def parse_line(self, line: str) -> List[Command]:
        """
        Parse one script line.

        Args:
            line: Raw line, possibly holding several ';'-separated commands.

        Returns:
            Commands in order; empty for blank and comment-only lines.
        """
        self.line_number += 1
        line = line.split(COMMENT, 1)[0]
        commands = []
        for part in line.split(SEPARATOR):
            part = part.strip()
            if part:
                commands.append(self.parse_command(part))
        return commands

    def parse_command(self, text: str) -> Command:
        """
        Parse a single command.

        Raises:
            InvalidCommandError: If the command is malformed.
        """
        keyword, _, rest = text.partition(" ")
        key = keyword.lower()
        rest = rest.strip()

        if key in NO_ARGUMENT:
            if rest:
                raise InvalidCommandError(text, f"'{key}' takes no argument", self.line_number)
            return Command(type=NO_ARGUMENT[key], raw=text, line=self.line_number)

        if key in WITH_ARGUMENT:
            if not rest:
                raise InvalidCommandError(text, f"'{key}' needs an argument", self.line_number)
            command_type = WITH_ARGUMENT[key]
            if command_type == CommandType.DECIDE:
                return Command(
                    type=command_type,
                    literal=parse_decision(rest, text, self.line_number),
                    raw=text,
                    line=self.line_number,
                )
            return Command(type=command_type, argument=rest, raw=text, line=self.line_number)

        # Anything else must be a bare literal
        return Command(
            type=CommandType.DECIDE,
            literal=parse_decision(text, text, self.line_number),
            raw=text,
            line=self.line_number,
        )

    def parse(self, text: str) -> List[Command]:
        """Parse a whole script."""
        self.reset()
        commands = []
        for line in text.splitlines():
            commands.extend(self.parse_line(line))
        return commands


def parse_script(text: str) -> List[Command]:
    """Parse a session script into commands."""
    return ScriptParser().parse(text)


def apply_command(engine, command: Command) -> None:
    """
    Invoke the engine operation a command stands for.

    Args:
        engine: An Engine instance.
        command: The parsed command.
    """
    if command.type == CommandType.SUBMIT:
        engine.submit_formula(command.argument)
    elif command.type == CommandType.DECIDE:
        engine.decide(command.literal.variable, command.literal.positive)
    elif command.type == CommandType.UNDO:
        engine.undo()
    elif command.type == CommandType.REDO:
        engine.redo()
    elif command.type == CommandType.RESET:
        engine.reset()
    elif command.type == CommandType.COMMIT:
        engine.commit_learned_clause()
    elif command.type == CommandType.HEURISTIC:
        engine.set_heuristic(command.argument)
    else:
        raise InvalidCommandError(command.raw, f"Unsupported command type: {command.type}")
