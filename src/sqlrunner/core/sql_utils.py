"""
SQL utilities - splitting script text into statements and counting placeholders.

Single source of truth for the lexical rules shared by the script runner: which
characters are quoted, which are commented out, and where a statement ends.
The lexer targets simple sequential DDL/DML scripts; it does not understand
dialect constructs such as stored-procedure bodies, so a ``;`` inside one of
those still ends the statement.
"""

from dataclasses import dataclass
from enum import Enum

LINE_BREAKS = frozenset("\n\r\t")
PLACEHOLDER = "?"


class LexerState(Enum):
    """Lexical regions recognised while scanning SQL text."""

    NORMAL = "normal"
    IN_DOUBLE_QUOTE = "double_quote"
    IN_SINGLE_QUOTE = "single_quote"
    IN_BLOCK_COMMENT = "block_comment"
    IN_LINE_COMMENT = "line_comment"

    @property
    def is_comment(self) -> bool:
        return self in (LexerState.IN_BLOCK_COMMENT, LexerState.IN_LINE_COMMENT)

    @property
    def is_quoted(self) -> bool:
        return self in (LexerState.IN_DOUBLE_QUOTE, LexerState.IN_SINGLE_QUOTE)


_QUOTE_STATES = {
    '"': LexerState.IN_DOUBLE_QUOTE,
    "'": LexerState.IN_SINGLE_QUOTE,
}


class SQLLexer:
    """Character-at-a-time state machine with one character of lookback.

    Callers feed characters through :meth:`advance` and inspect the state before
    and after each step. A doubled quote (``''`` or ``""``) closes the region on
    the first quote and reopens it on the second, so the literal is never
    terminated early and its text is left untouched.
    """

    def __init__(self) -> None:
        self.state = LexerState.NORMAL
        self._previous = ""

    def advance(self, char: str) -> LexerState:
        """Consume one character and return the new state."""
        state = self.state

        if state is LexerState.NORMAL:
            if char == "*" and self._previous == "/":
                return self._enter(LexerState.IN_BLOCK_COMMENT)
            if char == "-" and self._previous == "-":
                return self._enter(LexerState.IN_LINE_COMMENT)
            if char in _QUOTE_STATES:
                state = _QUOTE_STATES[char]
        elif state.is_quoted:
            if _QUOTE_STATES.get(char) is state:
                state = LexerState.NORMAL
        elif state is LexerState.IN_BLOCK_COMMENT:
            if char == "/" and self._previous == "*":
                return self._enter(LexerState.NORMAL)
        elif char == "\n":
            return self._enter(LexerState.NORMAL)

        self.state = state
        self._previous = char
        return state

    def _enter(self, state: LexerState) -> LexerState:
        # Comment delimiters never share a character with the next token
        self.state = state
        self._previous = ""
        return state


@dataclass(frozen=True)
class StatementUnit:
    """One executable statement split out of a script."""

    index: int
    sql: str
    placeholder_count: int


def _append_space(buffer: list[str]) -> None:
    """Append a single separating space unless the buffer already ends in whitespace."""
    if buffer and not buffer[-1].isspace():
        buffer.append(" ")


def split_sql_statements(sql_text: str) -> list[str]:
    """Split SQL script into statements while preserving quoted text.

    Semicolons inside single- or double-quoted regions and inside ``--`` or
    ``/* */`` comments never end a statement. Comments are removed (each one
    leaves at most a single space behind), line breaks and tabs outside quotes
    collapse into single spaces, and the terminating ``;`` is not included.
    A final statement without ``;`` is still returned.

    Args:
        sql_text: Raw SQL script content (e.g. from a file).

    Returns:
        List of non-empty, trimmed statement strings, in source order.
    """
    statements: list[str] = []
    buffer: list[str] = []
    lexer = SQLLexer()

    for char in sql_text:
        before = lexer.state
        after = lexer.advance(char)

        if before is LexerState.NORMAL:
            if after.is_comment:
                # Drop the '/' or '-' that opened the comment
                buffer.pop()
            elif char == ";":
                statement = "".join(buffer).strip()
                if statement:
                    statements.append(statement)
                buffer = []
            elif char in LINE_BREAKS:
                _append_space(buffer)
            else:
                buffer.append(char)
        elif before.is_quoted:
            buffer.append(char)
        elif after is LexerState.NORMAL:
            _append_space(buffer)

    tail = "".join(buffer).strip()
    if tail:
        statements.append(tail)

    return statements


def count_placeholders(statement: str) -> int:
    """Count positional ``?`` markers outside quoted regions and comments."""
    lexer = SQLLexer()
    count = 0
    for char in statement:
        if lexer.state is LexerState.NORMAL and char == PLACEHOLDER:
            count += 1
        lexer.advance(char)
    return count


def parse_script(sql_text: str) -> list[StatementUnit]:
    """Split a script into statement units annotated with their placeholder counts."""
    return [
        StatementUnit(index=index, sql=sql, placeholder_count=count_placeholders(sql))
        for index, sql in enumerate(split_sql_statements(sql_text))
    ]


def parse_statement(sql: str) -> StatementUnit:
    """Wrap one statement as a unit without splitting it.

    Surrounding whitespace and a trailing ``;`` are removed; everything else,
    including comments, is passed to the database unchanged.
    """
    statement = sql.strip()
    if statement.endswith(";"):
        statement = statement[:-1].rstrip()
    return StatementUnit(index=0, sql=statement, placeholder_count=count_placeholders(statement))
