"""
Lexical scanner for script source.

Masks string, comment and regex-literal contents out of the source so that
bracket matching and the per-line heuristics only ever look at code. The mask
keeps the original length and line breaks, so columns and line numbers in the
masked text match the raw text.

Handles: '...', "...", `...` (multi-line), // and /* */ comments, and a
best-effort guess at regex literals.
"""

import re
from dataclasses import dataclass, field
from enum import Enum


class State(str, Enum):
    NORMAL = "normal"
    SQUOTE = "squote"
    DQUOTE = "dquote"
    TEMPLATE = "template"
    LINE_COMMENT = "line_comment"
    BLOCK_COMMENT = "block_comment"
    REGEX = "regex"


class FlagKind(str, Enum):
    LEGACY_DECLARATION = "legacy_declaration"
    LOOSE_EQUALITY = "loose_equality"
    MISSING_SEMICOLON = "missing_semicolon"
    DEBUG_PRINT = "debug_print"


_QUOTES = {"'": State.SQUOTE, '"': State.DQUOTE, "`": State.TEMPLATE}
_CLOSERS = {State.SQUOTE: "'", State.DQUOTE: '"', State.TEMPLATE: "`"}
_BRACKETS = {"(": ")", "[": "]", "{": "}"}

# A '/' after one of these starts a regex literal rather than a division.
_REGEX_PRECEDERS = set("(,=:[!&|?{};+-*%<>~^")
_REGEX_KEYWORDS = {
    "return", "typeof", "case", "do", "else", "in", "of", "new",
    "delete", "void", "throw", "yield", "await",
}


@dataclass
class LineView:
    """One source line seen through the mask."""

    number: int
    raw: str
    code: str
    start: State = State.NORMAL
    end: State = State.NORMAL
    comment: bool = False
    continued: bool = False

    @property
    def text(self) -> str:
        return self.code.strip()


@dataclass
class BracketError:
    line: int
    message: str


@dataclass
class Flag:
    line: int
    kind: FlagKind
    message: str


@dataclass
class ScanResult:
    bracket_errors: list[BracketError] = field(default_factory=list)
    flags: list[Flag] = field(default_factory=list)


class _Masker:
    """Single pass over the source, tracking lexical state per character."""

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.state = State.NORMAL
        self.in_class = False
        self.out: list[str] = []
        self.starts: list[State] = [State.NORMAL]
        self.ends: list[State] = []
        self.comments: list[bool] = [False]

    def _peek(self, offset: int = 1) -> str:
        pos = self.pos + offset
        return self.source[pos] if pos < len(self.source) else ""

    def _emit(self, text: str, count: int = 1) -> None:
        self.out.append(text)
        self.pos += count

    def _newline(self) -> None:
        self.ends.append(self.state)
        if self.state in (State.LINE_COMMENT, State.SQUOTE, State.DQUOTE, State.REGEX):
            self.state = State.NORMAL
            self.in_class = False
        self.starts.append(self.state)
        self.comments.append(self.state is State.BLOCK_COMMENT)
        self._emit("\n")

    def _regex_allowed(self) -> bool:
        i = len(self.out) - 1
        while i >= 0 and self.out[i].isspace():
            i -= 1
        if i < 0:
            return True
        if self.out[i] in _REGEX_PRECEDERS:
            return True
        if not (self.out[i].isalnum() or self.out[i] in "_$"):
            return False
        end = i + 1
        while i >= 0 and (self.out[i].isalnum() or self.out[i] in "_$"):
            i -= 1
        return "".join(self.out[i + 1 : end]) in _REGEX_KEYWORDS

    def run(self) -> str:
        while self.pos < len(self.source):
            ch = self.source[self.pos]
            if ch == "\n":
                self._newline()
            elif self.state is State.NORMAL:
                self._normal(ch)
            elif self.state in _CLOSERS:
                self._string(ch)
            elif self.state is State.LINE_COMMENT:
                self._emit(" ")
            elif self.state is State.BLOCK_COMMENT:
                if ch == "*" and self._peek() == "/":
                    self._emit("  ", 2)
                    self.state = State.NORMAL
                else:
                    self._emit(" ")
            else:
                self._regex(ch)
        self.ends.append(self.state)
        return "".join(self.out)

    def _normal(self, ch: str) -> None:
        if ch in _QUOTES:
            self.state = _QUOTES[ch]
            self._emit(ch)
        elif ch == "/" and self._peek() == "/":
            self.state = State.LINE_COMMENT
            self.comments[-1] = True
            self._emit("  ", 2)
        elif ch == "/" and self._peek() == "*":
            self.state = State.BLOCK_COMMENT
            self.comments[-1] = True
            self._emit("  ", 2)
        elif ch == "/" and self._regex_allowed():
            self.state = State.REGEX
            self.in_class = False
            self._emit("r")
        else:
            self._emit(ch)

    def _string(self, ch: str) -> None:
        if ch == "\\":
            self._emit(" ")
            if self._peek(0) not in ("", "\n"):
                self._emit(" ")
        elif ch == _CLOSERS[self.state]:
            self.state = State.NORMAL
            self._emit(ch)
        else:
            self._emit(" ")

    def _regex(self, ch: str) -> None:
        if ch == "\\":
            self._emit(" ")
            if self._peek(0) not in ("", "\n"):
                self._emit(" ")
        elif ch == "[":
            self.in_class = True
            self._emit(" ")
        elif ch == "]":
            self.in_class = False
            self._emit(" ")
        elif ch == "/" and not self.in_class:
            self.state = State.NORMAL
            self._emit(" ")
        else:
            self._emit(" ")


def mask(source: str) -> str:
    """Source with string contents, comments and regex bodies blanked out."""
    return _Masker(source).run()


_CONTINUATION = re.compile(r"^(\.|\?\.|\?|:|&&|\|\||\+(?!\+)|-(?!-)|\*|/|%|=[^=>]?)")


def views(source: str) -> list[LineView]:
    masker = _Masker(source)
    masked = masker.run()
    result = [
        LineView(
            number=i + 1,
            raw=raw,
            code=code,
            start=masker.starts[i],
            end=masker.ends[i],
            comment=masker.comments[i],
        )
        for i, (raw, code) in enumerate(zip(source.split("\n"), masked.split("\n")))
    ]
    following = ""
    for view in reversed(result):
        view.continued = bool(_CONTINUATION.match(following))
        if view.text:
            following = view.text
    return result


_KEYWORD_LINE = re.compile(
    r"^(if|else|for|while|do|switch|case|default|try|catch|finally|function|class|async\s+function)\b"
)
_STATEMENT_LINE = re.compile(r"^(import|export|return|break|continue)\b")
_NO_TERMINATOR_AFTER = (
    ";", "{", "}", ",", "(", "[", ":", ".", "=", "+", "-", "*", "/",
    "%", "&", "|", "?", "<", ">", "!", "~", "^",
)
_ASSIGNMENT = re.compile(r"(?<![=!<>])=(?![=>])")
_BARE_CALL = re.compile(r"^(await\s+)?[\w$][\w$.]*\s*\(.*\)$")
_OPENERS = ("}", "{", "*", ")", "]")


def needs_semicolon(view: LineView) -> bool:
    """True when the line is a statement that should end in ';' but does not.

    Shared by the scanner warning and the fixer, so both always agree.
    """
    code = view.text
    if not code or view.comment:
        return False
    if view.start is not State.NORMAL or view.end is not State.NORMAL:
        return False
    if code.startswith(_OPENERS) or view.continued:
        return False
    if _KEYWORD_LINE.match(code) or _STATEMENT_LINE.match(code):
        return False
    if code.endswith(_NO_TERMINATOR_AFTER):
        return False
    return bool(_ASSIGNMENT.search(code) or _BARE_CALL.match(code))


def _bracket_errors(lines: list[LineView]) -> list[BracketError]:
    errors = []
    stack: list[tuple[str, int]] = []
    for view in lines:
        for ch in view.code:
            if ch in _BRACKETS:
                stack.append((ch, view.number))
            elif ch in _BRACKETS.values():
                if not stack:
                    errors.append(BracketError(view.number, f"Unmatched '{ch}' on line {view.number}"))
                    continue
                opener, _ = stack.pop()
                if _BRACKETS[opener] != ch:
                    errors.append(
                        BracketError(
                            view.number,
                            f"Mismatched brackets: expected '{_BRACKETS[opener]}' "
                            f"but found '{ch}' on line {view.number}",
                        )
                    )
    for opener, line in stack:
        errors.append(BracketError(line, f"Unclosed '{opener}' starting on line {line}"))
    return errors


_VAR = re.compile(r"\bvar\s")
_LOOSE_EQ = re.compile(r"(?<![=!<>])==(?!=)")
_LOOSE_NE = re.compile(r"!=(?!=)")
_CONSOLE_LOG = re.compile(r"\bconsole\.log\b")


def _line_flags(view: LineView) -> list[Flag]:
    n = view.number
    flags = []
    if _VAR.search(view.code):
        flags.append(
            Flag(n, FlagKind.LEGACY_DECLARATION, f"Line {n}: Consider using 'let' or 'const' instead of 'var'")
        )
    if _LOOSE_EQ.search(view.code):
        flags.append(
            Flag(n, FlagKind.LOOSE_EQUALITY, f"Line {n}: Consider using '===' instead of '==' for comparison")
        )
    if _LOOSE_NE.search(view.code):
        flags.append(
            Flag(n, FlagKind.LOOSE_EQUALITY, f"Line {n}: Consider using '!==' instead of '!=' for comparison")
        )
    if needs_semicolon(view):
        flags.append(Flag(n, FlagKind.MISSING_SEMICOLON, f"Line {n}: Missing semicolon"))
    if _CONSOLE_LOG.search(view.code):
        flags.append(
            Flag(n, FlagKind.DEBUG_PRINT, f"Line {n}: Remember to remove console.log statements in production")
        )
    return flags


def scan(source: str) -> ScanResult:
    lines = views(source)
    result = ScanResult(bracket_errors=_bracket_errors(lines))
    for view in lines:
        result.flags.extend(_line_flags(view))
    return result
