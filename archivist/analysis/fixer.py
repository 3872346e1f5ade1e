"""Line-by-line source fixes. Each transform is pure and idempotent."""

import re

from archivist.analysis import lexer

_LEADING_VAR = re.compile(r"^(\s*)var\b")
_LOOSE = re.compile(r" (==|!=) ")
_STRICT = re.compile(r"===|!==")


def _apply(source: str, fix) -> str:
    lines = source.split("\n")
    for i, view in enumerate(lexer.views(source)):
        lines[i] = fix(view)
    return "\n".join(lines)


def _terminate(view: lexer.LineView) -> str:
    if not lexer.needs_semicolon(view):
        return view.raw
    content = view.raw.rstrip()
    return content + ";" + view.raw[len(content) :]


def add_semicolons(source: str) -> str:
    return _apply(source, _terminate)


def _modernize(view: lexer.LineView) -> str:
    raw = view.raw
    if view.start is not lexer.State.NORMAL:
        return raw
    match = _LEADING_VAR.match(view.code)
    if match:
        start = match.end() - 3
        raw = raw[:start] + "let" + raw[match.end() :]
    # At most one equality rewrite per line, across repeated passes.
    if not _STRICT.search(view.code):
        match = _LOOSE.search(view.code)
        if match:
            raw = raw[: match.start(1)] + match.group(1) + "=" + raw[match.end(1) :]
    return raw


def modernize_declarations(source: str) -> str:
    """Leading ``var`` becomes ``let``; the first spaced ``==``/``!=`` becomes strict."""
    return _apply(source, _modernize)


def suggest_fixes(source: str) -> str:
    return add_semicolons(modernize_declarations(source))
