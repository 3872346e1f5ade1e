"""
Heuristic rule set for Minecraft Bedrock scripts.

Each rule is a plain function ``(source, tree) -> AnalysisReport`` and sees the
same pre-lexed source. ``tree`` is the root of a clean syntax tree, or None when
the source did not parse; only the structural rule needs it. ``RULES`` fixes
the order they run in.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass

from tree_sitter import Node

from archivist.analysis import lexer, syntax
from archivist.analysis.lexer import FlagKind
from archivist.models import AnalysisReport

SERVER_MODULE = "@minecraft/server"
SERVER_GLOBALS = ("world", "system")

ENUMERATION_CALLS = (
    "getPlayers",
    "getAllPlayers",
    "getEntities",
    "getEntitiesAtBlockLocation",
    "getEntitiesFromViewDirection",
)

DEPRECATED = {
    "world.events": "use world.beforeEvents / world.afterEvents",
    "system.events": "use system.beforeEvents / system.afterEvents",
    "runCommandAsync": "use runCommand",
    "MinecraftBlockTypes": "use @minecraft/vanilla-data",
    "MinecraftEffectTypes": "use @minecraft/vanilla-data",
    "MinecraftItemTypes": "use @minecraft/vanilla-data",
}


@dataclass
class Source:
    """Raw text plus its masked form and per-line views, computed once."""

    text: str
    code: str
    lines: list[lexer.LineView]

    @classmethod
    def of(cls, text: str) -> "Source":
        lines = lexer.views(text)
        return cls(text=text, code="\n".join(v.code for v in lines), lines=lines)

    def line_at(self, offset: int) -> int:
        return self.code.count("\n", 0, offset) + 1


Rule = Callable[[Source, Node | None], AnalysisReport]


# --- messages shared by the textual and structural passes ---


def empty_catch(line: int) -> str:
    return f"Line {line}: Empty catch block - errors are silently ignored"


def unused_catch_binding(line: int, name: str) -> str:
    return f"Line {line}: Caught error '{name}' is never used"


def async_without_await(line: int) -> str:
    return f"Line {line}: Async function has no await - verify if async is needed"


def loop_enumeration(line: int, call: str) -> str:
    return f"Line {line}: Loop calls {call}() on every iteration - cache the result outside the loop"


def unsubscribed(line: int) -> str:
    return f"Line {line}: Event subscription is never unsubscribed - ensure proper cleanup"


# --- lexical ---

_FLAG_CATEGORY = {
    FlagKind.LEGACY_DECLARATION: "warnings",
    FlagKind.LOOSE_EQUALITY: "warnings",
    FlagKind.MISSING_SEMICOLON: "warnings",
    FlagKind.DEBUG_PRINT: "suggestions",
}


def lexical(source: Source, tree: Node | None) -> AnalysisReport:
    report = AnalysisReport()
    result = lexer.scan(source.text)
    report.errors.extend(e.message for e in result.bracket_errors)
    for flag in result.flags:
        getattr(report, _FLAG_CATEGORY[flag.kind]).append(flag.message)
    return report


# --- platform API ---

_IMPORT = re.compile(r"""^[ \t]*import\s+([^;'"]*?)\s*from\s*['"]([^'"]+)['"]""", re.M)
_NAMED = re.compile(r"\{([^}]*)\}")
_DECLARED = r"\b(?:let|const|var|function|class)\s+{name}\b"

_NOTES = (
    (re.compile(r"\b[Ww]orld\."), "World API usage detected"),
    (re.compile(r"\b[Pp]layer\."), "Player API usage detected"),
    (re.compile(r"\b[Ss]ystem\."), "System API usage detected"),
    (re.compile(r"\.subscribe\s*\(|\baddEventListener\b"), "Event handling detected - ensure proper cleanup"),
    (re.compile(r"\b(getComponent|hasComponent)\b"), "Component system usage detected"),
    (re.compile(r"[Dd]imension"), "Dimension API usage detected"),
)
_TICK = re.compile(r"(?<![a-z])tick|Tick")
_SUBSCRIBE = re.compile(r"\.subscribe\s*\(")
_UNSUBSCRIBE = re.compile(r"\.unsubscribe\s*\(")


def imports(source: Source) -> dict[str, set[str]]:
    """Module specifier -> local names it binds, from ``import ... from`` statements."""
    found: dict[str, set[str]] = {}
    for match in _IMPORT.finditer(source.text):
        keyword = source.text.index("import", match.start())
        if source.code[keyword : keyword + 6] != "import":
            continue
        clause, module = match.groups()
        names = found.setdefault(module, set())
        named = _NAMED.search(clause)
        if named:
            for part in named.group(1).split(","):
                bits = part.split()
                if bits:
                    names.add(bits[-1])
        head = _NAMED.sub("", clause).strip(" ,")
        if head:
            names.add(head.split()[-1])
    return found


def platform_api(source: Source, tree: Node | None) -> AnalysisReport:
    report = AnalysisReport()
    code = source.code
    modules = imports(source)

    if any(m.startswith("@minecraft/") for m in modules):
        report.domain_notes.append("Detected Minecraft Bedrock server module usage")
    for pattern, note in _NOTES:
        if pattern.search(code):
            report.domain_notes.append(note)

    bound = modules.get(SERVER_MODULE, set())
    for name in SERVER_GLOBALS:
        if name in bound or re.search(_DECLARED.format(name=name), code):
            continue
        use = re.search(rf"(?<![\w$.]){name}\.", code)
        if use:
            report.errors.append(
                f"Line {source.line_at(use.start())}: '{name}' is used but not imported from {SERVER_MODULE}"
            )

    if _TICK.search(code):
        report.warnings.append("Tick events detected - be mindful of performance impact")

    for view in source.lines:
        for name, replacement in DEPRECATED.items():
            if re.search(rf"(?<![\w$]){re.escape(name)}\b", view.code):
                report.warnings.append(f"Line {view.number}: '{name}' is deprecated - {replacement}")

    if not _UNSUBSCRIBE.search(code):
        for view in source.lines:
            if _SUBSCRIBE.search(view.code):
                report.warnings.append(unsubscribed(view.number))
    return report


# --- best practices ---

_EMPTY_CATCH = re.compile(r"\bcatch\s*(\([^)]*\))?\s*\{\s*\}")
_TRY = re.compile(r"\btry\b")
_CATCH = re.compile(r"\bcatch\b")
_ASYNC = re.compile(r"\basync\b")
_AWAIT = re.compile(r"\bawait\b")
_LOOP_HEAD = re.compile(r"\b(for|while)\s*\(")
_FOR = re.compile(r"\bfor\s*\(")
_TIMERS = re.compile(r"\b(setInterval|setTimeout)\s*\(")
_ENUMERATION = re.compile(r"\.(" + "|".join(ENUMERATION_CALLS) + r")\s*\(")


def _closing(code: str, start: int, opener: str, closer: str) -> int:
    """Index of the bracket matching ``code[start]``, or -1."""
    depth = 0
    for i in range(start, len(code)):
        if code[i] == opener:
            depth += 1
        elif code[i] == closer:
            depth -= 1
            if depth == 0:
                return i
    return -1


def loop_bodies(code: str) -> list[tuple[int, str]]:
    """(offset of the loop keyword, body text) for each ``for``/``while`` loop."""
    bodies = []
    for match in _LOOP_HEAD.finditer(code):
        paren = match.end() - 1
        end = _closing(code, paren, "(", ")")
        if end < 0:
            continue
        rest = code[end + 1 :]
        stripped = rest.lstrip()
        if stripped.startswith("{"):
            brace = end + 1 + (len(rest) - len(stripped))
            close = _closing(code, brace, "{", "}")
            body = code[brace : close + 1] if close >= 0 else code[brace:]
        else:
            body = rest.split("\n", 1)[0] if stripped else ""
        bodies.append((match.start(), body))
    return bodies


def best_practices(source: Source, tree: Node | None) -> AnalysisReport:
    report = AnalysisReport()
    code = source.code

    for match in _EMPTY_CATCH.finditer(code):
        report.warnings.append(empty_catch(source.line_at(match.start())))

    if _TRY.search(code) and not _CATCH.search(code):
        report.warnings.append("Try block found without catch - ensure proper error handling")

    if _ASYNC.search(code) and not _AWAIT.search(code):
        report.warnings.append("Async function declared but no await found - verify if needed")

    for offset, body in loop_bodies(code):
        for match in _ENUMERATION.finditer(body):
            report.performance_issues.append(
                loop_enumeration(source.line_at(offset), match.group(1))
            )

    if _TIMERS.search(code):
        report.suggestions.append(
            "Using timers detected - consider system.runInterval / system.runTimeout instead"
        )

    if len(_FOR.findall(code)) > 2:
        report.suggestions.append("Multiple loops detected - consider optimizing for performance")
    return report


# --- structural (needs a clean tree) ---


_REFERENCES = frozenset({"identifier", "shorthand_property_identifier"})


def _catch_findings(root: Node, report: AnalysisReport) -> None:
    for node in syntax.walk(root):
        if node.type != "catch_clause":
            continue
        body = node.child_by_field_name("body")
        if body is None:
            continue
        line = syntax.line_of(node)
        if not body.named_children:
            report.warnings.append(empty_catch(line))
        param = node.child_by_field_name("parameter")
        if param is None or param.type != "identifier":
            continue
        name = syntax.text_of(param)
        used = any(
            n.type in _REFERENCES and syntax.text_of(n) == name for n in syntax.walk(body)
        )
        if not used:
            report.warnings.append(unused_catch_binding(line, name))


def _async_findings(root: Node, report: AnalysisReport) -> None:
    for node in syntax.walk(root):
        if node.type not in syntax.FUNCTION_TYPES or not syntax.is_async(node):
            continue
        awaits = any(
            n.type == "await_expression" for n in syntax.walk(node, syntax.FUNCTION_TYPES)
        )
        if not awaits:
            report.warnings.append(async_without_await(syntax.line_of(node)))


def _loop_findings(root: Node, report: AnalysisReport) -> None:
    for node in syntax.walk(root):
        if node.type not in syntax.LOOP_TYPES:
            continue
        body = node.child_by_field_name("body")
        if body is None:
            continue
        for call in syntax.calls(body):
            name = syntax.callee_name(call)
            if name in ENUMERATION_CALLS:
                report.performance_issues.append(loop_enumeration(syntax.line_of(node), name))


def _subscription_findings(root: Node, report: AnalysisReport) -> None:
    subscribes = []
    for call in syntax.calls(root):
        name = syntax.callee_name(call)
        if name == "unsubscribe":
            return
        if name == "subscribe":
            subscribes.append(call)
    for call in subscribes:
        report.warnings.append(unsubscribed(syntax.line_of(call)))


def structural(source: Source, tree: Node | None) -> AnalysisReport:
    report = AnalysisReport()
    if tree is None:
        return report
    _catch_findings(tree, report)
    _async_findings(tree, report)
    _loop_findings(tree, report)
    _subscription_findings(tree, report)
    return report


RULES: tuple[Rule, ...] = (lexical, platform_api, best_practices, structural)
