"""Full-source parsing with tree-sitter and small helpers for walking the tree."""

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from functools import lru_cache

import tree_sitter_javascript
from tree_sitter import Language, Node, Parser, Tree

logger = logging.getLogger(__name__)

FUNCTION_TYPES = frozenset(
    {
        "function",
        "function_expression",
        "function_declaration",
        "generator_function",
        "generator_function_declaration",
        "arrow_function",
        "method_definition",
    }
)
LOOP_TYPES = frozenset({"for_statement", "for_in_statement", "while_statement", "do_statement"})


@lru_cache(maxsize=1)
def _parser() -> Parser:
    return Parser(Language(tree_sitter_javascript.language()))


@dataclass
class ParseResult:
    tree: Tree
    error: str | None = None

    @property
    def available(self) -> bool:
        """A tree is only used for structural checks when it parsed cleanly."""
        return self.error is None

    @property
    def root(self) -> Node | None:
        return self.tree.root_node if self.available else None


def first_error(node: Node) -> Node | None:
    if node.is_error or node.is_missing:
        return node
    if not node.has_error:
        return None
    for child in node.children:
        found = first_error(child)
        if found is not None:
            return found
    return None


def line_of(node: Node) -> int:
    return node.start_point[0] + 1


def text_of(node: Node | None) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def describe_error(node: Node) -> str:
    line = line_of(node)
    if node.is_missing:
        return f"Syntax Error: missing '{node.type}' (line {line})"
    snippet = text_of(node).strip().split("\n", 1)[0][:30]
    if not snippet:
        return f"Syntax Error: unexpected token (line {line})"
    return f"Syntax Error: unexpected '{snippet}' (line {line})"


def parse(source: str) -> ParseResult:
    tree = _parser().parse(source.encode("utf-8"))
    node = first_error(tree.root_node)
    if node is None:
        return ParseResult(tree)
    error = describe_error(node)
    logger.debug(error)
    return ParseResult(tree, error)


def walk(node: Node, stop: frozenset[str] = frozenset()) -> Iterator[Node]:
    """Pre-order walk below ``node``; subtrees rooted at a ``stop`` type are not entered."""
    for child in node.children:
        yield child
        if child.type not in stop:
            yield from walk(child, stop)


def is_async(node: Node) -> bool:
    return any(child.type == "async" for child in node.children)


def callee_name(call: Node) -> str | None:
    """Name being called: ``foo`` for ``foo()``, ``bar`` for ``a.b.bar()``."""
    fn = call.child_by_field_name("function")
    if fn is None:
        return None
    if fn.type == "identifier":
        return text_of(fn)
    if fn.type == "member_expression":
        return text_of(fn.child_by_field_name("property"))
    return None


def calls(node: Node, stop: frozenset[str] = frozenset()) -> Iterator[Node]:
    return (n for n in walk(node, stop) if n.type == "call_expression")
