"""Markdown to HTML rendering with per-block extraction and line syntax detection."""

from __future__ import annotations

import hashlib
import re
import string
from typing import Any

from markdown_it import MarkdownIt
from markdown_it.rules_core import StateCore
from markdown_it.token import Token
from markdown_it.tree import SyntaxTreeNode

from blockmark.models import Block, ParseResponse, Position

_TASK_MARKER = re.compile(r"^\[([ xX])\](?:\s+|$)")
_ID_SPACES = " \t\n\v\f\r"


def _slug(text: str) -> str:
    """Build a heading id: ASCII alphanumerics lowered, blanks, '-' and '_' as '-'."""
    pieces = []
    for char in text.strip(_ID_SPACES):
        if ord(char) >= 128:
            continue
        if char.isalnum():
            pieces.append(char.lower())
        elif char in _ID_SPACES or char in "-_":
            pieces.append("-")
    return "".join(pieces) or "heading"


def _heading_text(inline: Token) -> str:
    return "".join(
        child.content
        for child in inline.children or ()
        if child.type in ("text", "code_inline", "text_special")
    )


def _heading_ids(state: StateCore) -> None:
    """Give every heading a unique ``id`` attribute derived from its text."""
    used: set[str] = set()
    tokens = state.tokens
    for index, token in enumerate(tokens):
        if token.type != "heading_open" or token.attrGet("id") is not None:
            continue
        if index + 1 >= len(tokens) or tokens[index + 1].type != "inline":
            continue
        base = _slug(_heading_text(tokens[index + 1]))
        candidate = base
        counter = 1
        while candidate in used:
            candidate = f"{base}-{counter}"
            counter += 1
        used.add(candidate)
        token.attrSet("id", candidate)


def _task_items(state: StateCore) -> None:
    """Turn a leading ``[ ]`` or ``[x]`` in a list item into a disabled checkbox."""
    tokens = state.tokens
    for index in range(2, len(tokens)):
        inline = tokens[index]
        if inline.type != "inline":
            continue
        if tokens[index - 1].type != "paragraph_open":
            continue
        if tokens[index - 2].type != "list_item_open":
            continue
        children = inline.children or []
        if not children or children[0].type != "text":
            continue
        match = _TASK_MARKER.match(children[0].content)
        if match is None:
            continue
        checked = 'checked="" ' if match.group(1) in "xX" else ""
        children[0].content = children[0].content[match.end():]
        checkbox = Token("html_inline", "", 0)
        checkbox.content = f'<input {checked}disabled="" type="checkbox" /> '
        children.insert(0, checkbox)


def _build_markdown() -> MarkdownIt:
    md = MarkdownIt("commonmark", {"breaks": True, "html": True, "xhtmlOut": True})
    md.enable(["table", "strikethrough"])
    md.core.ruler.push("heading_ids", _heading_ids)
    md.core.ruler.push("task_items", _task_items)
    return md


def detect_notion_syntax(line: str) -> str:
    """Classify a single line by its Notion-style prefix."""
    trimmed = line.strip()

    for level in range(1, 7):
        if trimmed.startswith("#" * level + " "):
            return f"h{level}"

    if trimmed.startswith(("- [ ]", "- [x]")):
        return "checkbox"
    if trimmed.startswith(("- ", "* ", "+ ")):
        return "unordered_list"
    if trimmed and trimmed[0] in string.digits and ". " in trimmed:
        return "ordered_list"
    if trimmed.startswith("```"):
        return "code_block"
    if trimmed.startswith("> "):
        return "blockquote"
    return "paragraph"


def _line_starts(source: str) -> list[int]:
    return [0, *(match.end() for match in re.finditer("\n", source))]


class MarkdownParser:
    """GitHub-flavoured markdown renderer that also reports the blocks it found.

    Block positions are character offsets into the parsed text.
    """

    def __init__(self) -> None:
        self._md = _build_markdown()

    def parse(self, content: str) -> ParseResponse:
        """Render ``content`` to HTML and collect its blocks keyed by id."""
        if content == "":
            return ParseResponse(html="", blocks={}, success=True)

        env: dict[str, Any] = {}
        tokens = self._md.parse(content, env)
        html = self._md.renderer.render(tokens, self._md.options, env)
        tree = SyntaxTreeNode(tokens)
        return ParseResponse(
            html=html,
            blocks=self._extract_blocks(tree, content, env),
            success=True,
        )

    def parse_incremental(self, content: str, block_id: str = "") -> ParseResponse:
        """Parse ``content`` for a real-time update; the whole text is re-parsed."""
        return self.parse(content)

    def detect_notion_syntax(self, line: str) -> str:
        """Classify a single line by its Notion-style prefix."""
        return detect_notion_syntax(line)

    def _extract_blocks(
        self, tree: SyntaxTreeNode, source: str, env: dict[str, Any]
    ) -> dict[str, Block]:
        starts = _line_starts(source)
        blocks: dict[str, Block] = {}
        for node in tree.walk():
            if node.is_root or node.type == "inline" or node.map is None:
                continue
            block = self._node_to_block(node, source, starts, env)
            blocks[block.id] = block
        return blocks

    def _node_to_block(
        self,
        node: SyntaxTreeNode,
        source: str,
        starts: list[int],
        env: dict[str, Any],
    ) -> Block:
        start, end = self._span(node, source, starts)
        content = source[start:end] if end > start else ""
        digest = hashlib.md5(f"{content}-{start}-{end}".encode("utf-8")).hexdigest()
        block_type, level = self._classify(node)
        return Block(
            id=digest[:8],
            type=block_type,
            level=level,
            content=content,
            html=self._md.renderer.render(node.to_tokens(), self._md.options, env),
            position=Position(start=start, end=end),
        )

    @staticmethod
    def _span(node: SyntaxTreeNode, source: str, starts: list[int]) -> tuple[int, int]:
        first, last = node.map
        start = starts[first] if first < len(starts) else len(source)
        end = starts[last] if last < len(starts) else len(source)
        while end > start and source[end - 1] in "\r\n":
            end -= 1
        if node.type == "paragraph" and node.children:
            first_line = node.children[0].content.split("\n", 1)[0]
            if first_line:
                offset = source.find(first_line, start, end)
                if offset >= 0:
                    start = offset
        return start, end

    @staticmethod
    def _classify(node: SyntaxTreeNode) -> tuple[str, int]:
        kind = node.type
        if kind == "heading":
            level = int(node.tag[1:])
            return (f"h{level}" if 1 <= level <= 6 else "heading"), level
        if kind == "paragraph":
            opening = node.nester_tokens.opening
            return ("unknown" if opening.hidden else "paragraph"), 0
        simple = {
            "bullet_list": "unordered_list",
            "ordered_list": "ordered_list",
            "list_item": "list_item",
            "code_block": "code_block",
            "fence": "fenced_code_block",
            "blockquote": "blockquote",
            "hr": "thematic_break",
        }
        return simple.get(kind, "unknown"), 0