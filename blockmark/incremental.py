"""Line-level parsing and block diffs between successive parses."""

from __future__ import annotations

import hashlib

from blockmark.diff import BlockDiffer, LineDiffer
from blockmark.models import Block, ParseResponse, Position
from blockmark.parser import MarkdownParser


def generate_line_id(line: str, line_number: int) -> str:
    """Return a 12-character id built from the line number and trimmed text."""
    content = line.strip() or "empty"
    digest = hashlib.md5(content.encode("utf-8")).hexdigest()
    return f"line_{line_number}_{digest}"[:12]


def render_line_to_html(line: str, syntax_type: str) -> str:
    """Render one line to HTML according to its detected syntax type."""
    trimmed = line.strip()

    if syntax_type in ("h1", "h2", "h3", "h4", "h5", "h6"):
        level = int(syntax_type[1])
        content = trimmed.removeprefix("#" * level + " ")
        return f"<{syntax_type}>{content}</{syntax_type}>"
    if syntax_type == "unordered_list":
        content = trimmed.removeprefix("- ").removeprefix("* ").removeprefix("+ ")
        return f"<ul><li>{content}</li></ul>"
    if syntax_type == "ordered_list":
        parts = trimmed.split(". ", 1)
        if len(parts) == 2:
            return f"<ol><li>{parts[1]}</li></ol>"
        return f"<p>{line}</p>"
    if syntax_type == "blockquote":
        return f"<blockquote><p>{trimmed.removeprefix('> ')}</p></blockquote>"
    if syntax_type == "code_block":
        if trimmed.startswith("```"):
            lang = trimmed.removeprefix("```")
            if not lang:
                return "<pre><code>"
            return f'<pre><code class="language-{lang}">'
        return f"<pre><code>{line}</code></pre>"
    if syntax_type == "checkbox":
        if "- [x]" in trimmed:
            content = trimmed.replace("- [x]", "", 1).strip()
            return f'<ul><li><input type="checkbox" checked disabled>{content}</li></ul>'
        content = trimmed.replace("- [ ]", "", 1).strip()
        return f'<ul><li><input type="checkbox" disabled>{content}</li></ul>'
    return f"<p>{line}</p>"


class IncrementalParser:
    """Parser that remembers the previous result to report block changes."""

    def __init__(self) -> None:
        self.base_parser = MarkdownParser()
        self.differ = BlockDiffer()
        self.line_differ = LineDiffer()

    def parse_with_diff(self, content: str) -> ParseResponse:
        """Parse ``content`` and attach the changes since the previous call."""
        result = self.base_parser.parse(content)
        result.changes = self.differ.compute_diff(result.blocks)
        return result

    def parse_line(self, line: str, line_number: int) -> Block | None:
        """Parse one line into a block, or return ``None`` for a blank line."""
        if not line.strip():
            return None

        syntax_type = self.base_parser.detect_notion_syntax(line)
        block = Block(
            id=generate_line_id(line, line_number),
            type=syntax_type,
            content=line,
            html=render_line_to_html(line, syntax_type),
            position=Position(start=0, end=len(line), line=line_number),
        )

        parsed = self.base_parser.parse(line)
        for candidate in parsed.blocks.values():
            if (
                candidate.type != "unknown"
                and candidate.html
                and syntax_type in ("paragraph", candidate.type)
            ):
                block.html = candidate.html
                if syntax_type == "paragraph":
                    block.type = candidate.type
                break
        return block