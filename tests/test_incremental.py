import pytest

from blockmark.incremental import (
    IncrementalParser,
    generate_line_id,
    render_line_to_html,
)


@pytest.fixture
def parser():
    return IncrementalParser()


def test_incremental_parse_reports_changes(parser):
    first = parser.parse_with_diff("# First heading\n\nSome content")
    assert len(first.changes) > 0
    assert {change.type for change in first.changes} == {"added"}

    second = parser.parse_with_diff("# Updated heading\n\nSome content\n\n## New section")
    assert len(second.changes) > 0
    kinds = {change.type for change in second.changes}
    assert {"added", "removed"} <= kinds


def test_identical_content_has_no_changes(parser):
    text = "# Title\n\nBody text"
    parser.parse_with_diff(text)
    again = parser.parse_with_diff(text)
    assert again.changes == []
    assert again.success is True


def test_removed_changes_carry_old_blocks(parser):
    first = parser.parse_with_diff("# Gone")
    second = parser.parse_with_diff("Something else")
    removed = {c.block_id for c in second.changes if c.type == "removed"}
    assert removed == set(first.blocks)


@pytest.mark.parametrize(
    "line, line_num, want_type",
    [
        ("# Test Heading", 1, "h1"),
        ("- List item", 2, "unordered_list"),
        ("Regular paragraph", 3, "paragraph"),
    ],
)
def test_parse_line(parser, line, line_num, want_type):
    block = parser.parse_line(line, line_num)
    assert block is not None
    assert block.type == want_type
    assert block.position.line == line_num
    assert block.position.start == 0
    assert block.position.end == len(line)
    assert block.content == line


@pytest.mark.parametrize("line", ["", "   ", "\t"])
def test_parse_line_blank_returns_none(parser, line):
    assert parser.parse_line(line, 4) is None


def test_parse_line_uses_rendered_html(parser):
    block = parser.parse_line("# Test Heading", 1)
    assert block.html == '<h1 id="test-heading">Test Heading</h1>\n'


def test_parse_line_ordered_list(parser):
    block = parser.parse_line("1. one", 5)
    assert block.type == "ordered_list"
    assert "<li>one</li>" in block.html


def test_parse_line_checkbox_keeps_line_html(parser):
    block = parser.parse_line("- [ ] task", 6)
    assert block.type == "checkbox"
    assert block.html == '<ul><li><input type="checkbox" disabled>task</li></ul>'


def test_parse_line_id(parser):
    block = parser.parse_line("Regular paragraph", 3)
    assert block.id == generate_line_id("Regular paragraph", 3)
    assert block.id.startswith("line_3_")
    assert len(block.id) == 12


def test_generate_line_id_blank_uses_placeholder_text():
    assert generate_line_id("   ", 7) == generate_line_id("empty", 7)
    assert generate_line_id("  same ", 2) == generate_line_id("same", 2)


@pytest.mark.parametrize(
    "line, syntax, expected",
    [
        ("# Title", "h1", "<h1>Title</h1>"),
        ("## Title", "h2", "<h2>Title</h2>"),
        ("###### Deep", "h6", "<h6>Deep</h6>"),
        ("* star", "unordered_list", "<ul><li>star</li></ul>"),
        ("+ plus", "unordered_list", "<ul><li>plus</li></ul>"),
        ("3. third", "ordered_list", "<ol><li>third</li></ol>"),
        ("3third", "ordered_list", "<p>3third</p>"),
        ("> quote", "blockquote", "<blockquote><p>quote</p></blockquote>"),
        ("```", "code_block", "<pre><code>"),
        ("```py", "code_block", '<pre><code class="language-py">'),
        ("plain", "code_block", "<pre><code>plain</code></pre>"),
        (
            "- [x] done",
            "checkbox",
            '<ul><li><input type="checkbox" checked disabled>done</li></ul>',
        ),
        (
            "- [ ] todo",
            "checkbox",
            '<ul><li><input type="checkbox" disabled>todo</li></ul>',
        ),
        ("just text", "paragraph", "<p>just text</p>"),
    ],
)
def test_render_line_to_html(line, syntax, expected):
    assert render_line_to_html(line, syntax) == expected