import pytest

from blockmark.diff import BlockDiffer, LineChange, LineDiffer, block_hash
from blockmark.models import Block


def make_block(block_id, content="text", html="<p>text</p>", level=0):
    return Block(id=block_id, type="paragraph", content=content, html=html, level=level)


def test_block_hash_is_stable_and_sensitive():
    block = make_block("a")
    assert block_hash(block) == block_hash(make_block("other-id"))
    assert block_hash(block) != block_hash(make_block("a", html="<p>changed</p>"))
    assert block_hash(block) != block_hash(make_block("a", level=2))
    assert all(ch in "0123456789abcdef" for ch in block_hash(block))


def test_first_diff_reports_everything_added():
    differ = BlockDiffer()
    blocks = {"a": make_block("a"), "b": make_block("b")}
    changes = differ.compute_diff(blocks)
    assert [(c.type, c.block_id) for c in changes] == [("added", "a"), ("added", "b")]
    assert changes[0].block is blocks["a"]


def test_same_blocks_report_no_changes():
    differ = BlockDiffer()
    differ.compute_diff({"a": make_block("a")})
    assert differ.compute_diff({"a": make_block("a")}) == []


def test_modified_and_removed_blocks():
    differ = BlockDiffer()
    differ.compute_diff({"a": make_block("a"), "b": make_block("b")})
    changes = differ.compute_diff({"a": make_block("a", content="new")})
    assert [(c.type, c.block_id) for c in changes] == [("modified", "a"), ("removed", "b")]
    assert changes[1].block.id == "b"


def test_previous_blocks_are_copied():
    differ = BlockDiffer()
    block = make_block("a")
    differ.compute_diff({"a": block})
    block.content = "mutated"
    changes = differ.compute_diff({"a": block})
    assert [c.type for c in changes] == ["modified"]


def test_empty_to_empty():
    assert BlockDiffer().compute_diff({}) == []


def test_line_diff_identical():
    changes = LineDiffer().compute_line_diff("a\nb", "a\nb")
    assert [c.type for c in changes] == ["unchanged", "unchanged"]
    assert [c.line_num for c in changes] == [1, 2]


def test_line_diff_appended_line():
    changes = LineDiffer().compute_line_diff("a", "a\nb")
    assert changes == [LineChange("unchanged", 1, "a"), LineChange("added", 2, "b")]


@pytest.mark.parametrize(
    "old, new",
    [
        ("a\nb\nc", "a\nc"),
        ("", "x\ny"),
        ("one\ntwo\nthree", "zero\ntwo\nfour\nthree"),
        ("same", "different"),
    ],
)
def test_line_diff_reconstructs_both_sides(old, new):
    changes = LineDiffer().compute_line_diff(old, new)
    rebuilt_old = [c.content for c in changes if c.type in ("unchanged", "removed")]
    rebuilt_new = [c.content for c in changes if c.type in ("unchanged", "added")]
    assert rebuilt_old == old.split("\n")
    assert rebuilt_new == new.split("\n")
    added_numbers = [c.line_num for c in changes if c.type in ("unchanged", "added")]
    assert added_numbers == list(range(1, len(rebuilt_new) + 1))


def test_line_change_to_dict():
    assert LineChange("removed", 3, "gone").to_dict() == {
        "type": "removed",
        "lineNum": 3,
        "content": "gone",
    }