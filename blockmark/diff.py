"""Block-level and line-level difference computation."""

from __future__ import annotations

import copy
import hashlib
from dataclasses import dataclass
from typing import Any

from blockmark.models import Block, BlockChange


def block_hash(block: Block) -> str:
    """Return an MD5 hex digest of a block's type, content, level and HTML."""
    key = f"{block.type}|{block.content}|{block.level}|{block.html}"
    return hashlib.md5(key.encode("utf-8")).hexdigest()


class BlockDiffer:
    """Reports which blocks changed since the previous call."""

    def __init__(self) -> None:
        self._previous: dict[str, Block] = {}

    def compute_diff(self, new_blocks: dict[str, Block]) -> list[BlockChange]:
        """Compare ``new_blocks`` with the last set seen and remember them."""
        changes: list[BlockChange] = []
        for block_id, new_block in new_blocks.items():
            old_block = self._previous.get(block_id)
            if old_block is None:
                changes.append(BlockChange("added", block_id, new_block))
            elif block_hash(old_block) != block_hash(new_block):
                changes.append(BlockChange("modified", block_id, new_block))

        changes.extend(
            BlockChange("removed", block_id, old_block)
            for block_id, old_block in self._previous.items()
            if block_id not in new_blocks
        )

        self._previous = {
            block_id: copy.deepcopy(block) for block_id, block in new_blocks.items()
        }
        return changes


@dataclass
class LineChange:
    """A line that was added, removed or left unchanged."""

    type: str
    line_num: int
    content: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "lineNum": self.line_num, "content": self.content}


class LineDiffer:
    """Line-by-line diff based on the longest common subsequence."""

    def compute_line_diff(self, old_content: str, new_content: str) -> list[LineChange]:
        """Return the changes that turn ``old_content`` into ``new_content``."""
        return _lcs_diff(old_content.split("\n"), new_content.split("\n"))


def _lcs_diff(old_lines: list[str], new_lines: list[str]) -> list[LineChange]:
    table = [[0] * (len(new_lines) + 1) for _ in range(len(old_lines) + 1)]
    for i, old_line in enumerate(old_lines, 1):
        for j, new_line in enumerate(new_lines, 1):
            if old_line == new_line:
                table[i][j] = table[i - 1][j - 1] + 1
            else:
                table[i][j] = max(table[i - 1][j], table[i][j - 1])

    changes: list[LineChange] = []
    i, j = len(old_lines), len(new_lines)
    while i > 0 or j > 0:
        if i > 0 and j > 0 and old_lines[i - 1] == new_lines[j - 1]:
            changes.append(LineChange("unchanged", j, new_lines[j - 1]))
            i -= 1
            j -= 1
        elif j > 0 and (i == 0 or table[i][j - 1] >= table[i - 1][j]):
            changes.append(LineChange("added", j, new_lines[j - 1]))
            j -= 1
        else:
            changes.append(LineChange("removed", i, old_lines[i - 1]))
            i -= 1
    changes.reverse()
    return changes