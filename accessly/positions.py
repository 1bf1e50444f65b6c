"""
Source Position Index

Maps character offsets in an HTML source to 1-based line numbers.

Usage:
    from accessly.positions import PositionIndex

    index = PositionIndex.build(html)
    line = index.line_of(offset)
"""

from bisect import bisect_right
from typing import List


class PositionIndex:
    """
    Cumulative line-start offsets for a source text.

    Entry i is the offset of the first character of line i + 1. The list is
    strictly increasing and holds one entry more than the text has lines.
    """

    def __init__(self, offsets: List[int]):
        self.offsets = offsets

    @classmethod
    def build(cls, text: str) -> 'PositionIndex':
        """
        Build the index for a source text.

        Args:
            text: Complete source text

        Returns:
            PositionIndex over the lines of text
        """
        offsets = [0]
        total = 0
        for line in text.split('\n'):
            total += len(line) + 1
            offsets.append(total)
        return cls(offsets)

    @property
    def line_count(self) -> int:
        return len(self.offsets) - 1

    def line_of(self, offset: int) -> int:
        """
        Resolve an offset to its 1-based line number.

        Offsets outside the indexed text resolve to line 1.
        """
        if offset < 0 or offset >= self.offsets[-1]:
            return 1
        return bisect_right(self.offsets, offset)

    def offset_of(self, line: int, column: int = 0) -> int:
        """Convert a 1-based line and 0-based column into an offset."""
        if line < 1 or line > self.line_count:
            raise ValueError(f"Line {line} outside 1..{self.line_count}")
        return self.offsets[line - 1] + column
