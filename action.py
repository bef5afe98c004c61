from dataclasses import dataclass

from board import DIRECTION_NAMES, ILLEGAL

SLIDE = "slide"
PLACE = "place"
NULL = "null"


@dataclass(frozen=True)
class Action:
    """
    Move token passed between the agents and the driver.

    A slide carries a direction, a placement carries a cell index and a
    tile exponent, and the null action means "no legal action available".
    """
    kind: str = NULL
    direction: int = -1
    cell: int = -1
    tile: int = 0

    @classmethod
    def slide(cls, direction):
        return cls(SLIDE, direction=direction)

    @classmethod
    def place(cls, cell, tile):
        return cls(PLACE, cell=cell, tile=tile)

    @classmethod
    def null(cls):
        return cls()

    def __bool__(self):
        return self.kind != NULL

    def apply(self, board):
        """Apply the action to `board` in place and return its reward (-1 if it cannot be applied)."""
        if self.kind == SLIDE:
            return board.slide(self.direction)
        if self.kind == PLACE:
            return board.place(self.cell, self.tile)
        return ILLEGAL

    def __str__(self):
        if self.kind == SLIDE:
            return f"#{DIRECTION_NAMES[self.direction]}"
        if self.kind == PLACE:
            return f"@{self.cell}+{1 << self.tile}"
        return "??"
