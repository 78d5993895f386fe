"""
robot — hull painting robot driven by an Intcode brain.

The robot is an I/O channel. Input is the colour of the panel under it
(0 black, 1 white, unpainted panels are black). Outputs come in pairs:
first the colour to paint, then the turn (0 left, 1 right), after which
the robot moves forward one panel. It starts at (0, 0) facing up; y grows
upward.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from .channels import IOChannel
from .machine import IntcodeMachine

BLACK = 0
WHITE = 1

BLOCK = "█"

# Headings in clockwise order
UP, RIGHT, DOWN, LEFT = range(4)
STEPS = {UP: (0, 1), RIGHT: (1, 0), DOWN: (0, -1), LEFT: (-1, 0)}


class PaintingRobot(IOChannel):
    """Channel that paints a sparse grid, toggling between paint and turn."""

    def __init__(self, start_colour: int = BLACK):
        self.grid: dict[tuple[int, int], int] = {}
        self.position = (0, 0)
        self.heading = UP
        self._turning = False
        # colour of the origin until something paints over it
        self.start_colour = start_colour

    @property
    def painted_count(self) -> int:
        """Panels painted at least once (in any colour)."""
        return len(self.grid)

    def colour_at(self, pos: tuple[int, int]) -> int:
        if pos in self.grid:
            return self.grid[pos]
        return self.start_colour if pos == (0, 0) else BLACK

    def request_input(self) -> int | None:
        return self.colour_at(self.position)

    def accept_output(self, value: int) -> bool:
        if not self._turning:
            self.grid[self.position] = WHITE if value == 1 else BLACK
        else:
            self.heading = (self.heading + (1 if value == 1 else -1)) % 4
            dx, dy = STEPS[self.heading]
            x, y = self.position
            self.position = (x + dx, y + dy)
        self._turning = not self._turning
        return False

    def as_array(self) -> np.ndarray:
        """Boolean image of the painted region, row 0 = highest y."""
        if not self.grid:
            return np.zeros((0, 0), dtype=bool)
        coords = np.array(list(self.grid.keys()))
        min_x, min_y = coords.min(axis=0)
        max_x, max_y = coords.max(axis=0)
        image = np.zeros((max_y - min_y + 1, max_x - min_x + 1), dtype=bool)
        for (x, y), colour in self.grid.items():
            if colour == WHITE:
                image[max_y - y, x - min_x] = True
        return image

    def render(self) -> str:
        return "\n".join(
            "".join(BLOCK if cell else " " for cell in row)
            for row in self.as_array()
        )


def paint_hull(program: Sequence[int], start_white: bool = False) -> PaintingRobot:
    """Run ``program`` as the robot's brain until it halts."""
    robot = PaintingRobot(WHITE if start_white else BLACK)
    IntcodeMachine(list(program), robot).run()
    return robot
