# This file is a part of WhatShouldWePlay
# Copyright (C) 2020 TGRCDev

# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.

# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

import math
import random
from typing import Any, Dict, Iterator, List, NamedTuple, Optional, Sequence, Tuple

from .library import Game

SPIN_DURATION = 2.0 # seconds
MIN_ROTATIONS = 5
MAX_ROTATIONS = 8
POINTER_ANGLE = 270 # top of the dial, in the dial's own frame

LABEL_MAX_LENGTH = 18
LABEL_TRUNCATED_LENGTH = 16

WEDGE_COLORS = [
    "#8B5CF6",
    "#EC4899",
    "#6366F1",
    "#A855F7",
    "#D946EF",
    "#7C3AED",
    "#DB2777",
    "#9333EA",
    "#C026D3",
    "#8B5CF6",
]

class WheelEmptyError(Exception):
    def __str__(self):
        return "WheelEmptyError, There are no games on the wheel to spin"

class WheelBusyError(Exception):
    def __str__(self):
        return "WheelBusyError, The wheel is already spinning"

class SpinPlan(NamedTuple):
    start: float
    distance: float
    duration: float = SPIN_DURATION

    @property
    def end(self) -> float:
        return self.start + self.distance

def ease_out_cubic(progress: float) -> float:
    return 1 - (1 - progress) ** 3

def plan_spin(start_rotation: float = 0.0, rng: random.Random = None) -> SpinPlan:
    rng = rng or random
    rotations = MIN_ROTATIONS + rng.random() * (MAX_ROTATIONS - MIN_ROTATIONS)
    offset = rng.random() * 360
    return SpinPlan(start_rotation, rotations * 360 + offset)

# Returns: The wheel's rotation in degrees, `elapsed` seconds into the spin.
# Not wrapped to 360; callers that draw the wheel should take the result modulo 360.
def rotation_at(plan: SpinPlan, elapsed: float) -> float:
    if plan.duration <= 0:
        return plan.end
    progress = min(max(elapsed / plan.duration, 0.0), 1.0)
    return plan.start + plan.distance * ease_out_cubic(progress)

# Returns: Index of the wedge sitting under the pointer when the wheel rests at `angle` degrees.
# Wedge i covers [i * 360/count, (i+1) * 360/count) in the dial's frame.
def sector_at_pointer(angle: float, count: int) -> int:
    if count <= 0:
        raise ValueError("count must be positive")
    slice_angle = 360 / count
    under_pointer = (POINTER_ANGLE - angle % 360 + 360) % 360
    return int(math.floor(under_pointer / slice_angle)) % count

def wedge_label(name: str) -> str:
    if len(name) > LABEL_MAX_LENGTH:
        return name[:LABEL_TRUNCATED_LENGTH] + "..."
    return name

# Lays the games out as equal wedges around the dial
#
# Returns: List of dictionaries, one per game, in wheel order:
# ["index"]: Wedge index
# ["start"], ["end"]: Wedge edges in degrees
# ["color"]: Fill colour
# ["label"]: Text drawn on the wedge
# ["appid"]: The game's app ID
def wedges(games: Sequence[Game]) -> List[Dict[str, Any]]:
    if not games:
        return []
    slice_angle = 360 / len(games)
    return [
        {
            "index": index,
            "start": index * slice_angle,
            "end": (index + 1) * slice_angle,
            "color": WEDGE_COLORS[index % len(WEDGE_COLORS)],
            "label": wedge_label(game.name),
            "appid": game.appid
        } for index, game in enumerate(games)
    ]

class Wheel:
    """A dial of equal wedges, one per game.

    The wheel does not own a clock. Whatever drives the animation calls
    advance() with the time since the spin started, and the wheel settles and
    picks a game once the spin's duration has passed.
    """

    def __init__(self, games: Sequence[Game] = (), rotation: float = 0.0):
        self.games: List[Game] = list(games)
        self.rotation = rotation
        self.spinning = False
        self.selected: Optional[Game] = None
        self.selected_index: Optional[int] = None
        self.plan: Optional[SpinPlan] = None

    def set_games(self, games: Sequence[Game]):
        if self.spinning:
            raise WheelBusyError()
        self.games = list(games)
        self.selected = None
        self.selected_index = None

    def spin(self, rng: random.Random = None) -> SpinPlan:
        if not self.games:
            raise WheelEmptyError()
        if self.spinning:
            raise WheelBusyError()

        self.spinning = True
        self.selected = None
        self.selected_index = None
        self.plan = plan_spin(self.rotation, rng)
        return self.plan

    # Returns: The angle to draw the wheel at (0 to 360)
    def advance(self, elapsed: float) -> float:
        if not self.spinning:
            return self.rotation % 360

        current = rotation_at(self.plan, elapsed)
        if elapsed >= self.plan.duration:
            self.rotation = current % 360
            self.spinning = False
            self.selected_index = sector_at_pointer(self.rotation, len(self.games))
            self.selected = self.games[self.selected_index]
        return current % 360

    def frames(self, fps: float = 60.0) -> Iterator[Tuple[float, float]]:
        if not self.spinning:
            return
        frame = 0
        while self.spinning:
            elapsed = min(frame / fps, self.plan.duration)
            yield elapsed, self.advance(elapsed)
            frame += 1
