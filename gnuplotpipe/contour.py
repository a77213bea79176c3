from __future__ import annotations

from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from gnuplotpipe.commands import format_number
from gnuplotpipe.errors import EmptyInput


class ContourType(str, Enum):
    NONE = "none"
    BASE = "base"
    SURFACE = "surface"
    BOTH = "both"


class ContourParam(str, Enum):
    LEVELS = "levels"
    INCREMENT = "increment"
    DISCRETE = "discrete"


class ContourIncrement(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: float = 0.0
    step: float = 0.1
    end: float = 1.0


class ContourConfig(BaseModel):
    """Contour settings held by a session until ``apply_contour_settings``."""

    model_config = ConfigDict(validate_assignment=True)

    type: ContourType = ContourType.NONE
    param: ContourParam = ContourParam.LEVELS
    levels: int = Field(default=10, gt=0)
    increment: ContourIncrement = Field(default_factory=ContourIncrement)
    discrete_levels: List[float] = Field(default_factory=list)

    def commands(self) -> List[str]:
        if self.type == ContourType.NONE:
            return ["unset contour"]
        lines = [f"set contour {self.type.value}"]
        if self.param == ContourParam.LEVELS:
            lines.append(f"set cntrparam levels {self.levels}")
        elif self.param == ContourParam.INCREMENT:
            inc = self.increment
            lines.append(
                "set cntrparam increment "
                f"{format_number(inc.start)},{format_number(inc.step)},{format_number(inc.end)}"
            )
        else:
            if not self.discrete_levels:
                raise EmptyInput("Discrete contour levels requested but none were given")
            levels = ", ".join(format_number(v) for v in self.discrete_levels)
            lines.append(f"set cntrparam level discrete {levels}")
        return lines
