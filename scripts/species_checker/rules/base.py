"""Rule protocol, violation types, and severity/category enums."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, List, Protocol, runtime_checkable

from ..model import tick_to_beat, tick_to_measure

if TYPE_CHECKING:
    from ..config import EngineConfig
    from ..timeline import Window


class Severity(Enum):
    """Violation severity level."""
    ERROR = "error"
    WARNING = "warning"


class Category(Enum):
    """Rule category."""
    BOUNDARY = "boundary"
    MOTION = "motion"
    DISSONANCE = "dissonance"
    MELODIC = "melodic"
    RANGE = "range"


@dataclass(frozen=True)
class Violation:
    """A single rule violation at one timeline position."""
    rule_id: str
    category: Category
    severity: Severity
    tick: int
    message: str

    @property
    def beat(self) -> float:
        return tick_to_beat(self.tick)

    @property
    def measure(self) -> int:
        return tick_to_measure(self.tick)

    @property
    def location(self) -> str:
        """Human-readable location string."""
        return f"measure {self.measure} beat {self.beat}"

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR


@dataclass
class RuleResult:
    """Per-rule summary of one validation pass."""
    rule_id: str
    category: Category
    violations: List[Violation] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return self.error_count == 0

    @property
    def error_count(self) -> int:
        return sum(1 for v in self.violations if v.severity is Severity.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for v in self.violations if v.severity is Severity.WARNING)


@runtime_checkable
class Rule(Protocol):
    """Protocol for a window rule.

    ``check`` must be a pure function of the window and config: no state is
    kept between calls.
    """

    @property
    def rule_id(self) -> str: ...

    @property
    def category(self) -> Category: ...

    def check(self, window: Window, config: EngineConfig) -> List[Violation]: ...
