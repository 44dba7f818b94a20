from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Hashable, List, Tuple


class InvalidInputError(ValueError):
    pass


class DrawStateError(RuntimeError):
    pass


class DrawErrorCode(str, Enum):
    INVALID_INPUT = "InvalidInput"
    MINIMUM_PARTICIPANTS_REQUIRED = "MinimumParticipantsRequired"
    EXCLUSION_RULES_PREVENT_VALID_ASSIGNMENT = "ExclusionRulesPreventValidAssignment"
    ASSIGNMENT_REPAIR_EXHAUSTED = "AssignmentRepairExhausted"


@dataclass(frozen=True)
class DrawError:
    code: DrawErrorCode
    message: str
    participants: Tuple[Hashable, ...] = ()

    @property
    def retryable(self) -> bool:
        # A different seed may succeed; every other code is a property of the input.
        return self.code == DrawErrorCode.ASSIGNMENT_REPAIR_EXHAUSTED


@dataclass(frozen=True)
class FeasibilityResult:
    """Outcome of a read-only feasibility check.

    ``errors`` lists error codes in the order they were found. ``unmatched``
    holds the santas that compete for too few recipients when exclusion
    rules make a perfect matching impossible.
    """

    problems: Tuple[DrawError, ...] = ()
    unmatched: Tuple[Hashable, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.problems

    @property
    def errors(self) -> List[str]:
        return [problem.code.value for problem in self.problems]


def invalid_input(message: str) -> DrawError:
    return DrawError(DrawErrorCode.INVALID_INPUT, message)
