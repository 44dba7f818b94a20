from santadraw.engine.constraints import ConstraintModel
from santadraw.engine.engine import (
    DrawEngine,
    DrawOutcome,
    DrawRun,
    DrawState,
    execute_draw,
    validate_draw,
)
from santadraw.engine.errors import (
    DrawError,
    DrawErrorCode,
    DrawStateError,
    FeasibilityResult,
    InvalidInputError,
)
from santadraw.engine.matching import BipartiteFeasibilityChecker
from santadraw.engine.permutation import PermutationGenerator

__all__ = [
    "BipartiteFeasibilityChecker",
    "ConstraintModel",
    "DrawEngine",
    "DrawError",
    "DrawErrorCode",
    "DrawOutcome",
    "DrawRun",
    "DrawState",
    "DrawStateError",
    "FeasibilityResult",
    "InvalidInputError",
    "PermutationGenerator",
    "execute_draw",
    "validate_draw",
]
