from __future__ import annotations

import random
import secrets
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Hashable, Iterable, List, Optional, Tuple

from loguru import logger

from santadraw.core.config import Settings
from santadraw.engine.constraints import ConstraintModel
from santadraw.engine.errors import (
    DrawError,
    DrawErrorCode,
    DrawStateError,
    FeasibilityResult,
    InvalidInputError,
    invalid_input,
)
from santadraw.engine.matching import BipartiteFeasibilityChecker
from santadraw.engine.permutation import DEFAULT_MAX_ATTEMPTS, Assignment, PermutationGenerator

DEFAULT_DEADLINE_SECONDS = 5.0
SEED_BITS = 64


class DrawState(str, Enum):
    IDLE = "idle"
    CHECKING = "checking"
    INFEASIBLE = "infeasible"
    FEASIBLE_BUT_UNCONFIRMED = "feasible_but_unconfirmed"
    GENERATING = "generating"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


_TRANSITIONS = {
    DrawState.IDLE: {DrawState.CHECKING},
    DrawState.CHECKING: {
        DrawState.INFEASIBLE,
        DrawState.FEASIBLE_BUT_UNCONFIRMED,
        DrawState.GENERATING,
    },
    DrawState.GENERATING: {DrawState.SUCCEEDED, DrawState.EXHAUSTED},
}


@dataclass
class DrawRun:
    """One traversal of the draw state machine; never goes back."""

    state: DrawState = DrawState.IDLE
    history: List[DrawState] = field(default_factory=lambda: [DrawState.IDLE])

    def advance(self, target: DrawState) -> None:
        if target not in _TRANSITIONS.get(self.state, set()):
            raise DrawStateError(f"Cannot move draw from {self.state.value} to {target.value}.")
        self.state = target
        self.history.append(target)

    @property
    def finished(self) -> bool:
        return self.state not in _TRANSITIONS


@dataclass(frozen=True)
class DrawOutcome:
    state: DrawState
    seed: int
    assignment: Optional[Assignment] = None
    errors: Tuple[DrawError, ...] = ()
    attempts: int = 0

    @property
    def succeeded(self) -> bool:
        return self.state == DrawState.SUCCEEDED

    @property
    def error(self) -> Optional[DrawError]:
        return self.errors[0] if self.errors else None

    @property
    def error_codes(self) -> List[str]:
        return [error.code.value for error in self.errors]


def new_seed() -> int:
    return secrets.randbits(SEED_BITS)


class DrawEngine:
    """Validates and executes Secret Santa draws.

    The engine holds configuration only. Every call builds its own model,
    checker, generator and ``random.Random``, so one engine may serve
    concurrent draws from several threads.
    """

    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        deadline: Optional[float] = DEFAULT_DEADLINE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1.")
        self.max_attempts = max_attempts
        self.deadline = deadline
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> "DrawEngine":
        return cls(
            max_attempts=settings.draw_max_attempts,
            deadline=settings.draw_deadline_seconds,
        )

    def validate(
        self,
        participants: Iterable[Hashable],
        exclusions: Iterable[Iterable[Hashable]] = (),
    ) -> FeasibilityResult:
        try:
            model = ConstraintModel(participants, exclusions)
        except InvalidInputError as exc:
            logger.bind(error=str(exc)).info("Draw validation rejected input")
            return FeasibilityResult(problems=(invalid_input(str(exc)),))
        return self.validate_model(model)

    def validate_model(self, model: ConstraintModel) -> FeasibilityResult:
        run = DrawRun()
        run.advance(DrawState.CHECKING)
        result = BipartiteFeasibilityChecker(model).check()
        run.advance(DrawState.FEASIBLE_BUT_UNCONFIRMED if result.is_valid else DrawState.INFEASIBLE)
        logger.bind(
            participants=model.size,
            exclusions=len(model.exclusions),
            state=run.state.value,
        ).debug("Draw validated: errors={errors}", errors=result.errors)
        return result

    def execute(
        self,
        participants: Iterable[Hashable],
        exclusions: Iterable[Iterable[Hashable]] = (),
        seed: Optional[int] = None,
        deadline: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
    ) -> DrawOutcome:
        seed = new_seed() if seed is None else seed
        try:
            model = ConstraintModel(participants, exclusions)
        except InvalidInputError as exc:
            run = DrawRun()
            run.advance(DrawState.CHECKING)
            run.advance(DrawState.INFEASIBLE)
            logger.bind(seed=seed, error=str(exc)).info("Draw rejected input")
            return DrawOutcome(run.state, seed, errors=(invalid_input(str(exc)),))
        return self.execute_model(model, seed=seed, deadline=deadline, cancel=cancel)

    def execute_model(
        self,
        model: ConstraintModel,
        seed: Optional[int] = None,
        deadline: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
    ) -> DrawOutcome:
        seed = new_seed() if seed is None else seed
        log = logger.bind(participants=model.size, exclusions=len(model.exclusions), seed=seed)
        run = DrawRun()

        run.advance(DrawState.CHECKING)
        feasibility = BipartiteFeasibilityChecker(model).check()
        if not feasibility.is_valid:
            run.advance(DrawState.INFEASIBLE)
            log.info("Draw infeasible: {errors}", errors=feasibility.errors)
            return DrawOutcome(run.state, seed, errors=feasibility.problems)

        run.advance(DrawState.GENERATING)
        generator = PermutationGenerator(
            model,
            random.Random(seed),
            max_attempts=self.max_attempts,
            deadline=self.deadline if deadline is None else deadline,
            cancel=cancel,
            clock=self._clock,
        )
        generated = generator.generate()

        if generated.infeasible:
            # The checker already proved a perfect matching exists.
            log.error("Generator found no perfect matching after a successful feasibility check")

        if generated.assignment is None:
            run.advance(DrawState.EXHAUSTED)
            log.bind(attempts=generated.attempts).warning(
                "Draw exhausted: {reason}", reason=generated.reason
            )
            return DrawOutcome(
                run.state,
                seed,
                errors=(
                    DrawError(
                        DrawErrorCode.ASSIGNMENT_REPAIR_EXHAUSTED,
                        f"No draw without mutual pairs was found within {generated.attempts} attempts; "
                        "try again",
                    ),
                ),
                attempts=generated.attempts,
            )

        run.advance(DrawState.SUCCEEDED)
        log.bind(attempts=generated.attempts).info(
            "Draw succeeded with {count} assignments", count=len(generated.assignment)
        )
        return DrawOutcome(
            run.state,
            seed,
            assignment=generated.assignment,
            attempts=generated.attempts,
        )


_default_engine = DrawEngine()


def validate_draw(
    participants: Iterable[Hashable],
    exclusions: Iterable[Iterable[Hashable]] = (),
) -> FeasibilityResult:
    return _default_engine.validate(participants, exclusions)


def execute_draw(
    participants: Iterable[Hashable],
    exclusions: Iterable[Iterable[Hashable]] = (),
    seed: Optional[int] = None,
    deadline: Optional[float] = None,
) -> DrawOutcome:
    return _default_engine.execute(participants, exclusions, seed=seed, deadline=deadline)
