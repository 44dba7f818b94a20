from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Hashable, Iterable, List, Optional, Sequence, Tuple

from loguru import logger

from santadraw.engine import DrawEngine, DrawError, DrawErrorCode, DrawOutcome

DRAW_ALREADY_COMPLETED = "Draw has already been completed for this group"

STATUS_BY_CODE: Dict[DrawErrorCode, int] = {
    DrawErrorCode.INVALID_INPUT: 400,
    DrawErrorCode.MINIMUM_PARTICIPANTS_REQUIRED: 422,
    DrawErrorCode.EXCLUSION_RULES_PREVENT_VALID_ASSIGNMENT: 422,
    DrawErrorCode.ASSIGNMENT_REPAIR_EXHAUSTED: 503,
}


class DrawFlowError(RuntimeError):
    pass


@dataclass(frozen=True)
class DrawValidationReport:
    is_valid: bool
    can_draw: bool
    participant_count: int
    exclusion_rule_count: int
    errors: List[str]
    warnings: List[str]
    unmatched: Tuple[Hashable, ...] = ()


def status_for(error: DrawError) -> int:
    return STATUS_BY_CODE[error.code]


def _count_rules(exclusions: Sequence[Iterable[Hashable]]) -> int:
    return len({frozenset(pair) for pair in exclusions})


def validate_group_draw(
    participants: Iterable[Hashable],
    exclusions: Iterable[Iterable[Hashable]] = (),
    draw_completed: bool = False,
    engine: Optional[DrawEngine] = None,
) -> DrawValidationReport:
    engine = engine or DrawEngine()
    participant_ids = list(participants)
    exclusion_pairs = list(exclusions)

    warnings: List[str] = []
    if draw_completed:
        warnings.append(DRAW_ALREADY_COMPLETED)

    result = engine.validate(participant_ids, exclusion_pairs)
    rejected = DrawErrorCode.INVALID_INPUT.value in result.errors
    report = DrawValidationReport(
        is_valid=result.is_valid,
        can_draw=result.is_valid and not draw_completed,
        participant_count=len(participant_ids),
        exclusion_rule_count=0 if rejected else _count_rules(exclusion_pairs),
        errors=result.errors,
        warnings=warnings,
        unmatched=result.unmatched,
    )
    logger.bind(
        participant_count=report.participant_count,
        exclusion_rule_count=report.exclusion_rule_count,
    ).info(
        "Draw validation: is_valid={valid} can_draw={can_draw}",
        valid=report.is_valid,
        can_draw=report.can_draw,
    )
    return report


def run_group_draw(
    participants: Iterable[Hashable],
    exclusions: Iterable[Iterable[Hashable]] = (),
    draw_completed: bool = False,
    seed: Optional[int] = None,
    engine: Optional[DrawEngine] = None,
) -> DrawOutcome:
    if draw_completed:
        raise DrawFlowError(DRAW_ALREADY_COMPLETED)

    engine = engine or DrawEngine()
    outcome = engine.execute(participants, exclusions, seed=seed)
    if outcome.succeeded:
        logger.bind(seed=outcome.seed, attempts=outcome.attempts).info("Assignments generated")
    else:
        logger.bind(seed=outcome.seed, status=status_for(outcome.error)).warning(
            "Draw failed: {codes}", codes=outcome.error_codes
        )
    return outcome
