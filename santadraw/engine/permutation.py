from __future__ import annotations

import random
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Hashable, List, Optional, Sequence

from loguru import logger

from santadraw.engine.constraints import ConstraintModel
from santadraw.engine.errors import InvalidInputError
from santadraw.engine.matching import hopcroft_karp

DEFAULT_MAX_ATTEMPTS = 20

Assignment = Dict[Hashable, Hashable]


@dataclass(frozen=True)
class GenerationResult:
    assignment: Optional[Assignment]
    attempts: int
    infeasible: bool = False
    reason: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.assignment is not None


def cycles(assignment: Assignment) -> List[List[Hashable]]:
    """Split a bijection into disjoint cycles, each starting at its first-seen santa."""
    seen = set()
    result: List[List[Hashable]] = []
    for start in assignment:
        if start in seen:
            continue
        cycle = []
        node = start
        while node not in seen:
            seen.add(node)
            cycle.append(node)
            node = assignment[node]
        result.append(cycle)
    return result


def find_violations(model: ConstraintModel, assignment: Assignment) -> List[str]:
    violations: List[str] = []
    participants = set(model.participants)
    if set(assignment) != participants:
        violations.append("santas do not cover the participant set")
    recipients = list(assignment.values())
    if len(set(recipients)) != len(recipients) or set(recipients) != participants:
        violations.append("recipients are not a permutation of the participant set")
    if violations:
        return violations

    for santa, recipient in assignment.items():
        if santa == recipient:
            violations.append(f"{santa!r} is assigned to themselves")
        elif assignment[recipient] == santa:
            violations.append(f"{santa!r} and {recipient!r} are assigned to each other")
        if santa != recipient and frozenset((santa, recipient)) in model.exclusions:
            violations.append(f"{santa!r} -> {recipient!r} is excluded")
    return violations


class PermutationGenerator:
    """Builds one draw: a random perfect matching with its 2-cycles spliced away.

    Every attempt shuffles the candidate lists with ``rng``, so the same
    model and the same seeded ``rng`` always produce the same draw.
    """

    def __init__(
        self,
        model: ConstraintModel,
        rng: random.Random,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        deadline: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1.")
        self.model = model
        self.max_attempts = max_attempts
        self.deadline = deadline
        self._rng = rng
        self._cancel = cancel
        self._clock = clock
        self._adjacency = model.adjacency()

    def generate(self) -> GenerationResult:
        cutoff = None if self.deadline is None else self._clock() + self.deadline
        log = logger.bind(participants=self.model.size)
        attempts = 0

        while attempts < self.max_attempts:
            if self._cancel is not None and self._cancel.is_set():
                return GenerationResult(None, attempts, reason="cancelled")
            if cutoff is not None and self._clock() >= cutoff:
                log.warning("Draw deadline reached after {attempts} attempts", attempts=attempts)
                return GenerationResult(None, attempts, reason="deadline")

            attempts += 1
            permutation = self._random_matching()
            if permutation is None:
                return GenerationResult(None, attempts, infeasible=True, reason="no perfect matching")

            if not self._repair_two_cycles(permutation):
                log.debug("Attempt {attempt} left an unrepairable 2-cycle", attempt=attempts)
                continue

            assignment = self.model.to_ids(permutation)
            violations = find_violations(self.model, assignment)
            if violations:
                log.error(
                    "Internal invariant violation on attempt {attempt}: {violations}",
                    attempt=attempts,
                    violations="; ".join(violations),
                )
                continue

            return GenerationResult(assignment, attempts)

        return GenerationResult(None, attempts, reason="attempts exhausted")

    def repair(self, assignment: Assignment) -> Optional[Assignment]:
        """Splice every 2-cycle of ``assignment`` into a longer cycle.

        ``assignment`` must be a fixed-point-free bijection over the model's
        participants. Returns ``None`` when some 2-cycle cannot be merged.
        """
        if set(assignment) != set(self.model.participants):
            raise InvalidInputError("Assignment must cover every participant exactly once.")
        permutation = self.model.to_indices(assignment)
        if sorted(permutation) != list(range(self.model.size)):
            raise InvalidInputError("Assignment must be a bijection over the participants.")
        if any(santa == recipient for santa, recipient in enumerate(permutation)):
            raise InvalidInputError("Assignment must not contain self-assignments.")
        if not self._repair_two_cycles(permutation):
            return None
        return self.model.to_ids(permutation)

    def _random_matching(self) -> Optional[List[int]]:
        adjacency = [list(candidates) for candidates in self._adjacency]
        for candidates in adjacency:
            self._rng.shuffle(candidates)
        order = list(range(self.model.size))
        self._rng.shuffle(order)

        match_left, _ = hopcroft_karp(adjacency, self.model.size, order=order)
        if any(recipient is None for recipient in match_left):
            return None
        return list(match_left)

    def _repair_two_cycles(self, permutation: List[int]) -> bool:
        pairs = [
            (santa, recipient)
            for santa, recipient in enumerate(permutation)
            if santa < recipient and permutation[recipient] == santa
        ]
        self._rng.shuffle(pairs)
        for a, b in pairs:
            # Already merged while repairing an earlier pair.
            if permutation[a] != b or permutation[b] != a:
                continue
            if not self._merge(permutation, a, b):
                return False
        return True

    def _merge(self, permutation: List[int], a: int, b: int) -> bool:
        allowed = self.model.is_allowed_index
        candidates = [node for node in range(self.model.size) if node != a and node != b]
        self._rng.shuffle(candidates)
        variants: Sequence = ((a, b), (b, a))
        if self._rng.random() < 0.5:
            variants = ((b, a), (a, b))

        for c in candidates:
            d = permutation[c]
            for head, tail in variants:
                # tail -> head stays; head takes c's recipient and c gives to tail.
                if allowed(head, d) and allowed(c, tail):
                    permutation[head] = d
                    permutation[c] = tail
                    return True
        return False
