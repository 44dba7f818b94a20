from __future__ import annotations

from collections import deque
from typing import Deque, List, Optional, Sequence, Tuple

from loguru import logger

from santadraw.engine.constraints import ConstraintModel
from santadraw.engine.errors import DrawError, DrawErrorCode, FeasibilityResult

MINIMUM_PARTICIPANTS = 3

_INF = float("inf")

Matching = Tuple[List[Optional[int]], List[Optional[int]]]


def hopcroft_karp(
    adjacency: Sequence[Sequence[int]],
    right_size: int,
    order: Optional[Sequence[int]] = None,
) -> Matching:
    """Maximum bipartite matching by shortest augmenting paths.

    adjacency: for every left vertex, the right vertices it may be matched to
    order: the sequence left vertices are tried in; defaults to index order

    Returns ``(match_left, match_right)``; unmatched vertices map to ``None``.
    Neighbour order in ``adjacency`` and ``order`` decide which of several
    maximum matchings is found.
    """
    left_size = len(adjacency)
    left_order = list(range(left_size)) if order is None else list(order)
    match_left: List[Optional[int]] = [None] * left_size
    match_right: List[Optional[int]] = [None] * right_size
    dist: List[float] = [_INF] * left_size

    def bfs() -> bool:
        queue: Deque[int] = deque()
        for u in left_order:
            if match_left[u] is None:
                dist[u] = 0
                queue.append(u)
            else:
                dist[u] = _INF
        found_free = False
        while queue:
            u = queue.popleft()
            for v in adjacency[u]:
                w = match_right[v]
                if w is None:
                    found_free = True
                elif dist[w] == _INF:
                    dist[w] = dist[u] + 1
                    queue.append(w)
        return found_free

    def dfs(u: int) -> bool:
        for v in adjacency[u]:
            w = match_right[v]
            if w is None or (dist[w] == dist[u] + 1 and dfs(w)):
                match_left[u] = v
                match_right[v] = u
                return True
        dist[u] = _INF
        return False

    while bfs():
        for u in left_order:
            if match_left[u] is None:
                dfs(u)

    return match_left, match_right


def matching_size(match_left: Sequence[Optional[int]]) -> int:
    return sum(1 for v in match_left if v is not None)


def deficient_santas(
    adjacency: Sequence[Sequence[int]],
    match_left: Sequence[Optional[int]],
    match_right: Sequence[Optional[int]],
) -> List[int]:
    """Left vertices reachable by alternating paths from an unmatched one.

    For a maximum matching this set has fewer distinct neighbours than
    members, so it is the group of santas the exclusion rules starve.
    """
    seen = [False] * len(adjacency)
    queue: Deque[int] = deque()
    for u, v in enumerate(match_left):
        if v is None:
            seen[u] = True
            queue.append(u)
    while queue:
        u = queue.popleft()
        for v in adjacency[u]:
            w = match_right[v]
            if w is not None and not seen[w]:
                seen[w] = True
                queue.append(w)
    return [u for u, flag in enumerate(seen) if flag]


class BipartiteFeasibilityChecker:
    """Decides whether any self-free, exclusion-respecting permutation exists.

    A perfect matching between santa roles and recipient roles is necessary
    for a valid draw but does not rule out 2-cycles.
    """

    def __init__(self, model: ConstraintModel) -> None:
        self.model = model
        self._adjacency = model.adjacency()

    def maximum_matching(self) -> Matching:
        return hopcroft_karp(self._adjacency, self.model.size)

    def check(self) -> FeasibilityResult:
        model = self.model
        if model.size < MINIMUM_PARTICIPANTS:
            return FeasibilityResult(
                problems=(
                    DrawError(
                        DrawErrorCode.MINIMUM_PARTICIPANTS_REQUIRED,
                        f"Minimum {MINIMUM_PARTICIPANTS} participants required for draw",
                    ),
                )
            )

        match_left, match_right = self.maximum_matching()
        matched = matching_size(match_left)
        if matched == model.size:
            return FeasibilityResult()

        starved = tuple(
            model.participants[u]
            for u in deficient_santas(self._adjacency, match_left, match_right)
        )
        logger.bind(
            participants=model.size,
            exclusions=len(model.exclusions),
            matched=matched,
        ).warning(
            "Exclusion rules leave {count} participants without a recipient",
            count=model.size - matched,
        )
        return FeasibilityResult(
            problems=(
                DrawError(
                    DrawErrorCode.EXCLUSION_RULES_PREVENT_VALID_ASSIGNMENT,
                    "Current exclusion rules prevent valid Secret Santa assignments",
                    participants=starved,
                ),
            ),
            unmatched=starved,
        )
