from __future__ import annotations

from typing import Dict, FrozenSet, Hashable, Iterable, List, Sequence, Set, Tuple

from santadraw.engine.errors import InvalidInputError

ExclusionPair = FrozenSet[Hashable]


def _normalize_pair(pair: Iterable[Hashable]) -> Tuple[Hashable, Hashable]:
    if isinstance(pair, (str, bytes)):
        raise InvalidInputError(f"Exclusion {pair!r} is not a pair of participants.")
    try:
        items = tuple(pair)
    except TypeError:
        raise InvalidInputError(f"Exclusion {pair!r} is not a pair of participants.") from None
    if len(items) != 2:
        raise InvalidInputError(f"Exclusion {pair!r} must name exactly two participants.")
    return items[0], items[1]


class ConstraintModel:
    """Participants of one draw and the pairs that must never be matched.

    Exclusions are unordered: ``(a, b)`` forbids both ``a -> b`` and
    ``b -> a``. Participant order is kept as given and is the order every
    graph built from the model iterates in.
    """

    __slots__ = ("_participants", "_index", "_exclusions", "_blocked")

    def __init__(
        self,
        participants: Iterable[Hashable],
        exclusions: Iterable[Iterable[Hashable]] = (),
    ) -> None:
        try:
            ordered = tuple(participants)
        except TypeError:
            raise InvalidInputError("Participants must be a collection of IDs.") from None
        if not ordered:
            raise InvalidInputError("At least one participant is required.")

        index: Dict[Hashable, int] = {}
        for position, participant_id in enumerate(ordered):
            try:
                duplicate = participant_id in index
            except TypeError:
                raise InvalidInputError(f"Participant ID {participant_id!r} is not hashable.") from None
            if duplicate:
                raise InvalidInputError(f"Duplicate participant ID {participant_id!r}.")
            index[participant_id] = position

        try:
            raw_pairs = list(exclusions)
        except TypeError:
            raise InvalidInputError("Exclusions must be a collection of pairs.") from None

        pairs: Set[ExclusionPair] = set()
        blocked: List[Set[int]] = [{position} for position in range(len(ordered))]
        for raw_pair in raw_pairs:
            first, second = _normalize_pair(raw_pair)
            for participant_id in (first, second):
                try:
                    known = participant_id in index
                except TypeError:
                    raise InvalidInputError(
                        f"Exclusion references unhashable participant {participant_id!r}."
                    ) from None
                if not known:
                    raise InvalidInputError(
                        f"Exclusion references unknown participant {participant_id!r}."
                    )
            if first == second:
                raise InvalidInputError(f"Participant {first!r} cannot be excluded from themselves.")
            pairs.add(frozenset((first, second)))
            blocked[index[first]].add(index[second])
            blocked[index[second]].add(index[first])

        self._participants = ordered
        self._index = index
        self._exclusions = frozenset(pairs)
        self._blocked = tuple(frozenset(items) for items in blocked)

    def __len__(self) -> int:
        return len(self._participants)

    def __contains__(self, participant_id: object) -> bool:
        return participant_id in self._index

    def __repr__(self) -> str:
        return f"ConstraintModel(size={self.size}, exclusions={len(self._exclusions)})"

    @property
    def size(self) -> int:
        return len(self._participants)

    @property
    def participants(self) -> Tuple[Hashable, ...]:
        return self._participants

    @property
    def exclusions(self) -> FrozenSet[ExclusionPair]:
        return self._exclusions

    def index_of(self, participant_id: Hashable) -> int:
        return self._index[participant_id]

    def is_allowed(self, santa: Hashable, recipient: Hashable) -> bool:
        if santa == recipient:
            return False
        return frozenset((santa, recipient)) not in self._exclusions

    def is_allowed_index(self, santa: int, recipient: int) -> bool:
        return recipient not in self._blocked[santa]

    def allowed_recipients(self, santa: Hashable) -> List[Hashable]:
        blocked = self._blocked[self._index[santa]]
        return [
            recipient
            for position, recipient in enumerate(self._participants)
            if position not in blocked
        ]

    def adjacency(self) -> List[List[int]]:
        """Allowed recipient indices for every santa index, in participant order."""
        size = len(self._participants)
        return [
            [recipient for recipient in range(size) if recipient not in self._blocked[santa]]
            for santa in range(size)
        ]

    def to_ids(self, permutation: Sequence[int]) -> Dict[Hashable, Hashable]:
        return {
            self._participants[santa]: self._participants[recipient]
            for santa, recipient in enumerate(permutation)
        }

    def to_indices(self, assignment: Dict[Hashable, Hashable]) -> List[int]:
        permutation = [-1] * len(self._participants)
        for santa, recipient in assignment.items():
            permutation[self._index[santa]] = self._index[recipient]
        return permutation
