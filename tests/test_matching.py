from santadraw.engine.constraints import ConstraintModel
from santadraw.engine.matching import (
    BipartiteFeasibilityChecker,
    deficient_santas,
    hopcroft_karp,
    matching_size,
)


def test_hopcroft_karp_finds_perfect_matching():
    adjacency = [[0, 1], [0], [1, 2]]
    match_left, match_right = hopcroft_karp(adjacency, 3)
    assert match_left == [1, 0, 2]
    assert match_right == [1, 0, 2]


def test_hopcroft_karp_needs_augmenting_paths():
    # Greedy in index order would take 0->0 and block left vertex 1.
    adjacency = [[0, 1], [0], [1, 2], [2, 3], [3, 4]]
    match_left, _ = hopcroft_karp(adjacency, 5)
    assert matching_size(match_left) == 5
    assert match_left[1] == 0


def test_hopcroft_karp_respects_order_for_ties():
    adjacency = [[0, 1], [0, 1]]
    first, _ = hopcroft_karp(adjacency, 2, order=[0, 1])
    second, _ = hopcroft_karp(adjacency, 2, order=[1, 0])
    assert first == [0, 1]
    assert second == [1, 0]


def test_hopcroft_karp_maximum_when_not_perfect():
    adjacency = [[0], [0], [0, 1]]
    match_left, match_right = hopcroft_karp(adjacency, 2)
    assert matching_size(match_left) == 2
    assert sorted(v for v in match_right if v is not None) in ([0, 2], [1, 2])


def test_deficient_santas_finds_hall_violator():
    adjacency = [[0], [0], [0, 1]]
    match_left, match_right = hopcroft_karp(adjacency, 2)
    starved = deficient_santas(adjacency, match_left, match_right)
    assert 0 in starved and 1 in starved
    assert 2 not in starved


def test_checker_accepts_open_group():
    result = BipartiteFeasibilityChecker(ConstraintModel(["a", "b", "c"])).check()
    assert result.is_valid
    assert result.errors == []
    assert result.unmatched == ()


def test_checker_requires_three_participants():
    for participants in (["a"], ["a", "b"]):
        result = BipartiteFeasibilityChecker(ConstraintModel(participants)).check()
        assert not result.is_valid
        assert result.errors == ["MinimumParticipantsRequired"]
        assert result.problems[0].message == "Minimum 3 participants required for draw"


def test_checker_catches_infeasibility_beyond_degree_counting():
    # Every santa has a recipient, but a, b and d can only give to c.
    model = ConstraintModel(["a", "b", "c", "d"], [("a", "b"), ("a", "d"), ("b", "d")])
    assert all(model.allowed_recipients(p) for p in model.participants)

    result = BipartiteFeasibilityChecker(model).check()
    assert not result.is_valid
    assert result.errors == ["ExclusionRulesPreventValidAssignment"]
    assert set(result.unmatched) == {"a", "b", "d"}
    assert result.problems[0].participants == result.unmatched


def test_checker_reports_participant_excluded_from_everyone():
    model = ConstraintModel([1, 2, 3, 4], [(1, 2), (1, 3), (1, 4)])
    result = BipartiteFeasibilityChecker(model).check()
    assert not result.is_valid
    assert 1 in result.unmatched


def test_checker_ignores_cycle_structure():
    # Only mutual pairs are possible; the checker still reports valid.
    model = ConstraintModel(["a", "b", "c", "d"], [("a", "c"), ("a", "d"), ("b", "c"), ("b", "d")])
    assert BipartiteFeasibilityChecker(model).check().is_valid
