import hypothesis.strategies as st
from hypothesis import given

from zastepy.domain.builder import build_patrol
from zastepy.domain.catalog import LEVEL_CATALOG, task_key
from zastepy.domain.enums import Derivation
from zastepy.domain.patrol import Member, MemberId, PatrolId, PatrolRecord
from zastepy.domain.progress import incremental_progress, recalculate


RECORD = PatrolRecord(PatrolId("wilki"), "Wilki", "#ff6b6b")
ALL_KEYS = [task_key(t.level, d.task_type) for t in LEVEL_CATALOG for d in t.tasks]

counters_strategy = st.dictionaries(st.sampled_from(ALL_KEYS), st.integers(min_value=0, max_value=20))
members_strategy = st.lists(
    st.tuples(st.integers(min_value=0, max_value=10), st.integers(min_value=0, max_value=10)),
    max_size=12,
)


def make_patrol(counters, tallies):
    members = [Member(MemberId(f"m-{i}"), f"M{i}", s, f) for i, (s, f) in enumerate(tallies)]
    return build_patrol(RECORD, counters, members)


@given(counters=counters_strategy, tallies=members_strategy)
def test_derived_flags_follow_counters(counters, tallies):
    """Ukończenie zadań, łańcuch odblokowań i aktualny poziom wynikają wyłącznie z liczników."""
    patrol = make_patrol(counters, tallies)
    total = sum(s + f for s, f in tallies)

    for level in patrol.levels:
        for task in level.tasks:
            assert task.completed == (task.current >= task.target)
            if task.derivation == Derivation.MEMBER_TALLY_SUM:
                assert task.current == total
            else:
                assert task.current == counters.get(task.task_id, 0)
        assert level.is_completed == all(t.completed for t in level.tasks)

    assert patrol.levels[0].is_unlocked
    for i in range(1, len(patrol.levels)):
        assert patrol.levels[i].is_unlocked == patrol.levels[i - 1].is_completed

    prefix = 0
    for level in patrol.levels:
        if not level.is_completed:
            break
        prefix += 1
    assert patrol.current_level == prefix


@given(counters=counters_strategy, tallies=members_strategy)
def test_recalculate_is_idempotent(counters, tallies):
    patrol = make_patrol(counters, tallies)
    assert recalculate(recalculate(patrol)) == patrol


@given(counters=counters_strategy, tallies=members_strategy)
def test_incremental_progress_stays_within_band(counters, tallies):
    patrol = make_patrol(counters, tallies)

    for index, level in enumerate(patrol.levels):
        for task in level.tasks:
            progress = incremental_progress(task, patrol.levels, index)
            assert 0 <= progress.target <= task.target
            if progress.target < task.target:
                assert 0 <= progress.current <= progress.target
