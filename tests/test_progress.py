import logging
from dataclasses import replace
from zastepy.domain.builder import build_patrol
from zastepy.domain.patrol import Level, Member, MemberId, Patrol, PatrolId, PatrolRecord, Task, TaskKey
from zastepy.domain.progress import IncrementalProgress, incremental_progress, member_tally_total, recalculate


RECORD = PatrolRecord(PatrolId("wilki"), "Wilki", "#ff6b6b")

LEVEL_1_DIRECT = {"l1-t1": 4, "l1-t3": 1, "l1-t4": 1, "l1-t5": 1, "l1-t6": 1, "l1-t7": 1}
LEVEL_2_DIRECT = {"l2-t1": 9, "l2-t3": 1, "l2-t4": 1, "l2-t5": 1, "l2-t6": 1, "l2-t7": 1}
LEVEL_3_DIRECT = {
    "l3-t1": 15, "l3-t3": 1, "l3-t4": 1, "l3-t5": 1,
    "l3-t6": 1, "l3-t7": 1, "l3-t8": 1, "l3-t9": 1,
}


def make_members(n: int, stopien: int = 1, funkcja: int = 0) -> list[Member]:
    return [Member(MemberId(f"m-{i}"), f"Harcerz {i}", stopien, funkcja) for i in range(n)]


def tally_tasks(patrol: Patrol) -> list[Task]:
    return [t for level in patrol.levels for t in level.tasks if t.task_type == "t2"]


def test_zero_members_gives_zero_tally_on_every_level():
    patrol = build_patrol(RECORD, {}, [])

    assert [t.current for t in tally_tasks(patrol)] == [0, 0, 0]
    assert not any(t.completed for t in tally_tasks(patrol))
    assert patrol.current_level == 0
    assert patrol.levels[0].is_unlocked
    assert not patrol.levels[1].is_unlocked
    assert not patrol.levels[2].is_unlocked


def test_tally_task_ignores_stored_counter():
    # Arrange
    members = make_members(2, stopien=3, funkcja=4)

    # Act
    patrol = build_patrol(RECORD, {"l1-t2": 99, "l3-t2": 7}, members)

    # Assert
    assert [t.current for t in tally_tasks(patrol)] == [14, 14, 14]
    assert [t.target for t in tally_tasks(patrol)] == [20, 40, 60]


def test_twenty_members_complete_level_one():
    # Arrange
    before = build_patrol(RECORD, LEVEL_1_DIRECT, [])
    assert before.levels[0].tasks[1].current == 0
    assert not before.levels[0].tasks[1].completed

    # Act
    after = recalculate(replace(before, members=tuple(make_members(20))))

    # Assert
    assert after.levels[0].tasks[1].current == 20
    assert after.levels[0].tasks[1].completed
    assert after.levels[0].is_completed
    assert after.levels[1].is_unlocked
    assert not after.levels[2].is_unlocked
    assert after.current_level == 1


def test_removing_member_relocks_next_level():
    patrol = build_patrol(RECORD, LEVEL_1_DIRECT, make_members(20))
    assert patrol.current_level == 1

    patrol = recalculate(replace(patrol, members=patrol.members[1:]))

    assert patrol.levels[0].tasks[1].current == 19
    assert not patrol.levels[0].is_completed
    assert not patrol.levels[1].is_unlocked
    assert patrol.current_level == 0


def test_current_level_counts_completed_prefix():
    counters = {**LEVEL_1_DIRECT, **LEVEL_2_DIRECT}
    patrol = build_patrol(RECORD, counters, make_members(40))

    assert [lvl.is_completed for lvl in patrol.levels] == [True, True, False]
    assert patrol.current_level == 2
    assert patrol.levels[2].is_unlocked


def test_current_level_stops_at_first_incomplete_level():
    # poziom 3 ukończony "ze starych danych", poziom 2 nie
    counters = {**LEVEL_1_DIRECT, **LEVEL_3_DIRECT}
    patrol = build_patrol(RECORD, counters, make_members(60))

    assert [lvl.is_completed for lvl in patrol.levels] == [True, False, True]
    assert patrol.current_level == 1
    assert patrol.levels[1].is_unlocked
    assert not patrol.levels[2].is_unlocked


def test_recalculate_overrides_stale_flags():
    patrol = build_patrol(RECORD, {}, [])
    stale_levels = tuple(
        replace(
            level,
            is_completed=True,
            is_unlocked=True,
            tasks=tuple(replace(t, completed=True) for t in level.tasks),
        )
        for level in patrol.levels
    )
    stale = replace(patrol, levels=stale_levels, current_level=3)

    fixed = recalculate(stale)

    assert fixed == patrol
    assert fixed.current_level == 0
    assert not fixed.levels[1].is_unlocked


def test_recalculate_is_idempotent():
    patrol = build_patrol(RECORD, {**LEVEL_1_DIRECT, "l2-t1": 3}, make_members(5, 2, 3))

    assert recalculate(patrol) == patrol
    assert recalculate(recalculate(patrol)) == recalculate(patrol)


def test_empty_level_is_complete_and_unlocks_next():
    patrol = Patrol(
        patrol_id=PatrolId("p"),
        name="P",
        color="#000",
        levels=(
            Level(1, "Pusty", ()),
            Level(2, "Drugi", (Task(TaskKey("l2-t1"), "Zbiórki", target=1, task_type="t1"),)),
        ),
    )

    patrol = recalculate(patrol)

    assert patrol.levels[0].is_completed
    assert patrol.levels[1].is_unlocked
    assert not patrol.levels[1].is_completed
    assert patrol.current_level == 1


def test_member_tally_total():
    members = [Member(MemberId("a"), "A", 3, 2), Member(MemberId("b"), "B", 0, 5)]
    assert member_tally_total(members) == 10
    assert member_tally_total([]) == 0


# --- postęp przyrostowy -----------------------------------------------------

def test_incremental_progress_within_level_two_band():
    patrol = build_patrol(RECORD, {}, make_members(25))
    task = patrol.levels[1].tasks[1]

    assert task.target == 40
    assert incremental_progress(task, patrol.levels, 1) == IncrementalProgress(current=5, target=20)


def test_incremental_progress_is_clamped_to_band():
    patrol = build_patrol(RECORD, {}, make_members(65))
    task = patrol.levels[1].tasks[1]

    assert incremental_progress(task, patrol.levels, 1) == IncrementalProgress(current=20, target=20)


def test_incremental_progress_below_band_is_zero():
    patrol = build_patrol(RECORD, {}, make_members(12))

    assert incremental_progress(patrol.levels[2].tasks[1], patrol.levels, 2) == IncrementalProgress(0, 20)
    assert incremental_progress(patrol.levels[0].tasks[1], patrol.levels, 0) == IncrementalProgress(12, 20)


def test_incremental_progress_first_level_clamps_single_target_task():
    patrol = build_patrol(RECORD, {"l1-t4": 3}, [])
    task = patrol.levels[0].tasks[3]

    assert incremental_progress(task, patrol.levels, 0) == IncrementalProgress(current=1, target=1)


def test_incremental_progress_meetings_band():
    patrol = build_patrol(RECORD, {"l2-t1": 6, "l3-t1": 3}, [])

    assert incremental_progress(patrol.levels[1].tasks[0], patrol.levels, 1) == IncrementalProgress(2, 5)
    assert incremental_progress(patrol.levels[2].tasks[0], patrol.levels, 2) == IncrementalProgress(0, 6)


def test_non_incremental_task_is_returned_unchanged():
    # l2-t4 i l1-t4 mają ten sam próg 1 → brak pasma
    patrol = build_patrol(RECORD, {"l2-t4": 1}, [])
    task = patrol.levels[1].tasks[3]

    assert incremental_progress(task, patrol.levels, 1) == IncrementalProgress(current=1, target=1)


def test_task_without_predecessor_uses_zero_threshold():
    patrol = build_patrol(RECORD, {"l3-t9": 1}, [])
    task = patrol.levels[2].tasks[8]

    assert task.task_id == "l3-t9"
    assert incremental_progress(task, patrol.levels, 2) == IncrementalProgress(current=1, target=1)


def test_incremental_progress_does_not_modify_task():
    patrol = build_patrol(RECORD, {}, make_members(65))
    task = patrol.levels[1].tasks[1]

    incremental_progress(task, patrol.levels, 1)

    assert task.current == 65
    assert task.target == 40


def test_malformed_task_key_is_treated_as_non_incremental(caplog):
    task = Task(TaskKey("zbiorki"), "Zbiórki", target=5, task_type=None, current=7, completed=True)
    levels = build_patrol(RECORD, {}, []).levels

    with caplog.at_level(logging.WARNING):
        progress = incremental_progress(task, levels, 1)

    assert progress == IncrementalProgress(current=7, target=5)
    assert "zbiorki" in caplog.text
