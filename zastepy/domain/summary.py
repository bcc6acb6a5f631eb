from dataclasses import dataclass
from typing import Iterable
from zastepy.domain.catalog import MEETINGS_TASK_TYPE
from zastepy.domain.patrol import Level, Member, Patrol
from zastepy.domain.progress import member_tally_total


### COMMENTS
# Projekcje do wyświetlania (karta poziomu, pasek zastępu, tablica wyników).
# Działają na zastępie już przeliczonym przez `recalculate`.


@dataclass(frozen=True)
class LevelSummary:
    level: int
    completed_tasks: int
    total_tasks: int

    @property
    def percent(self) -> float:
        if self.total_tasks == 0:
            return 0.0
        return self.completed_tasks / self.total_tasks * 100


@dataclass(frozen=True)
class PatrolSummary:
    patrol_id: str
    name: str
    current_level: int
    completed_levels: int
    total_levels: int
    working_on: int | None
    member_tasks: int
    meetings: int


@dataclass(frozen=True)
class RankedMember:
    member: Member
    patrol_name: str
    patrol_color: str

    @property
    def total(self) -> int:
        return self.member.total


def summarize_level(level: Level) -> LevelSummary:
    return LevelSummary(
        level=level.level,
        completed_tasks=sum(1 for t in level.tasks if t.completed),
        total_tasks=len(level.tasks),
    )


def summarize_patrol(patrol: Patrol) -> PatrolSummary:
    """
    Podsumowanie zastępu.

    - `working_on`: numer pierwszego nieukończonego poziomu (None, gdy wszystkie ukończone).
    - `meetings`: suma liczników zadania "Zbiórki zastępu" ze wszystkich poziomów.
    """
    working_on = next((lvl.level for lvl in patrol.levels if not lvl.is_completed), None)
    meetings = sum(
        t.current
        for lvl in patrol.levels
        for t in lvl.tasks
        if t.task_type == MEETINGS_TASK_TYPE
    )
    return PatrolSummary(
        patrol_id=patrol.patrol_id,
        name=patrol.name,
        current_level=patrol.current_level,
        completed_levels=sum(1 for lvl in patrol.levels if lvl.is_completed),
        total_levels=len(patrol.levels),
        working_on=working_on,
        member_tasks=member_tally_total(patrol.members),
        meetings=meetings,
    )


def leaderboard(patrol: Patrol) -> list[RankedMember]:
    """Członkowie zastępu malejąco po łącznej liczbie zadań (remis → kolejność dodania)."""
    ranked = [RankedMember(m, patrol.name, patrol.color) for m in patrol.members]
    ranked.sort(key=lambda r: r.total, reverse=True)
    return ranked


def top_members(patrols: Iterable[Patrol], limit: int = 5) -> list[RankedMember]:
    ranked = [r for p in patrols for r in leaderboard(p)]
    ranked.sort(key=lambda r: r.total, reverse=True)
    return ranked[:limit]
