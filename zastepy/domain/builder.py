import logging
from dataclasses import replace
from typing import Iterable, Mapping
from zastepy.domain.catalog import blank_levels, is_known_key
from zastepy.domain.errors import UnknownTaskError
from zastepy.domain.patrol import Member, Patrol, PatrolRecord
from zastepy.domain.progress import recalculate

logger = logging.getLogger(__name__)


def _clamp(value: int | None) -> int:
    return max(0, int(value or 0))


def build_patrol(
    record: PatrolRecord,
    task_counters: Mapping[str, int],
    members: Iterable[Member],
    *,
    strict: bool = False,
) -> Patrol:
    """
    Składa zastęp z rekordu, zapisanych liczników zadań i członków, po czym go przelicza.

    - Poziomy i zadania pochodzą z katalogu; z magazynu brane jest tylko `current`.
    - Brak licznika w magazynie → 0.
    - Ujemne wartości są przycinane do 0 (z ostrzeżeniem w logu).
    - Klucze spoza katalogu są pomijane z ostrzeżeniem; przy `strict=True`
      zgłaszany jest `UnknownTaskError`.

    :raises UnknownTaskError: Tylko w trybie `strict`.
    """
    for key in task_counters:
        if not is_known_key(key):
            if strict:
                raise UnknownTaskError(key)
            logger.warning("Zastęp %s: pomijam licznik nieznanego zadania %r", record.patrol_id, key)

    levels = []
    for level in blank_levels():
        tasks = []
        for task in level.tasks:
            raw = task_counters.get(task.task_id, 0)
            current = _clamp(raw)
            if raw is not None and raw < 0:
                logger.warning("Zastęp %s: ujemny licznik %s=%s przycięty do 0", record.patrol_id, task.task_id, raw)
            tasks.append(replace(task, current=current))
        levels.append(replace(level, tasks=tuple(tasks)))

    clean_members = tuple(
        replace(m, tasks_stopien=_clamp(m.tasks_stopien), tasks_funkcja=_clamp(m.tasks_funkcja))
        for m in members
    )

    return recalculate(Patrol(
        patrol_id=record.patrol_id,
        name=record.name,
        color=record.color,
        levels=tuple(levels),
        members=clean_members,
    ))
