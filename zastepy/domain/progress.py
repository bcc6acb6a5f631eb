import logging
from dataclasses import dataclass, replace
from typing import Iterable, Sequence
from zastepy.domain.catalog import parse_task_key
from zastepy.domain.enums import Derivation
from zastepy.domain.patrol import Level, Member, Patrol, Task

logger = logging.getLogger(__name__)


### COMMENTS
# ==========================================================
# Silnik postępu (domain/progress.py) — czyste funkcje.
# ==========================================================
# - `recalculate` zamienia surowy stan zastępu (liczniki zadań + członkowie)
#   na stan pochodny: ukończenie zadań i poziomów, odblokowania, aktualny poziom.
# - `incremental_progress` przelicza próg kumulacyjny (20 → 40 → 60)
#   na postęp w obrębie jednego poziomu — tylko do wyświetlania.
# - Brak I/O, brak wyjątków, brak stanu współdzielonego.
# - Kolejność kroków w `recalculate` ma znaczenie: odblokowania zależą
#   od ukończenia poziomów, a to od ukończenia zadań.


@dataclass(frozen=True)
class IncrementalProgress:
    current: int
    target: int


def member_tally_total(members: Iterable[Member]) -> int:
    """Suma `tasks_stopien + tasks_funkcja` po wszystkich członkach zastępu."""
    return sum(m.tasks_stopien + m.tasks_funkcja for m in members)


def _recalculate_task(task: Task, tally_total: int) -> Task:
    current = tally_total if task.derivation == Derivation.MEMBER_TALLY_SUM else task.current
    return replace(task, current=current, completed=current >= task.target)


def recalculate(patrol: Patrol) -> Patrol:
    """
    Przelicza stan pochodny zastępu i zwraca nową instancję `Patrol`.

    1. Zadania: typ liczony z członków dostaje sumę ich liczników,
       pozostałe zachowują `current`; `completed = current >= target`.
    2. Poziomy: `is_completed` = wszystkie zadania ukończone (pusty poziom → True).
    3. Odblokowania: poziom 1 zawsze odblokowany, poziom i — gdy poziom i-1 ukończony.
    4. `current_level`: długość nieprzerwanego ciągu ukończonych poziomów od poziomu 1.

    Funkcja jest idempotentna: `recalculate(recalculate(p)) == recalculate(p)`.
    Nie klamruje wartości ujemnych — to zadanie warstwy wyżej.
    """
    tally_total = member_tally_total(patrol.members)

    completed_levels: list[Level] = []
    for level in patrol.levels:
        tasks = tuple(_recalculate_task(t, tally_total) for t in level.tasks)
        completed_levels.append(
            replace(level, tasks=tasks, is_completed=all(t.completed for t in tasks))
        )

    levels: list[Level] = []
    for index, level in enumerate(completed_levels):
        is_unlocked = True if index == 0 else completed_levels[index - 1].is_completed
        levels.append(replace(level, is_unlocked=is_unlocked))

    current_level = 0
    for level in levels:
        if not level.is_completed:
            break
        current_level += 1

    return replace(patrol, levels=tuple(levels), current_level=current_level)


def _task_type(task: Task) -> str | None:
    if task.task_type:
        return task.task_type
    parsed = parse_task_key(task.task_id)
    return parsed[1] if parsed else None


def incremental_progress(task: Task, levels: Sequence[Level], level_index: int) -> IncrementalProgress:
    """
    Zwraca postęp zadania w obrębie „pasma” danego poziomu.

    - Próg poprzedni = `target` zadania tego samego typu z poziomu `level_index - 1`
      (0 dla pierwszego poziomu lub gdy takiego zadania nie ma).
    - Gdy `target - próg <= 0`, zadanie nie jest kumulacyjne → dane bez zmian.
    - W przeciwnym razie `current` jest przycinane do zakresu [0, target - próg].

    :param task: Zadanie (po `recalculate`).
    :param levels: Wszystkie poziomy zastępu, w kolejności.
    :param level_index: Indeks (od 0) poziomu, na którym leży `task`.
    :return: `IncrementalProgress(current, target)`.
    """
    task_type = _task_type(task)
    if task_type is None:
        logger.warning("Zadanie %r nie ma sufiksu typu '-t<N>'; pokazuję postęp bez zmian.", task.task_id)
        return IncrementalProgress(task.current, task.target)

    previous_threshold = 0
    if 0 < level_index <= len(levels):
        for candidate in levels[level_index - 1].tasks:
            if _task_type(candidate) == task_type:
                previous_threshold = candidate.target
                break

    incremental_target = task.target - previous_threshold
    if incremental_target <= 0:
        return IncrementalProgress(task.current, task.target)

    incremental_current = max(0, task.current - previous_threshold)
    return IncrementalProgress(min(incremental_current, incremental_target), incremental_target)
