import re
from dataclasses import dataclass
from zastepy.domain.enums import Derivation
from zastepy.domain.patrol import Level, Task, TaskKey


### COMMENTS
# ==========================================================
# Katalog poziomów (domain/catalog.py) — dane statyczne.
# ==========================================================
# - Trzy poziomy, każdy z uporządkowaną listą definicji zadań.
# - Tabela jest jawnie kluczowana parą (poziom, typ zadania);
#   klucz zapisywany w magazynie ("l2-t3") jest z tej pary wyliczany.
# - Typ "t2" (zadania na stopień + zadania z funkcji) ma derywację
#   MEMBER_TALLY_SUM — jego `current` to suma liczników członków.
# - Katalog jest niemutowalny i ładowany raz, przy imporcie modułu.

MEETINGS_TASK_TYPE = "t1"
MEMBER_TALLY_TASK_TYPE = "t2"

_TASK_KEY = re.compile(r"^l(?P<level>\d+)-(?P<task_type>t\d+)$")


@dataclass(frozen=True)
class TaskDefinition:
    task_type: str
    name: str
    target: int
    derivation: Derivation = Derivation.DIRECT


@dataclass(frozen=True)
class LevelTemplate:
    level: int
    name: str
    tasks: tuple[TaskDefinition, ...]


def _meetings(target: int) -> TaskDefinition:
    return TaskDefinition(MEETINGS_TASK_TYPE, "Zbiórki zastępu", target)


def _member_tallies(target: int) -> TaskDefinition:
    return TaskDefinition(
        MEMBER_TALLY_TASK_TYPE,
        "Zadania na stopień + zadania z funkcji",
        target,
        Derivation.MEMBER_TALLY_SUM,
    )


LEVEL_CATALOG: tuple[LevelTemplate, ...] = (
    LevelTemplate(1, "Poziom 1 - Początek Przygody", (
        _meetings(4),
        _member_tallies(20),
        TaskDefinition("t3", "Zbudowanie jednej nowej konstrukcji w miejscu zbiórki", 1),
        TaskDefinition("t4", "Zrobić sztandar swojego państwa", 1),
        TaskDefinition("t5", "Mieć imiona postaci fabularnych w zastępie", 1),
        TaskDefinition("t6", "Relacja ze zbiórki (zdjęcie)", 1),
        TaskDefinition("t7", "Przygotować małą aktywność na zimowisko", 1),
    )),
    LevelTemplate(2, "Poziom 2 - Rozwój Zastępu", (
        _meetings(9),
        _member_tallies(40),
        TaskDefinition("t3", "Zbudowanie kuchni zastępu", 1),
        TaskDefinition("t4", "Zrobić stroje fabularne", 1),
        TaskDefinition("t5", "Każda osoba ma postać w zastępie wraz z historią", 1),
        TaskDefinition("t6", "Relacja zdjęciowa ze zbiórki wraz z opisem", 1),
        TaskDefinition("t7", "Przygotować aktywność na zimowisko", 1),
    )),
    LevelTemplate(3, "Poziom 3 - Mistrzostwo", (
        _meetings(15),
        _member_tallies(60),
        TaskDefinition("t3", "Zbudowanie kompleksowego obozowiska zastępu (jak na obozie) w miejscu zbiórek", 1),
        TaskDefinition("t4", "Nowy członek zastępu", 1),
        TaskDefinition("t5", "Przeprowadzenie misji wyznaczonej w porozumieniu z drużynowym", 1),
        TaskDefinition("t6", "Zrobić bronie fabularne do strojów", 1),
        TaskDefinition("t7", "Przygotować scenkę przedstawiającą naród i każdą z postaci", 1),
        TaskDefinition("t8", "Filmik dowolnej tematyki skonsultowanej z drużynowym ze zbiórki", 1),
        TaskDefinition("t9", "Porządna aktywność na zimowisko", 1),
    )),
)

_BY_KEY: dict[tuple[int, str], TaskDefinition] = {
    (template.level, definition.task_type): definition
    for template in LEVEL_CATALOG
    for definition in template.tasks
}


def task_key(level: int, task_type: str) -> TaskKey:
    """Klucz zadania w magazynie, np. `task_key(2, "t3") == "l2-t3"`."""
    return TaskKey(f"l{level}-{task_type}")


def parse_task_key(key: str) -> tuple[int, str] | None:
    """Rozbija klucz "l<poziom>-t<N>" na (poziom, typ); `None` dla kluczy spoza konwencji."""
    match = _TASK_KEY.match(key or "")
    if match is None:
        return None
    return int(match.group("level")), match.group("task_type")


def definition(level: int, task_type: str) -> TaskDefinition | None:
    return _BY_KEY.get((level, task_type))


def is_known_key(key: str) -> bool:
    parsed = parse_task_key(key)
    return parsed is not None and definition(*parsed) is not None


def blank_levels() -> tuple[Level, ...]:
    """
    Poziomy zbudowane z katalogu z zerowymi licznikami.

    Flagi (`is_unlocked`, `is_completed`, `completed`) nie są tu liczone —
    wynik trzeba przepuścić przez `recalculate`.
    """
    return tuple(
        Level(
            level=template.level,
            name=template.name,
            tasks=tuple(
                Task(
                    task_id=task_key(template.level, d.task_type),
                    name=d.name,
                    target=d.target,
                    task_type=d.task_type,
                    derivation=d.derivation,
                )
                for d in template.tasks
            ),
        )
        for template in LEVEL_CATALOG
    )
