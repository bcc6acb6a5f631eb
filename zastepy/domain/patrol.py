from typing import NewType
from dataclasses import dataclass
from zastepy.domain.enums import Derivation

PatrolId = NewType("PatrolId", str)
MemberId = NewType("MemberId", str)
TaskKey = NewType("TaskKey", str)


@dataclass(frozen=True)
class Task:
    """
    Pojedyncze zadanie na poziomie; niemutowalne.
    `completed` jest zawsze wyliczane przez silnik (current >= target),
    nigdy nie jest traktowane jako dane wejściowe.
    """
    task_id: TaskKey
    name: str
    target: int
    task_type: str | None
    derivation: Derivation = Derivation.DIRECT
    current: int = 0
    completed: bool = False


@dataclass(frozen=True)
class Level:
    level: int
    name: str
    tasks: tuple[Task, ...]
    is_unlocked: bool = False
    is_completed: bool = False

    def find_task(self, task_id: str) -> Task | None:
        for task in self.tasks:
            if task.task_id == task_id:
                return task
        return None


@dataclass(frozen=True)
class Member:
    """Członek zastępu z dwoma niezależnymi licznikami zadań."""
    member_id: MemberId
    name: str
    tasks_stopien: int = 0
    tasks_funkcja: int = 0

    @property
    def total(self) -> int:
        return self.tasks_stopien + self.tasks_funkcja


@dataclass(frozen=True)
class PatrolRecord:
    """Tożsamość zastępu tak, jak trzyma ją magazyn danych."""
    patrol_id: PatrolId
    name: str
    color: str


@dataclass(frozen=True)
class Patrol:
    """
    Zastęp wraz z poziomami i członkami.
    `current_level` i flagi poziomów są pochodne — źródłem prawdy jest
    wynik `recalculate()`, a nie wartości zapisane w obiekcie.
    """
    patrol_id: PatrolId
    name: str
    color: str
    levels: tuple[Level, ...]
    members: tuple[Member, ...] = ()
    current_level: int = 0

    def find_member(self, member_id: str) -> Member | None:
        for member in self.members:
            if member.member_id == member_id:
                return member
        return None



### COMMENTS
# ======================================
# Model danych gry zastępów
# ======================================
# - Wszystkie klasy są `frozen=True`: każda zmiana to nowa instancja
#   (`dataclasses.replace`), a potem pełne przeliczenie przez `recalculate`.
# - Kolekcje są krotkami, więc dwa przeliczenia tego samego stanu
#   dają obiekty równe sobie (`==`).
# - `Task.task_type` to jawne odniesienie do typu zadania ("t1", "t2", ...)
#   wspólnego dla wszystkich poziomów; `derivation` mówi, skąd zadanie
#   bierze swoje `current`.
