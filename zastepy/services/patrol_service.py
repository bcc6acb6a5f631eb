import logging
import re
from dataclasses import replace
from typing import Callable
from zastepy.domain.builder import build_patrol
from zastepy.domain.enums import Derivation
from zastepy.domain.errors import (
    AccessDeniedError,
    DomainError,
    MemberNotFoundError,
    PatrolAlreadyExistsError,
    PatrolNotFoundError,
    PatrolValidationError,
    TaskNotFoundError,
)
from zastepy.domain.patrol import Member, MemberId, Patrol, PatrolId, PatrolRecord
from zastepy.domain.progress import recalculate
from zastepy.domain.summary import PatrolSummary, RankedMember, leaderboard, summarize_patrol, top_members
from zastepy.ports.auth_gate import AuthGate
from zastepy.ports.change_notifier import ChangeNotifier
from zastepy.ports.id_provider import IdProvider
from zastepy.ports.patrol_repository import PatrolRepository

logger = logging.getLogger(__name__)

HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")


### COMMENTS
# ==========================================================
# Warstwa serwisowa (services/patrol_service.py) — przypadki użycia.
# ==========================================================
# Rola:
# - Ładowanie surowego stanu z repozytorium i budowanie przeliczonych zastępów.
# - Mutacje zastępowego: licznik zadania, dodanie/usunięcie członka, liczniki członka.
# - Sprawdzenie uprawnień (`AuthGate.is_leader`) przed każdą mutacją.
#
# Zasady:
# - Serwis korzysta wyłącznie z portów; nie dotyka adapterów.
# - Każda mutacja: walidacja → klamrowanie do >= 0 → zmiana lokalna
#   + pełne `recalculate` → zapis w repozytorium.
# - Nieudany zapis: log + pełne przeładowanie z repozytorium
#   ("ostatni zapis wygrywa, przeładuj przy błędzie").
# - Sygnał z `ChangeNotifier` → pełne przeładowanie. Brak aktualizacji przyrostowych.


class PatrolService:
    """
    Serwis przypadków użycia gry zastępów.

    :param repo: Implementacja portu PatrolRepository.
    :param auth: Bramka uprawnień zastępowego.
    :param id_provider: Generator identyfikatorów członków.
    :param notifier: Opcjonalny kanał zmian; sygnał wymusza przeładowanie.
    :param strict: Czy nieznane klucze zadań w magazynie mają być błędem.
    """
    def __init__(
        self,
        repo: PatrolRepository,
        auth: AuthGate,
        id_provider: IdProvider,
        notifier: ChangeNotifier | None = None,
        *,
        strict: bool = False,
    ) -> None:
        self.repo = repo
        self.auth = auth
        self.id_provider = id_provider
        self.strict = strict
        self.last_error: str | None = None
        self._patrols: dict[PatrolId, Patrol] = {}
        self._unsubscribe = notifier.subscribe(self._on_change) if notifier is not None else None
        self.reload()

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    # --- odczyt -------------------------------------------------------------

    def reload(self) -> list[Patrol]:
        """
        Przeładowuje cały stan z repozytorium i przelicza każdy zastęp.

        :raises StorageError: Gdy repozytorium nie odpowiada.
        :return: Lista zastępów w kolejności z repozytorium.
        """
        patrols: dict[PatrolId, Patrol] = {}
        for record in self.repo.list_patrols():
            patrols[record.patrol_id] = build_patrol(
                record,
                self.repo.task_counters(record.patrol_id),
                self.repo.list_members(record.patrol_id),
                strict=self.strict,
            )
        self._patrols = patrols
        logger.debug("Przeładowano %d zastępów", len(patrols))
        return list(patrols.values())

    def _on_change(self, table: str) -> None:
        logger.debug("Sygnał zmiany w tabeli %s — przeładowanie", table)
        try:
            self.reload()
        except DomainError as e:
            logger.exception("Przeładowanie po sygnale zmiany nie powiodło się")
            self.last_error = str(e)

    def list_patrols(self) -> list[Patrol]:
        return list(self._patrols.values())

    def get_patrol(self, patrol_id: PatrolId) -> Patrol:
        """
            Zwraca przeliczony zastęp.

            :raises PatrolNotFoundError: Gdy nie ma zastępu o tym ID.
        """
        patrol = self._patrols.get(patrol_id)
        if patrol is None:
            raise PatrolNotFoundError(patrol_id)
        return patrol

    def summaries(self) -> list[PatrolSummary]:
        return [summarize_patrol(p) for p in self._patrols.values()]

    def leaderboard(self, patrol_id: PatrolId) -> list[RankedMember]:
        return leaderboard(self.get_patrol(patrol_id))

    def top_members(self, limit: int = 5) -> list[RankedMember]:
        if limit < 1:
            raise PatrolValidationError("limit", "limit >= 1")
        return top_members(self._patrols.values(), limit)

    # --- uprawnienia --------------------------------------------------------

    def sign_in(self, patrol_id: PatrolId, password: str) -> bool:
        return self.auth.sign_in(patrol_id, password)

    def sign_out(self) -> None:
        self.auth.sign_out()

    def _require_leader(self, patrol_id: PatrolId) -> None:
        if not self.auth.is_leader(patrol_id):
            raise AccessDeniedError(patrol_id)

    # --- mutacje ------------------------------------------------------------

    def add_patrol(self, patrol_id: str, name: str, color: str, password: str) -> Patrol:
        """
            Zakłada nowy zastęp (bez członków, liczniki zerowe).

            :raises PatrolValidationError: Gdy ID, nazwa lub hasło są puste albo kolor nie jest w formacie #rrggbb.
            :raises PatrolAlreadyExistsError: Gdy ID jest zajęte.
        """
        for field, value in (("patrol_id", patrol_id), ("name", name), ("password", password)):
            if not value or not value.strip():
                raise PatrolValidationError(field, "Wartość nie może być pusta")
        if not HEX_COLOR.match(color):
            raise PatrolValidationError("color", "Kolor w formacie #rrggbb")
        record = PatrolRecord(PatrolId(patrol_id.strip()), name.strip(), color)
        if self.repo.get_patrol(record.patrol_id) is not None:
            raise PatrolAlreadyExistsError(record.patrol_id)
        self.repo.add_patrol(record, password)
        self.reload()
        return self.get_patrol(record.patrol_id)

    def _commit(self, updated: Patrol, write: Callable[[], None]) -> Patrol:
        patrol_id = updated.patrol_id
        previous = self._patrols[patrol_id]
        self._patrols[patrol_id] = recalculate(updated)
        try:
            write()
            self.last_error = None
        except DomainError as e:
            logger.exception("Zapis zastępu %s nie powiódł się; przeładowuję stan z magazynu", patrol_id)
            self.last_error = str(e)
            try:
                self.reload()
            except DomainError:
                # magazyn całkiem niedostępny: wracamy do ostatniego zapisanego stanu
                self._patrols[patrol_id] = previous
                raise
        return self.get_patrol(patrol_id)

    def update_task(self, patrol_id: PatrolId, level_index: int, task_key: str, new_current: int) -> Patrol:
        """
            Ustawia licznik zadania na wskazanym poziomie.

            - Wartość jest przycinana do >= 0.
            - Zadanie liczone z członków (suma zadań na stopień i z funkcji)
              nie może być edytowane ręcznie.

            :param level_index: Indeks poziomu od 0.
            :raises AccessDeniedError: Gdy zastępowy nie jest zalogowany do tego zastępu.
            :raises PatrolValidationError: Zły indeks poziomu lub zadanie liczone automatycznie.
            :raises TaskNotFoundError: Gdy na poziomie nie ma takiego zadania.
            :return: Przeliczony zastęp.
        """
        self._require_leader(patrol_id)
        patrol = self.get_patrol(patrol_id)
        if not 0 <= level_index < len(patrol.levels):
            raise PatrolValidationError("level_index", f"0 <= level_index < {len(patrol.levels)}")

        level = patrol.levels[level_index]
        task = level.find_task(task_key)
        if task is None:
            raise TaskNotFoundError(task_key, level.level)
        if task.derivation == Derivation.MEMBER_TALLY_SUM:
            raise PatrolValidationError("task", f"{task_key} jest liczone automatycznie z zadań członków")

        value = max(0, int(new_current))
        tasks = tuple(replace(t, current=value) if t.task_id == task_key else t for t in level.tasks)
        levels = patrol.levels[:level_index] + (replace(level, tasks=tasks),) + patrol.levels[level_index + 1:]
        return self._commit(
            replace(patrol, levels=levels),
            lambda: self.repo.upsert_task(patrol_id, task_key, value),
        )

    def add_member(self, patrol_id: PatrolId, name: str) -> Patrol:
        """
            Dodaje członka z zerowymi licznikami i nowym ID z `IdProvider`.

            :raises PatrolValidationError: Gdy imię jest puste.
        """
        self._require_leader(patrol_id)
        patrol = self.get_patrol(patrol_id)
        if not name or not name.strip():
            raise PatrolValidationError("name", "Imię nie może być puste")

        member = Member(member_id=MemberId(self.id_provider.new_id()), name=name.strip())
        return self._commit(
            replace(patrol, members=patrol.members + (member,)),
            lambda: self.repo.add_member(patrol_id, member),
        )

    def remove_member(self, patrol_id: PatrolId, member_id: MemberId) -> Patrol:
        self._require_leader(patrol_id)
        patrol = self.get_patrol(patrol_id)
        if patrol.find_member(member_id) is None:
            raise MemberNotFoundError(member_id)

        members = tuple(m for m in patrol.members if m.member_id != member_id)
        return self._commit(
            replace(patrol, members=members),
            lambda: self.repo.remove_member(patrol_id, member_id),
        )

    def update_member_tasks(
        self,
        patrol_id: PatrolId,
        member_id: MemberId,
        tasks_stopien: int,
        tasks_funkcja: int,
    ) -> Patrol:
        """
            Podmienia liczniki członka (zadania na stopień, zadania z funkcji).
            Obie wartości są przycinane do >= 0.

            :raises MemberNotFoundError: Gdy członek nie należy do zastępu.
        """
        self._require_leader(patrol_id)
        patrol = self.get_patrol(patrol_id)
        if patrol.find_member(member_id) is None:
            raise MemberNotFoundError(member_id)

        stopien = max(0, int(tasks_stopien))
        funkcja = max(0, int(tasks_funkcja))
        members = tuple(
            replace(m, tasks_stopien=stopien, tasks_funkcja=funkcja) if m.member_id == member_id else m
            for m in patrol.members
        )
        return self._commit(
            replace(patrol, members=members),
            lambda: self.repo.update_member_tallies(patrol_id, member_id, stopien, funkcja),
        )
