from dataclasses import replace
from typing import Iterable, Optional
from zastepy.domain.patrol import Member, MemberId, PatrolId, PatrolRecord
from zastepy.domain.errors import MemberNotFoundError, PatrolAlreadyExistsError, PatrolNotFoundError
from zastepy.ports.change_notifier import ChangeNotifier

### COMMENTS
# ==========================================================
# Adapter pamięciowy dla repozytorium zastępów (adapters/memory/patrol_repo.py).
# ==========================================================
# - Służy do testów, trybu demo i CLI bez podanej bazy (brak trwałości).
# - Dane przechowywane są w słownikach:
#     * `_patrols: dict[PatrolId, PatrolRecord]`
#     * `_passwords: dict[PatrolId, str]`
#     * `_tasks: dict[PatrolId, dict[task_key, current]]`
#     * `_members: dict[PatrolId, dict[MemberId, Member]]` (kolejność dodania)
# - Po każdym udanym zapisie powiadamiany jest `notifier` (jeśli podany).
# - Repozytorium nie zawiera logiki biznesowej — tylko trwałość surowego stanu.


class InMemoryPatrolRepository:
    """
        Repozytorium w pamięci z opcjonalnym zestawem startowych zastępów.
        :param initial: Pary (PatrolRecord, hasło) do wstępnego załadowania.
        :param notifier: Opcjonalny port powiadomień o zmianach.
    """
    def __init__(
        self,
        initial: Iterable[tuple[PatrolRecord, str]] | None = None,
        notifier: ChangeNotifier | None = None,
    ) -> None:
        self._patrols: dict[PatrolId, PatrolRecord] = {}
        self._passwords: dict[PatrolId, str] = {}
        self._tasks: dict[PatrolId, dict[str, int]] = {}
        self._members: dict[PatrolId, dict[MemberId, Member]] = {}
        self.notifier = notifier
        for record, password in (initial or []):
            self.add_patrol(record, password)

    def _require(self, patrol_id: PatrolId) -> None:
        if patrol_id not in self._patrols:
            raise PatrolNotFoundError(patrol_id)

    def _notify(self, table: str) -> None:
        if self.notifier is not None:
            self.notifier.publish(table)

    def add_patrol(self, record: PatrolRecord, password: str) -> None:
        if record.patrol_id in self._patrols:
            raise PatrolAlreadyExistsError(record.patrol_id)
        self._patrols[record.patrol_id] = record
        self._passwords[record.patrol_id] = password
        self._tasks[record.patrol_id] = {}
        self._members[record.patrol_id] = {}

    def list_patrols(self) -> list[PatrolRecord]:
        return list(self._patrols.values())

    def get_patrol(self, patrol_id: PatrolId) -> Optional[PatrolRecord]:
        return self._patrols.get(patrol_id)

    def task_counters(self, patrol_id: PatrolId) -> dict[str, int]:
        return dict(self._tasks.get(patrol_id, {}))

    def list_members(self, patrol_id: PatrolId) -> list[Member]:
        return list(self._members.get(patrol_id, {}).values())

    def upsert_task(self, patrol_id: PatrolId, task_key: str, current: int) -> None:
        """
            Wstawia lub nadpisuje licznik zadania.

            :raises PatrolNotFoundError: Gdy zastęp nie istnieje.
        """
        self._require(patrol_id)
        self._tasks[patrol_id][task_key] = current
        self._notify("tasks")

    def add_member(self, patrol_id: PatrolId, member: Member) -> None:
        self._require(patrol_id)
        self._members[patrol_id][member.member_id] = member
        self._notify("members")

    def remove_member(self, patrol_id: PatrolId, member_id: MemberId) -> None:
        members = self._members.get(patrol_id, {})
        if member_id not in members:
            raise MemberNotFoundError(member_id)
        del members[member_id]
        self._notify("members")

    def update_member_tallies(
        self,
        patrol_id: PatrolId,
        member_id: MemberId,
        tasks_stopien: int,
        tasks_funkcja: int,
    ) -> None:
        members = self._members.get(patrol_id, {})
        if member_id not in members:
            raise MemberNotFoundError(member_id)
        members[member_id] = replace(
            members[member_id], tasks_stopien=tasks_stopien, tasks_funkcja=tasks_funkcja
        )
        self._notify("members")

    def get_password(self, patrol_id: PatrolId) -> Optional[str]:
        return self._passwords.get(patrol_id)
