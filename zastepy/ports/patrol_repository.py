from typing import Protocol, Optional
from zastepy.domain.patrol import Member, MemberId, PatrolId, PatrolRecord


### COMMENTS
# ==========================================================
# Kontrakt repozytorium zastępów (ports/patrol_repository.py).
# ==========================================================
# Ten moduł definiuje interfejs (Protocol) dla warstwy trwałości gry.
# - Jest niezależny od technologii (pamięć, baza SQL).
# - Repozytorium trzyma WYŁĄCZNIE stan surowy: tożsamość zastępu,
#   liczniki zadań (patrol_id, task_key) → current oraz członków z licznikami.
#   Stan pochodny (ukończenia, odblokowania, poziom) nigdy nie jest zapisywany.
# - Adaptery mapują błędy technologiczne na błędy domenowe
#   (np. UNIQUE → PatrolAlreadyExistsError, awaria bazy → StorageError).
# - Repozytorium nie zawiera logiki biznesowej (walidacje są w serwisie).


class PatrolRepository(Protocol):
    """Interfejs repozytorium surowego stanu zastępów.

    Adaptery (implementacje) muszą:
    - zapewnić atomowość pojedynczej operacji zapisu,
    - mapować błędy technologiczne na błędy domenowe,
    - zwracać zastępy i członków w stabilnej kolejności (kolejność dodania),
    - po udanym zapisie powiadomić `ChangeNotifier` (jeśli został podany).
    """

    def add_patrol(self, record: PatrolRecord, password: str) -> None:
        """Dodaje nowy zastęp wraz z hasłem zastępowego.

        Wyjątki domenowe:
            PatrolAlreadyExistsError: Gdy istnieje zastęp o tym samym `patrol_id`.
        """

    def list_patrols(self) -> list[PatrolRecord]:
        """Zwraca wszystkie zastępy w kolejności dodania."""

    def get_patrol(self, patrol_id: PatrolId) -> Optional[PatrolRecord]:
        """Zwraca rekord zastępu albo `None`."""

    def task_counters(self, patrol_id: PatrolId) -> dict[str, int]:
        """Zwraca zapisane liczniki zadań zastępu: `{task_key: current}`.

        Uwagi:
            Brak wiersza dla zadania oznacza licznik 0.
        """

    def list_members(self, patrol_id: PatrolId) -> list[Member]:
        """Zwraca członków zastępu w kolejności dodania."""

    def upsert_task(self, patrol_id: PatrolId, task_key: str, current: int) -> None:
        """Wstawia lub nadpisuje licznik zadania (klucz: `patrol_id` + `task_key`).

        Wyjątki domenowe:
            PatrolNotFoundError: Gdy zastęp nie istnieje.
        """

    def add_member(self, patrol_id: PatrolId, member: Member) -> None:
        """Dodaje członka do zastępu.

        Wyjątki domenowe:
            PatrolNotFoundError: Gdy zastęp nie istnieje.
        """

    def remove_member(self, patrol_id: PatrolId, member_id: MemberId) -> None:
        """Usuwa członka (hard delete).

        Wyjątki domenowe:
            MemberNotFoundError: Gdy członek nie istnieje w tym zastępie.
        """

    def update_member_tallies(
        self,
        patrol_id: PatrolId,
        member_id: MemberId,
        tasks_stopien: int,
        tasks_funkcja: int,
    ) -> None:
        """Podmienia oba liczniki członka.

        Wyjątki domenowe:
            MemberNotFoundError: Gdy członek nie istnieje w tym zastępie.
        """

    def get_password(self, patrol_id: PatrolId) -> Optional[str]:
        """Zwraca hasło zastępowego albo `None`, gdy zastęp nie ma hasła."""
