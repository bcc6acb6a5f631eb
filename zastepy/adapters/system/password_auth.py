import hmac
import logging
from zastepy.domain.patrol import PatrolId
from zastepy.ports.auth_gate import AuthGate
from zastepy.ports.patrol_repository import PatrolRepository

logger = logging.getLogger(__name__)


class PasswordAuthGate(AuthGate):
    """
    Logowanie zastępowego hasłem przypisanym do zastępu.

    - Hasło pobierane z repozytorium (`get_password`), porównanie w stałym czasie.
    - Zalogowany zastępowy ma uprawnienia tylko do jednego zastępu naraz.
    - Sesja żyje w pamięci obiektu (brak trwałego "zapamiętaj mnie").
    """

    def __init__(self, repo: PatrolRepository) -> None:
        self.repo = repo
        self.leader_of: PatrolId | None = None

    def sign_in(self, patrol_id: PatrolId, password: str) -> bool:
        expected = self.repo.get_password(patrol_id)
        if expected is None or not hmac.compare_digest(expected.encode(), (password or "").encode()):
            logger.info("Nieudane logowanie do zastępu %s", patrol_id)
            return False
        self.leader_of = patrol_id
        logger.info("Zalogowano zastępowego zastępu %s", patrol_id)
        return True

    def sign_out(self) -> None:
        self.leader_of = None

    def is_leader(self, patrol_id: PatrolId) -> bool:
        return self.leader_of is not None and self.leader_of == patrol_id
