from typing import Protocol
from zastepy.domain.patrol import PatrolId


class AuthGate(Protocol):
    """
    Bramka uprawnień zastępowego.

    Serwis pyta tylko `is_leader(patrol_id)` przed każdą mutacją;
    sposób weryfikacji hasła i przechowywania sesji należy do adaptera.
    """
    def sign_in(self, patrol_id: PatrolId, password: str) -> bool:
        pass

    def sign_out(self) -> None:
        pass

    def is_leader(self, patrol_id: PatrolId) -> bool:
        pass
