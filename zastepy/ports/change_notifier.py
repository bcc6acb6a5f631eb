from typing import Callable, Protocol

ChangeCallback = Callable[[str], None]


class ChangeNotifier(Protocol):
    """
    Port powiadomień o zmianach w magazynie ("tasks" / "members").
    Odbiorca po sygnale przeładowuje cały stan i przelicza zastępy.
    """
    def subscribe(self, callback: ChangeCallback) -> Callable[[], None]:
        """Rejestruje odbiorcę; zwraca funkcję wyrejestrowującą."""

    def publish(self, table: str) -> None:
        pass
