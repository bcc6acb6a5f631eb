

### COMMENTS
# ============================================
# Konwencja użycia błędów domenowych w projekcie
# ============================================
# - Repozytoria (adaptery):
#     * wykrywają duplikaty lub brak rekordów
#     * mapują błędy techniczne (np. IntegrityError, OSError) na DomainError / StorageError
#
# - Serwis:
#     * waliduje dane od zastępowego i rzuca PatrolValidationError
#     * sprawdza uprawnienia (AccessDeniedError) przed każdą mutacją
#     * brak zastępu / członka / zadania → *NotFoundError
#
# - Silnik postępu (domain/progress.py) nie rzuca żadnych wyjątków.
#
# - UI (CLI):
#     * łapie DomainError (lub konkretne klasy) i wyświetla przyjazny komunikat


class DomainError(Exception):
    """Bazowa klasa dla błędów domenowych.
    Pozwala odróżnić błędy logiki gry zastępów od błędów technicznych.
    Nie powinna być rzucana bezpośrednio — używaj klas pochodnych.
    """


class PatrolValidationError(DomainError):
    """Rzucany, gdy dane wejściowe nie spełniają reguł gry.
    Przykłady:
    - pusta nazwa członka zastępu,
    - indeks poziomu spoza katalogu,
    - próba ręcznej edycji zadania liczonego automatycznie (suma zadań członków).
    """
    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(self.__str__())
    def __str__(self):
        return f"Błąd walidacji pola '{self.field}': {self.message}"


class PatrolNotFoundError(DomainError):
    def __init__(self, patrol_id: str):
        self.patrol_id = patrol_id
        super().__init__(self.__str__())
    def __str__(self):
        return f"Zastęp o ID {self.patrol_id} nie istnieje."


class PatrolAlreadyExistsError(DomainError):
    """Kolizja identyfikatora przy dodawaniu zastępu (`add_patrol`)."""
    def __init__(self, patrol_id: str):
        self.patrol_id = patrol_id
        super().__init__(self.__str__())
    def __str__(self):
        return f"Zastęp o ID {self.patrol_id} juz istnieje."


class MemberNotFoundError(DomainError):
    def __init__(self, member_id: str):
        self.member_id = member_id
        super().__init__(self.__str__())
    def __str__(self):
        return f"Członek zastępu o ID {self.member_id} nie istnieje."


class TaskNotFoundError(DomainError):
    """Rzucany, gdy na wskazanym poziomie nie ma zadania o podanym kluczu."""
    def __init__(self, task_key: str, level: int | None = None):
        self.task_key = task_key
        self.level = level
        super().__init__(self.__str__())
    def __str__(self):
        if self.level is None:
            return f"Zadanie {self.task_key} nie istnieje."
        return f"Zadanie {self.task_key} nie istnieje na poziomie {self.level}."


class UnknownTaskError(DomainError):
    """Zapisany licznik zadania nie pasuje do katalogu poziomów.
    Zgłaszany przy budowaniu zastępu w trybie `strict=True`.
    """
    def __init__(self, task_key: str):
        self.task_key = task_key
        super().__init__(self.__str__())
    def __str__(self):
        return f"Klucz zadania '{self.task_key}' nie występuje w katalogu poziomów."


class AccessDeniedError(DomainError):
    def __init__(self, patrol_id: str):
        self.patrol_id = patrol_id
        super().__init__(self.__str__())
    def __str__(self):
        return f"Brak uprawnień do edycji zastępu {self.patrol_id}. Zaloguj się hasłem zastępowego."


class StorageError(DomainError):
    """Błąd techniczny magazynu danych zmapowany na błąd domenowy."""
