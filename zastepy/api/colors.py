from enum import Enum

class LevelColor(Enum):
    LOCKED = "[dim]"
    UNLOCKED = "[yellow]"
    DONE = "[green]"
    RESET = "[/]"

    def __str__(self):
        return self.value
