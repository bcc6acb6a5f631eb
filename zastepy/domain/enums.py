from enum import Enum

class Derivation(str, Enum):
    DIRECT = "direct"
    MEMBER_TALLY_SUM = "member_tally_sum"

    def __str__(self):
        return self.value
