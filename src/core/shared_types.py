"""
Type definitions used across layers
"""

from enum import StrEnum


class Status(StrEnum):
    # NOTE a waiting game is never stored: "no game record" is the waiting state. Kept so stored data can name it.
    WAITING = "waiting"
    ACTIVE = "active"
    FINISHED = "finished"


# Type aliases to make the models easier to read
PlayerName = str
Mark = PlayerName | None
Grid = list[list[Mark]]
