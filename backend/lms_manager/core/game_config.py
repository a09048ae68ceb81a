from enum import Enum


class GameStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


class RoundStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


class WinnerMode(str, Enum):
    SINGLE = "single"
    MULTIPLE = "multiple"


class RolloverMode(str, Enum):
    ROUND = "round"
    GAME = "game"


class PickResult(str, Enum):
    WIN = "win"
    LOSS = "loss"
    DRAW = "draw"
    POSTPONED = "postponed"


class OutcomeKind(str, Enum):
    ADVANCED = "advanced"
    ROLLED_BACK = "rolled_back"
    GAME_RESET = "game_reset"
    COMPLETED = "completed"


# Defaults for new games
DEFAULT_POSTPONE_AS_WIN = True
DEFAULT_WINNER_MODE = WinnerMode.SINGLE
DEFAULT_ROLLOVER_MODE = RolloverMode.ROUND
DEFAULT_MAX_WINNERS = 4

FIRST_ROUND_NUMBER = 1

# Role allowed to act on behalf of another manager (?impersonate=)
ROLE_GAME_ADMIN = "game_admin"
