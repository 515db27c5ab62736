class InnerQuestError(Exception):
    """Base class for all errors raised by the game engine."""
    pass


class GameStateError(InnerQuestError):
    """Raised when the game is driven in an order it cannot honour (no player, no event, bad choice)."""
    pass
