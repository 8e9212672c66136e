"""Error taxonomy for the drill engine."""


class DrillError(Exception):
    """Base class for all engine errors."""


class InvalidSettings(DrillError, ValueError):
    """Card settings outside their allowed range."""


class InvalidCard(DrillError, ValueError):
    """Card data that fails validation."""


class InvalidSessionStart(DrillError, ValueError):
    """Start position outside the card pool."""


class InvalidProfile(DrillError, ValueError):
    """Profile name that storage cannot address."""


class EmptyCardPool(DrillError):
    """A session was requested over zero eligible cards."""


class InvalidEvaluationInput(DrillError):
    """Answer method and payload do not match."""


class IllegalTransition(DrillError):
    """An event that is not valid in the current phase."""

    def __init__(self, phase: str, event: str, reason: str = None):
        self.phase = phase
        self.event = event
        message = f"{event} is not allowed in phase {phase}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class CardsCheckedOut(DrillError):
    """Cards are already held by another live session."""

    def __init__(self, profile: str, word_names: list[str]):
        self.profile = profile
        self.word_names = sorted(word_names)
        preview = ', '.join(self.word_names[:5])
        super().__init__(
            f"{len(self.word_names)} card(s) of profile '{profile}' are in use by another session: {preview}"
        )
