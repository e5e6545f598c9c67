from __future__ import annotations


class SecretDrawError(RuntimeError):
    pass


class ValidationError(SecretDrawError):
    pass


class NotFoundError(SecretDrawError):
    """
    Unknown event and unknown participant token share this error and its
    message, so a caller cannot tell which one it guessed wrong.
    """
    def __init__(self, message: str = "Draw not found."):
        super().__init__(message)


class CapacityError(SecretDrawError):
    pass


class StoreFullError(CapacityError):
    pass


class EventFullError(CapacityError):
    pass


class DrawError(SecretDrawError):
    pass


class AlreadyDrawnError(DrawError):
    pass


class InsufficientParticipantsError(DrawError):
    pass


class PersistenceError(SecretDrawError):
    pass


class SealedDataError(PersistenceError):
    """Sealed assignments exist but cannot be opened with the configured key."""
