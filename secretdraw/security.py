from __future__ import annotations

import base64
import hashlib
import json

from cryptography.fernet import Fernet, InvalidToken

from .errors import PersistenceError, SealedDataError


# ---------------------------------------------------------------------------
# Assignment encryption-at-rest
#
# Draw results should not be readable by anyone who opens the data file.
# Each event's giver -> recipient map is written as a single Fernet token.
#
# NOTE: whoever holds SECRET_KEY / ASSIGNMENT_ENC_KEY can still decrypt. This
# guards against casual inspection of the data file and of its backups.
# ---------------------------------------------------------------------------


def assignment_fernet(secret_key: str, explicit_key: str | None = None) -> Fernet:
    """Fernet keyed by ASSIGNMENT_ENC_KEY, or derived from SECRET_KEY."""
    explicit = (explicit_key or "").strip()
    if explicit:
        # Expect a urlsafe base64-encoded 32-byte key.
        return Fernet(explicit.encode("utf-8"))

    # Stable derivation so decrypt works across restarts.
    digest = hashlib.sha256(b"secretdraw-assignments|" + secret_key.encode("utf-8")).digest()
    return Fernet(base64.urlsafe_b64encode(digest))


class AssignmentSealer:
    """
    Seals an event's assignment map into ciphertext and back.

    Assignments never change once a draw ran, so the ciphertext is cached per
    event and every later snapshot reuses it instead of re-encrypting.
    """
    def __init__(self, fernet: Fernet):
        self._fernet = fernet
        self._cache: dict[str, tuple[dict[str, str], str]] = {}

    def seal(self, event_id: str, assignments: dict[str, str]) -> str:
        cached = self._cache.get(event_id)
        if cached and cached[0] == assignments:
            return cached[1]
        payload = json.dumps(assignments, sort_keys=True).encode("utf-8")
        token = self._fernet.encrypt(payload).decode("utf-8")
        self._cache[event_id] = (dict(assignments), token)
        return token

    def unseal(self, event_id: str, token: str) -> dict[str, str]:
        if not isinstance(token, str):
            raise PersistenceError("Sealed assignments are malformed")
        try:
            raw = self._fernet.decrypt(token.encode("utf-8"))
        except InvalidToken as e:
            raise SealedDataError("Sealed assignments cannot be decrypted with the configured key") from e
        try:
            assignments = json.loads(raw.decode("utf-8"))
        except ValueError as e:
            raise PersistenceError("Sealed assignments are malformed") from e
        if not isinstance(assignments, dict):
            raise PersistenceError("Sealed assignments are malformed")
        assignments = {str(k): str(v) for k, v in assignments.items()}
        self._cache[event_id] = (dict(assignments), token)
        return assignments

    def forget(self, event_id: str) -> None:
        self._cache.pop(event_id, None)
