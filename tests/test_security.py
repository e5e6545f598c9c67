import pytest
from cryptography.fernet import Fernet

from secretdraw.errors import PersistenceError
from secretdraw.security import AssignmentSealer, assignment_fernet


def test_derived_key_is_stable_for_a_secret():
    token = assignment_fernet("s3cret").encrypt(b"payload")
    assert assignment_fernet("s3cret").decrypt(token) == b"payload"


def test_explicit_key_wins_over_secret():
    key = Fernet.generate_key().decode()
    token = Fernet(key.encode()).encrypt(b"payload")
    assert assignment_fernet("ignored", key).decrypt(token) == b"payload"


def test_seal_reuses_ciphertext_for_unchanged_assignments():
    sealer = AssignmentSealer(Fernet(Fernet.generate_key()))
    first = sealer.seal("event", {"a": "b", "b": "a"})

    assert sealer.seal("event", {"a": "b", "b": "a"}) == first
    assert sealer.unseal("event", first) == {"a": "b", "b": "a"}


def test_unseal_with_wrong_key_raises():
    token = AssignmentSealer(Fernet(Fernet.generate_key())).seal("event", {"a": "b"})
    with pytest.raises(PersistenceError):
        AssignmentSealer(Fernet(Fernet.generate_key())).unseal("event", token)
