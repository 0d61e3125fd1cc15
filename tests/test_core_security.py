"""
Tests for app/core/security.py - bcrypt password hashing.
"""
from core.security import hash_password, verify_password


class TestPasswordHashing:

    def test_hash_is_bcrypt(self):
        assert hash_password("s3cret-pass").startswith("$2b$")

    def test_hash_is_salted(self):
        assert hash_password("s3cret-pass") != hash_password("s3cret-pass")

    def test_verify_round(self):
        hashed = hash_password("s3cret-pass")

        assert verify_password("s3cret-pass", hashed) is True
        assert verify_password("wrong-pass", hashed) is False

    def test_missing_hash_never_verifies(self):
        assert verify_password("anything", None) is False
        assert verify_password("anything", "") is False

    def test_malformed_hash_never_verifies(self):
        assert verify_password("anything", "not-a-bcrypt-hash") is False
