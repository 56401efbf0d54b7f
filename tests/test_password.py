"""
Tests for bcrypt password hashing.
"""

from auth.password import DEFAULT_ROUNDS, hash_password, verify_password


class TestPasswordHashing:
    def test_default_work_factor(self):
        hashed = hash_password("password123")
        assert hashed.startswith(f"$2b${DEFAULT_ROUNDS:02d}$")

    def test_hash_is_salted(self):
        first = hash_password("password123", rounds=4)
        second = hash_password("password123", rounds=4)
        assert first != second
        assert verify_password("password123", first)
        assert verify_password("password123", second)

    def test_wrong_password_rejected(self):
        hashed = hash_password("password123", rounds=4)
        assert not verify_password("password124", hashed)

    def test_hash_does_not_contain_plaintext(self):
        assert "password123" not in hash_password("password123", rounds=4)

    def test_malformed_hash_is_not_an_error(self):
        assert verify_password("password123", "not-a-bcrypt-hash") is False

    def test_long_multibyte_password(self):
        password = "ñ" * 50  # 100 bytes once encoded
        hashed = hash_password(password, rounds=4)
        assert verify_password(password, hashed)
