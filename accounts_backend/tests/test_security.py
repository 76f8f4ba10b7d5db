import unittest

from accounts_backend.errors import InvalidCredentialFormat
from accounts_backend.security import hash_password, verify_password


class PasswordHashingTests(unittest.TestCase):
    def test_hash_verifies_original_password(self):
        for password in ("a", "correct horse battery staple", "รหัสผ่าน"):
            digest = hash_password(password)
            self.assertNotEqual(digest, password)
            self.assertTrue(verify_password(password, digest))

    def test_other_passwords_do_not_verify(self):
        digest = hash_password("secret")
        for other in ("Secret", "secret ", "", "secre"):
            self.assertFalse(verify_password(other, digest))

    def test_hash_is_salted(self):
        self.assertNotEqual(hash_password("same"), hash_password("same"))

    def test_default_cost_factor_is_eight(self):
        self.assertTrue(hash_password("pw").startswith("$2b$08$"))

    def test_cost_factor_is_configurable(self):
        self.assertTrue(hash_password("pw", rounds=5).startswith("$2b$05$"))

    def test_longer_password_never_matches_72_byte_digest(self):
        password = "x" * 72
        digest = hash_password(password)
        self.assertTrue(verify_password(password, digest))
        self.assertFalse(verify_password(password + "DIFFERENT", digest))

    def test_hashing_refuses_passwords_over_72_bytes(self):
        with self.assertRaises(ValueError):
            hash_password("x" * 73)
        # Multi-byte characters count by encoded length.
        with self.assertRaises(ValueError):
            hash_password("\u0e01" * 25)

    def test_malformed_digest_raises(self):
        for digest in ("", "plaintext", "$2b$08$short"):
            with self.assertRaises(InvalidCredentialFormat):
                verify_password("pw", digest)


if __name__ == "__main__":
    unittest.main()
