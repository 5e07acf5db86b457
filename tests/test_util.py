import datetime

import jwt
import pytest

from tests.test_main import UtilTest, test_db
from util import encode_jwt, decode_jwt, hash_password, verify_password, generate_token, utcnow


class TestUtil:
    def test_encode_jwt(self):
        token = encode_jwt(1, 'user@example.com', 'student')

        payload = decode_jwt(token)
        assert payload['id'] == 1
        assert payload['email'] == 'user@example.com'
        assert payload['role'] == 'student'

    def test_decode_jwt_should_fail_when_token_expired(self):
        token = encode_jwt(1, 'user@example.com', 'student', expires_in_hours=-1)

        with pytest.raises(jwt.ExpiredSignatureError):
            decode_jwt(token)

    def test_hash_password_should_be_salted(self):
        first = hash_password('password123')
        second = hash_password('password123')

        assert first != second
        assert first.startswith('pbkdf2_sha256$')

    def test_verify_password(self):
        password_hash = hash_password('password123')

        assert verify_password('password123', password_hash)
        assert not verify_password('password124', password_hash)
        assert not verify_password('password123', 'not a hash')

    def test_generate_token_should_be_unique(self):
        assert generate_token() != generate_token()
        assert len(generate_token(16)) == 32

    def test_utcnow_should_be_naive(self):
        now = utcnow()

        assert now.tzinfo is None
        assert abs(now - datetime.datetime.now(datetime.UTC).replace(tzinfo=None)) < datetime.timedelta(seconds=5)

    def test_created_at_should_default_to_utcnow(self, test_db):
        before = utcnow()
        UtilTest.insert_user(1, 'user@example.com', 'student')

        user = UtilTest.get_user('user@example.com')
        assert user.created_at.tzinfo is None
        assert before - datetime.timedelta(seconds=1) <= user.created_at <= utcnow()
