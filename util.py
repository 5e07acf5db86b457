import datetime
import hashlib
import hmac
import secrets

import jwt

from config import JWT_SECRET, LOGIN_EXPIRY_HOURS

PASSWORD_HASH_ITERATIONS = 260000


def utcnow() -> datetime.datetime:
    """
    Naive UTC timestamp, matching what is stored in DateTime columns.
    """
    return datetime.datetime.now(datetime.UTC).replace(tzinfo=None)


def encode_jwt(id, email, role, expires_in_hours=LOGIN_EXPIRY_HOURS):
    payload = {
        'id': id,
        'email': email,
        'role': role,
        'exp': datetime.datetime.now(datetime.UTC) + datetime.timedelta(hours=expires_in_hours)
    }
    jwt_token = jwt.encode(payload, JWT_SECRET, algorithm='HS256')
    return jwt_token


def decode_jwt(token):
    return jwt.decode(token, JWT_SECRET, algorithms='HS256')


def generate_token(length: int = 32) -> str:
    return secrets.token_hex(length)


def hash_password(password: str) -> str:
    """
    Salted PBKDF2 hash in the form `pbkdf2_sha256$<iterations>$<salt>$<hex digest>`.
    """
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac('sha256', password.encode('utf-8'), salt.encode('utf-8'), PASSWORD_HASH_ITERATIONS)
    return f'pbkdf2_sha256${PASSWORD_HASH_ITERATIONS}${salt}${digest.hex()}'


def verify_password(password: str, password_hash: str) -> bool:
    try:
        algorithm, iterations, salt, expected = password_hash.split('$')
    except ValueError:
        return False

    if algorithm != 'pbkdf2_sha256':
        return False

    digest = hashlib.pbkdf2_hmac('sha256', password.encode('utf-8'), salt.encode('utf-8'), int(iterations))
    return hmac.compare_digest(digest.hex(), expected)
