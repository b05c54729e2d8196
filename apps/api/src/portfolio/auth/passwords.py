from passlib.context import CryptContext

from portfolio.config import MIN_PASSWORD_LENGTH

_password_ctx = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class WeakPasswordError(ValueError):
    pass


def hash_password(password: str) -> str:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise WeakPasswordError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    return _password_ctx.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return _password_ctx.verify(password, password_hash)
