import hmac

from passlib.context import CryptContext

_pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return _pwd_context.hash(password[:72])


def is_hashed(stored: str) -> bool:
    return _pwd_context.identify(stored) is not None


def verify_password(password: str, stored: str) -> bool:
    # Legacy rows hold plaintext; compare in constant time until they are re-hashed
    if not is_hashed(stored):
        return hmac.compare_digest(password.encode(), stored.encode())
    return _pwd_context.verify(password[:72], stored)


def needs_rehash(stored: str) -> bool:
    return not is_hashed(stored) or _pwd_context.needs_update(stored)
