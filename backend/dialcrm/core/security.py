from datetime import timedelta

from jose import JWTError, jwt
from passlib.context import CryptContext

from dialcrm.core.clock import utcnow
from dialcrm.core.config import settings

ALGORITHM = "HS256"
ACCESS_TOKEN = "access"

password_hasher = CryptContext(schemes=["argon2"], deprecated="auto")


class InvalidToken(Exception):
    pass


def hash_password(password: str) -> str:
    return password_hasher.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return password_hasher.verify(password, hashed)


def create_access_token(username: str, lifetime: timedelta | None = None) -> str:
    issued = utcnow()
    lifetime = lifetime or timedelta(minutes=settings.access_token_expire_minutes)
    claims = {"sub": username, "type": ACCESS_TOKEN, "iat": issued, "exp": issued + lifetime}
    return jwt.encode(claims, settings.secret_key, algorithm=ALGORITHM)


def read_access_token(token: str) -> str:
    """Return the username carried by a session token.

    Raises InvalidToken for bad signatures, expired tokens and tokens of
    another type.
    """
    try:
        claims = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError as exc:
        raise InvalidToken(str(exc)) from exc
    if claims.get("type") != ACCESS_TOKEN or not claims.get("sub"):
        raise InvalidToken("Not an access token")
    return claims["sub"]


def decode_webhook_payload(token: str, secret: str) -> dict:
    """Verify a Dialpad webhook body signed as an HS256 JWT."""
    return jwt.decode(token, secret, algorithms=[ALGORITHM], options={"verify_aud": False})
