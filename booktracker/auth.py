import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from .errors import Forbidden, InvalidSignature, TokenError, TokenExpired, Unauthenticated

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


class PasswordHasher:
    """Salted bcrypt digests with a fixed work factor."""

    def __init__(self, rounds: int = 10):
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
        )

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        try:
            return self._context.verify(password, password_hash)
        except (ValueError, TypeError):
            # unrecognised or corrupt stored hash
            return False

    def dummy_verify(self) -> None:
        self._context.dummy_verify()


class TokenService:
    """
    Issues and verifies HS256 identity tokens.

    Tokens carry ``id`` and ``username`` plus an ``exp`` claim. Nothing is
    stored server-side: a token is valid while its signature matches the
    configured secret and ``exp`` is in the future.
    """

    def __init__(self, secret: str, algorithm: str = "HS256", expires_delta: timedelta = timedelta(hours=1)):
        if not secret:
            raise RuntimeError("Token secret must not be empty")
        self._secret = secret
        self._algorithm = algorithm
        self.expires_delta = expires_delta

    def issue(self, claims: dict) -> str:
        payload = {"id": claims["id"], "username": claims["username"]}
        payload["exp"] = datetime.now(timezone.utc) + self.expires_delta
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> dict:
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except ExpiredSignatureError as exc:
            raise TokenExpired("Token has expired") from exc
        except JWTError as exc:
            raise InvalidSignature(str(exc)) from exc

        user_id = payload.get("id")
        if user_id is None:
            raise InvalidSignature("Token missing user id")
        try:
            user_id = int(user_id)
        except (TypeError, ValueError) as exc:
            raise InvalidSignature("Invalid user id in token") from exc

        return {"id": user_id, "username": payload.get("username")}


@dataclass(frozen=True)
class CurrentUser:
    id: int
    username: str | None


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    tokens: TokenService = Depends(get_token_service),
) -> CurrentUser:
    if credentials is None or not credentials.credentials:
        raise Unauthenticated("Authentication token required.")

    try:
        claims = tokens.verify(credentials.credentials)
    except TokenError as exc:
        logger.warning("JWT verification error: %s", exc)
        raise Forbidden("Invalid or expired token.") from exc

    user = CurrentUser(id=claims["id"], username=claims["username"])
    request.state.user = user
    return user
