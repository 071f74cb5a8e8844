import enum
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, List

from jose import jwt, JWTError, ExpiredSignatureError
from jose.exceptions import JWTClaimsError
from passlib.context import CryptContext

from collabmodel.core.config import Settings
from collabmodel.core.errors import AuthenticationError, ConfigurationError


def utcnow() -> datetime:
    """Текущее время UTC без tzinfo, в том же виде, в каком оно хранится в БД"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class TokenType(enum.Enum):
    """Класс токена, у каждого свой секрет и срок жизни"""
    ACCESS = "access"
    REFRESH = "refresh"


class TokenErrorKind(enum.Enum):
    INVALID_TOKEN = "invalid_token"
    EXPIRED_SIGNATURE = "expired_signature"
    OTHER = "other"


_TOKEN_ERROR_MESSAGES = {
    TokenErrorKind.INVALID_TOKEN: "Token is invalid!",
    TokenErrorKind.EXPIRED_SIGNATURE: "Token is expired!",
    TokenErrorKind.OTHER: "Token could not be decoded",
}


class TokenError(AuthenticationError):
    """Ошибка проверки токена, всегда означает отказ в аутентификации"""

    def __init__(self, kind: TokenErrorKind, message: Optional[str] = None):
        super().__init__(message or _TOKEN_ERROR_MESSAGES[kind])
        self.kind = kind


@dataclass(frozen=True)
class Claims:
    sub: str
    exp: int
    iat: Optional[int] = None
    jti: Optional[str] = None

    @property
    def user_id(self) -> int:
        return int(self.sub)


class TokenService:
    """Выпуск и проверка подписанных токенов доступа и обновления"""

    def __init__(self, settings: Settings):
        self._algorithm = settings.jwt_algorithm
        self._secrets = {
            TokenType.ACCESS: settings.access_token_secret,
            TokenType.REFRESH: settings.refresh_token_secret,
        }
        self._durations = {
            TokenType.ACCESS: timedelta(minutes=settings.access_token_ttl_minutes),
            TokenType.REFRESH: timedelta(days=settings.refresh_token_ttl_days),
        }
        for token_type, secret in self._secrets.items():
            if not secret:
                raise ConfigurationError(f"Secret for {token_type.value} tokens is not configured")
        if self._secrets[TokenType.ACCESS] == self._secrets[TokenType.REFRESH]:
            raise ConfigurationError("Access and refresh tokens must not share a secret")

    def duration(self, token_type: TokenType) -> timedelta:
        return self._durations[token_type]

    def issue(
        self,
        token_type: TokenType,
        subject: str,
        expires_delta: Optional[timedelta] = None
    ) -> str:
        """Создание подписанного токена для субъекта"""
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta if expires_delta is not None else self.duration(token_type))

        to_encode = {
            "sub": str(subject),
            "exp": int(expire.timestamp()),
            "iat": int(now.timestamp()),
            # jti делает токены уникальными даже при выпуске в одну секунду
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(to_encode, self._secrets[token_type], algorithm=self._algorithm)

    def validate(self, token_type: TokenType, token: str) -> Claims:
        """Проверка подписи и срока действия токена"""
        try:
            payload = jwt.decode(token, self._secrets[token_type], algorithms=[self._algorithm])
        except ExpiredSignatureError:
            raise TokenError(TokenErrorKind.EXPIRED_SIGNATURE)
        except JWTClaimsError as exc:
            raise TokenError(TokenErrorKind.OTHER, f"Token claims are invalid: {exc}")
        except JWTError:
            raise TokenError(TokenErrorKind.INVALID_TOKEN)
        except (TypeError, ValueError, AttributeError) as exc:
            raise TokenError(TokenErrorKind.OTHER, f"Token could not be decoded: {exc}")

        sub = payload.get("sub")
        exp = payload.get("exp")
        if not isinstance(sub, str) or not sub.isdigit() or exp is None:
            raise TokenError(TokenErrorKind.INVALID_TOKEN)

        return Claims(sub=sub, exp=int(exp), iat=payload.get("iat"), jti=payload.get("jti"))


class PasswordHasher:
    """Хеширование и проверка паролей через passlib"""

    def __init__(self, schemes: Optional[List[str]] = None):
        self._pwd_context = CryptContext(schemes=schemes or ["bcrypt"], deprecated="auto")
        # bcrypt имеет ограничение 72 байта
        self._truncate = self._pwd_context.default_scheme() == "bcrypt"

    def _prepare(self, password: str) -> str:
        return password[:72] if self._truncate else password

    def hash(self, password: str) -> str:
        return self._pwd_context.hash(self._prepare(password))

    def verify(self, password: str, password_hash: str) -> bool:
        try:
            return self._pwd_context.verify(self._prepare(password), password_hash)
        except ValueError:
            # хеш неизвестного формата
            return False

