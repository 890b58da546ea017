"""
Signed-claims tokens (JWT, HMAC family).

Issues and validates expiring claim bundles signed with a shared secret.
Tokens are standard three-segment JWTs (``header.payload.signature``).

Validation is strict:
- the header ``alg`` must be HS256, HS384 or HS512; ``none`` and
  asymmetric algorithms are rejected before any signature check
- the signature and issuer must verify, and nbf <= now < exp must hold
  for the manager's clock
- ``sub``, ``iss``, ``iat``, ``nbf`` and ``exp`` are required
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any, Callable, Iterable, Mapping, Optional, Union

import jwt

from accesslog_libs.crypto.exceptions import (
    InvalidInput,
    InvalidToken,
    SigningFailure,
    UnsupportedAlgorithm,
)

if TYPE_CHECKING:
    from accesslog_libs.config import Config

HMAC_ALGORITHMS = frozenset({"HS256", "HS384", "HS512"})
REQUIRED_CLAIMS = ["sub", "iss", "iat", "nbf", "exp"]

ACCESS_TOKEN_TTL = timedelta(hours=24)
REFRESH_TOKEN_TTL = timedelta(days=7)

TTL = Union[timedelta, int, float]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True, frozen=True)
class Claims:
    """
    Claim bundle carried by a token.

    Attributes:
        user_id: Subject identifier (``sub``)
        username: Display name
        email: Email address
        roles: Role names; order is not significant
        custom: Free-form string fields
        issuer: ``iss``, stamped by the issuing manager
        issued_at: ``iat``, stamped at issue time
        not_before: ``nbf``, stamped at issue time
        expires_at: ``exp``, stamped at issue time
    """

    user_id: str
    username: str = ""
    email: str = ""
    roles: tuple[str, ...] = ()
    custom: Mapping[str, str] = field(default_factory=dict)
    issuer: str = ""
    issued_at: Optional[datetime] = None
    not_before: Optional[datetime] = None
    expires_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        # Accept any iterable of roles but store an immutable tuple
        if not isinstance(self.roles, tuple):
            object.__setattr__(self, "roles", tuple(self.roles))

    def __hash__(self) -> int:
        return hash(
            (
                self.user_id,
                self.username,
                self.email,
                self.roles,
                tuple(sorted(self.custom.items())),
                self.issuer,
                self.issued_at,
                self.not_before,
                self.expires_at,
            )
        )

    def has_role(self, role: str) -> bool:
        return role in self.roles

    def has_any_role(self, roles: Iterable[str]) -> bool:
        return any(role in self.roles for role in roles)

    def to_payload(self) -> dict[str, Any]:
        """Identity claims in their JWT field names (no temporal claims)."""
        payload: dict[str, Any] = {
            "sub": self.user_id,
            "username": self.username,
            "email": self.email,
            "roles": list(self.roles),
        }
        if self.custom:
            payload["custom"] = dict(self.custom)
        return payload

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> Claims:
        """
        Build claims from a verified JWT payload.

        Raises:
            InvalidToken: If a claim has the wrong type
        """
        roles = payload.get("roles") or []
        custom = payload.get("custom") or {}
        if not isinstance(roles, list) or not all(isinstance(r, str) for r in roles):
            raise InvalidToken("roles claim must be a list of strings")
        if not isinstance(custom, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in custom.items()
        ):
            raise InvalidToken("custom claim must map strings to strings")

        return cls(
            user_id=payload["sub"],
            username=str(payload.get("username", "")),
            email=str(payload.get("email", "")),
            roles=tuple(roles),
            custom=dict(custom),
            issuer=payload["iss"],
            issued_at=_claim_time(payload, "iat"),
            not_before=_claim_time(payload, "nbf"),
            expires_at=_claim_time(payload, "exp"),
        )


def _numeric_claim(payload: Mapping[str, Any], name: str) -> float:
    value = payload.get(name)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidToken(f"{name} claim must be a number")
    return value


def _claim_time(payload: Mapping[str, Any], name: str) -> datetime:
    try:
        return datetime.fromtimestamp(_numeric_claim(payload, name), tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as e:
        raise InvalidToken(f"{name} claim is out of range") from e


class JWTManager:
    """
    Issue, validate and refresh signed-claims tokens.

    Example:
        manager = JWTManager(secret_key, issuer="accesslog-tracker")
        token = manager.issue(Claims(user_id="42", roles=("admin",)), timedelta(hours=1))
        claims = manager.validate(token)
        manager.has_role(token, "admin")  # True
    """

    def __init__(
        self,
        secret_key: Union[str, bytes],
        issuer: str,
        algorithm: str = "HS256",
        leeway: Union[int, float, timedelta] = 0,
        clock: Optional[Callable[[], datetime]] = None,
        access_ttl: TTL = ACCESS_TOKEN_TTL,
        refresh_ttl: TTL = REFRESH_TOKEN_TTL,
    ) -> None:
        """
        Args:
            secret_key: Shared HMAC secret
            issuer: Value stamped into and required from ``iss``
            algorithm: HS256, HS384 or HS512 for issued tokens
            leeway: Clock skew tolerated when checking nbf/exp
            clock: Returns the current UTC time used to issue and validate tokens
            access_ttl: Default lifetime of access tokens
            refresh_ttl: Default lifetime of refresh tokens

        Raises:
            InvalidInput: If the secret is empty
            UnsupportedAlgorithm: If algorithm is not in the HMAC family
        """
        if not secret_key:
            raise InvalidInput("secret key must not be empty")
        if algorithm not in HMAC_ALGORITHMS:
            raise UnsupportedAlgorithm(f"Unsupported signing algorithm: {algorithm}")

        self._secret = secret_key.encode("utf-8") if isinstance(secret_key, str) else secret_key
        self.issuer = issuer
        self.algorithm = algorithm
        self.leeway = leeway
        self._clock = clock or _utcnow
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl

    @classmethod
    def from_config(cls, config: type[Config]) -> JWTManager:
        """Create a manager from a Config class."""
        return cls(
            config.JWT_SECRET_KEY,
            issuer=config.JWT_ISSUER,
            algorithm=config.JWT_ALGORITHM,
            access_ttl=config.JWT_ACCESS_TOKEN_EXPIRES,
            refresh_ttl=config.JWT_REFRESH_TOKEN_EXPIRES,
        )

    def __repr__(self) -> str:
        return f"JWTManager(issuer={self.issuer!r}, algorithm={self.algorithm!r})"

    # Issuance

    def issue(self, claims: Claims, ttl: TTL) -> str:
        """
        Sign claims into a token valid from now until now + ttl.

        Args:
            claims: Identity claims; temporal fields are ignored and restamped
            ttl: Lifetime as timedelta or seconds

        Returns:
            Encoded JWT

        Raises:
            InvalidInput: If ttl is not positive or user_id is empty
            SigningFailure: If the token could not be encoded
        """
        seconds = ttl.total_seconds() if isinstance(ttl, timedelta) else float(ttl)
        if seconds <= 0:
            raise InvalidInput("ttl must be positive")
        if not claims.user_id:
            raise InvalidInput("user_id must not be empty")

        issued_at = int(self._clock().timestamp())
        # Whole seconds, rounded up so exp is always after iat
        expires_at = issued_at + max(1, math.ceil(seconds))

        payload = claims.to_payload()
        payload.update(
            iss=self.issuer,
            iat=issued_at,
            nbf=issued_at,
            exp=expires_at,
        )

        try:
            return jwt.encode(payload, self._secret, algorithm=self.algorithm)
        except (jwt.PyJWTError, TypeError, ValueError) as e:
            raise SigningFailure(f"failed to sign token: {e}") from e

    def generate_access_token(
        self,
        user_id: str,
        username: str = "",
        email: str = "",
        roles: Iterable[str] = (),
        custom: Optional[Mapping[str, str]] = None,
        ttl: Optional[TTL] = None,
    ) -> str:
        """Issue an access token; ``ttl`` defaults to ``access_ttl``."""
        claims = Claims(
            user_id=user_id,
            username=username,
            email=email,
            roles=tuple(roles),
            custom=dict(custom or {}),
        )
        return self.issue(claims, self.access_ttl if ttl is None else ttl)

    def generate_refresh_token(self, user_id: str, ttl: Optional[TTL] = None) -> str:
        """Issue a subject-only refresh token; ``ttl`` defaults to ``refresh_ttl``."""
        return self.issue(Claims(user_id=user_id), self.refresh_ttl if ttl is None else ttl)

    # Validation

    def validate(self, token: str) -> Claims:
        """
        Verify a token and return its claims.

        Args:
            token: Encoded JWT

        Returns:
            Claims including the stamped temporal bounds

        Raises:
            InvalidToken: On any validation failure
        """
        if not isinstance(token, str) or not token:
            raise InvalidToken("token must be a non-empty string")

        try:
            header = jwt.get_unverified_header(token)
        except jwt.PyJWTError as e:
            raise InvalidToken(f"malformed token: {e}") from e

        alg = header.get("alg")
        if alg not in HMAC_ALGORITHMS:
            raise InvalidToken(f"unexpected signing method: {alg}")

        leeway = self.leeway.total_seconds() if isinstance(self.leeway, timedelta) else self.leeway
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=sorted(HMAC_ALGORITHMS),
                issuer=self.issuer,
                options={
                    "require": REQUIRED_CLAIMS,
                    "verify_exp": False,
                    "verify_nbf": False,
                    "verify_iat": False,
                },
            )
        except jwt.PyJWTError as e:
            raise InvalidToken(f"invalid token: {e}") from e

        # Temporal bounds are checked against the manager's clock
        now = self._clock().timestamp()
        if now < _numeric_claim(payload, "nbf") - leeway:
            raise InvalidToken("token is not yet valid")
        if now >= _numeric_claim(payload, "exp") + leeway:
            raise InvalidToken("token has expired")

        return Claims.from_payload(payload)

    def refresh(self, token: str, ttl: TTL) -> str:
        """
        Reissue a valid token with fresh temporal bounds.

        Raises:
            InvalidToken: If the current token does not validate
        """
        claims = self.validate(token)
        return self.issue(
            replace(claims, issued_at=None, not_before=None, expires_at=None),
            ttl,
        )

    # Derived queries; each one validates the token again

    def extract_user_id(self, token: str) -> str:
        return self.validate(token).user_id

    def extract_roles(self, token: str) -> tuple[str, ...]:
        return self.validate(token).roles

    def has_role(self, token: str, role: str) -> bool:
        return self.validate(token).has_role(role)

    def has_any_role(self, token: str, roles: Iterable[str]) -> bool:
        return self.validate(token).has_any_role(roles)
