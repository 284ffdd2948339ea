"""JWT token generation and validation for cloud-ready-web."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, FrozenSet, Iterable, Optional

import jwt

from cloudready.config import JwtSettings, settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    """Authenticated caller: identity plus granted authorities (e.g. ROLE_ADMIN)."""
    username: str
    authorities: FrozenSet[str] = field(default_factory=frozenset)

    def has_authority(self, authority: str) -> bool:
        return authority in self.authorities


def _jwt_settings(jwt_settings: Optional[JwtSettings]) -> JwtSettings:
    return jwt_settings or settings.security.jwt


def create_access_token(
    username: str,
    roles: Iterable[str] = (),
    expires_delta: Optional[timedelta] = None,
    jwt_settings: Optional[JwtSettings] = None,
) -> str:
    """Create a JWT access token.

    Args:
        username: Subject of the token (the caller's identity)
        roles: Role names put in the roles claim (without authority prefix)
        expires_delta: Lifetime; defaults to the configured expiration

    Returns:
        Encoded JWT token string
    """
    cfg = _jwt_settings(jwt_settings)
    now = datetime.now(timezone.utc)
    lifetime = expires_delta if expires_delta is not None else timedelta(seconds=cfg.expiration_seconds)
    payload = {
        "sub": username,
        cfg.roles_claim: [getattr(role, "value", role) for role in roles],
        "iat": now,
        "exp": now + lifetime,
    }
    return jwt.encode(payload, cfg.secret_key, algorithm=cfg.algorithm)


def decode_access_token(token: str, jwt_settings: Optional[JwtSettings] = None) -> Optional[Dict]:
    """Decode and validate a JWT access token.

    Returns:
        Decoded token payload, or None if the token is invalid or expired
    """
    cfg = _jwt_settings(jwt_settings)
    try:
        return jwt.decode(token, cfg.secret_key, algorithms=[cfg.algorithm])
    except jwt.ExpiredSignatureError:
        logger.warning("JWT verification failed: token expired")
        return None
    except jwt.InvalidTokenError as e:
        logger.warning(f"JWT verification failed: {type(e).__name__}")
        return None


def principal_from_token(token: str, jwt_settings: Optional[JwtSettings] = None) -> Optional[Principal]:
    """Verify a bearer token and map its role claims to authorities.

    Returns:
        Principal, or None if the token is invalid or carries no subject
    """
    cfg = _jwt_settings(jwt_settings)
    payload = decode_access_token(token, cfg)
    if not payload:
        return None

    username = payload.get("sub")
    if not username or not isinstance(username, str):
        return None

    claim = payload.get(cfg.roles_claim) or []
    if isinstance(claim, str):
        claim = claim.split()
    authorities = frozenset(f"{cfg.authority_prefix}{role}" for role in claim if isinstance(role, str) and role)
    return Principal(username=username, authorities=authorities)
