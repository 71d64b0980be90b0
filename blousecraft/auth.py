# blousecraft/auth.py
from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

# Claims copied onto the User row the first time a subject is seen.
PROFILE_CLAIMS = ("email", "first_name", "last_name", "profile_image_url")


def _jwt_secret() -> str:
    return os.getenv("JWT_SECRET", "dev-secret-change-me")


def _jwt_alg() -> str:
    return os.getenv("JWT_ALG", "HS256")


def _jwt_expire_minutes() -> int:
    # default 24h
    raw = os.getenv("JWT_EXPIRE_MIN", "1440")
    try:
        return int(raw)
    except ValueError:
        return 1440


def create_token(subject: str, **claims: Any) -> str:
    """Issue a token the way the identity provider does. Used for local dev and tests."""
    exp = datetime.now(timezone.utc) + timedelta(minutes=_jwt_expire_minutes())
    payload = {k: v for k, v in claims.items() if k in PROFILE_CLAIMS and v is not None}
    payload.update({"sub": str(subject), "exp": exp})
    return jwt.encode(payload, _jwt_secret(), algorithm=_jwt_alg())


def decode_token(token: str) -> Optional[Dict[str, Any]]:
    try:
        data = jwt.decode(token, _jwt_secret(), algorithms=[_jwt_alg()])
    except JWTError:
        return None
    if not data.get("sub"):
        return None
    return data


def profile_claims(claims: Dict[str, Any]) -> Dict[str, Any]:
    return {k: claims[k] for k in PROFILE_CLAIMS if claims.get(k) is not None}
