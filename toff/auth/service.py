"""Auth service — JWT issuance and server-side session lifecycle.

Tokens are minted by the external sign-in provider integration through
``open_session``; this service only records and validates them.
"""

from __future__ import annotations

import hashlib
import uuid
from datetime import datetime, timedelta, timezone

from jose import jwt
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from toff.auth.models import UserSession
from toff.config import Settings
from toff.users.models import User


# ── JWT helpers ─────────────────────────────────────────────────────

def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def create_access_token(
    user_id: uuid.UUID,
    settings: Settings,
    *,
    expires_at: datetime,
) -> str:
    payload = {
        "sub": str(user_id),
        "type": "access",
        "jti": uuid.uuid4().hex,  # distinct token (and hash) per session
        "exp": expires_at,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


# ── Session management ──────────────────────────────────────────────

async def open_session(
    db: AsyncSession,
    user: User,
    settings: Settings,
) -> str:
    """Issue an access token for *user* and persist its session row.

    This is the hook the external sign-in provider integration calls once it
    has authenticated *user*; toff itself exposes no login endpoint. The
    caller owns the transaction and must commit for the session to persist.
    """
    expires_at = datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRY_HOURS)
    token = create_access_token(user.id, settings, expires_at=expires_at)

    db.add(
        UserSession(
            user_id=user.id,
            token_hash=hash_token(token),
            expires_at=expires_at,
        )
    )
    await db.flush()
    return token


async def revoke_session(db: AsyncSession, token: str) -> bool:
    """Revoke the session for *token*.  Returns True if a session was revoked."""
    result = await db.execute(
        update(UserSession)
        .where(
            UserSession.token_hash == hash_token(token),
            UserSession.is_revoked.is_(False),
        )
        .values(is_revoked=True)
    )
    return result.rowcount > 0


async def revoke_all_sessions(db: AsyncSession, user_id: uuid.UUID) -> int:
    """Revoke every active session of a user (deactivation)."""
    result = await db.execute(
        update(UserSession)
        .where(
            UserSession.user_id == user_id,
            UserSession.is_revoked.is_(False),
        )
        .values(is_revoked=True)
    )
    return result.rowcount
