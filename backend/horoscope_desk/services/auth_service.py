"""
Horoscope Desk Backend: Authentication Service
===============================================

What:  Credential checks behind login and change-password.
How:   Accounts live in `users`; passwords are bcrypt hashes (cost 10).
       Unknown email and wrong password fail identically so the response
       cannot be used to enumerate accounts.
Who:   Called by routes/auth.py. Cookie handling stays in the route.
"""

import logging
from typing import Any, Dict, Optional

from horoscope_desk.database import Gateway
from horoscope_desk.exceptions import InvalidCredentialsError, NotFoundError, ValidationError
from horoscope_desk.services.passwords import hash_password, verify_password
from horoscope_desk.services.session import ROLES, Session

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

PROVISION_USER_SQL = (
    "INSERT INTO users (email, password_hash, name, role) VALUES (?, ?, ?, ?) "
    "ON DUPLICATE KEY UPDATE password_hash = VALUES(password_hash), name = VALUES(name), role = VALUES(role)"
)
DEFAULT_NAMES = {"admin": "Admin", "viewer": "User"}


class AuthService:
    """Stateless; every call receives the Gateway."""

    async def get_user_by_email(self, gateway: Gateway, email: str) -> Optional[Dict[str, Any]]:
        return await gateway.fetch_one(
            "SELECT id, email, password_hash, name, role, created_at FROM users WHERE email = ?",
            [email],
        )

    async def login(self, gateway: Gateway, email: str, password: str) -> Session:
        """
        Verify credentials and return the Session to issue.

        Raises:
            ValidationError:         email or password missing
            InvalidCredentialsError: unknown email or wrong password
        """
        if not email or not password:
            raise ValidationError("Email and password required")

        user = await self.get_user_by_email(gateway, email)
        if user is None:
            logger.info("Login failed: unknown account")
            raise InvalidCredentialsError()
        if not await verify_password(password, user["password_hash"]):
            logger.info("Login failed for user %s: wrong password", user["id"])
            raise InvalidCredentialsError()
        if user["role"] not in ROLES:
            logger.error("User %s has unsupported role %r", user["id"], user["role"])
            raise InvalidCredentialsError()

        logger.info("User %s logged in (role=%s)", user["id"], user["role"])
        return Session(user_id=int(user["id"]), role=user["role"])

    async def change_password(
        self,
        gateway: Gateway,
        session: Session,
        current_password: str,
        new_password: str,
    ) -> None:
        """
        Re-verify the current password, then store a hash of the new one.

        Applies to every role; admins get no bypass.
        """
        if not current_password or not new_password:
            raise ValidationError("Current password and new password required")
        if len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"New password must be at least {MIN_PASSWORD_LENGTH} characters",
                field="newPassword",
            )

        row = await gateway.fetch_one("SELECT password_hash FROM users WHERE id = ?", [session.user_id])
        if row is None:
            raise NotFoundError(resource="user", resource_id=str(session.user_id))
        if not await verify_password(current_password, row["password_hash"]):
            raise InvalidCredentialsError("Current password is incorrect")

        new_hash = await hash_password(new_password)
        await gateway.execute("UPDATE users SET password_hash = ? WHERE id = ?", [new_hash, session.user_id])
        logger.info("Password changed for user %s", session.user_id)

    async def provision_user(
        self,
        gateway: Gateway,
        email: str,
        password: str,
        role: str,
        name: Optional[str] = None,
    ) -> None:
        """
        Create an account, or reset an existing one's password, name and role.

        Keyed on email, so running it twice for the same address is safe.
        """
        email = (email or "").strip()
        if not email or not password:
            raise ValidationError("Email and password required")
        if role not in ROLES:
            raise ValidationError(f"Role must be one of: {', '.join(sorted(ROLES))}", field="role")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
                field="password",
            )

        password_hash = await hash_password(password)
        await gateway.execute(PROVISION_USER_SQL, [email, password_hash, name or DEFAULT_NAMES[role], role])
        logger.info("Provisioned %s account %s", role, email)


auth_service = AuthService()
