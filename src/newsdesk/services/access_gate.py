from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from ..config import Settings
from ..db import session_scope
from ..errors import AuthRequiredError, NotPrivilegedError
from ..models import ROLE_ADMIN, ROLE_USER, ROLES, AdminFlag, User, utcnow
from ..schemas import AccessDecision, Identity

logger = logging.getLogger(__name__)


def _identity(user: User) -> Identity:
    return Identity(uid=user.uid, email=user.email, role=user.role)


class AccessGate:
    """Privilege checks against the identity store.

    Reads fail closed: a store error is logged and reported as DENIED.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def check(self, uid: str | None) -> AccessDecision:
        if not uid:
            return AccessDecision.PENDING
        try:
            with session_scope(self.settings) as session:
                flag = session.get(AdminFlag, uid)
                granted = flag is not None and flag.is_admin
        except SQLAlchemyError as exc:
            logger.error("Error checking admin status for %s: %s", uid, exc)
            return AccessDecision.DENIED
        return AccessDecision.GRANTED if granted else AccessDecision.DENIED

    def is_privileged(self, identity: Identity | str | None) -> bool:
        uid = identity.uid if isinstance(identity, Identity) else identity
        return self.check(uid) is AccessDecision.GRANTED

    def require_privileged(self, uid: str | None) -> None:
        decision = self.check(uid)
        if decision is AccessDecision.PENDING:
            raise AuthRequiredError("sign in with --uid or NEWSDESK_UID to open this view")
        if decision is AccessDecision.DENIED:
            raise NotPrivilegedError(f"user {uid} is not an admin")

    def set_privileged(self, identity: Identity | str, is_admin: bool) -> bool:
        uid = identity.uid if isinstance(identity, Identity) else identity
        try:
            with session_scope(self.settings) as session:
                user = session.get(User, uid)
                if user is None:
                    user = User(uid=uid, role=ROLE_USER)
                    session.add(user)
                user.role = ROLE_ADMIN if is_admin else ROLE_USER

                flag = session.get(AdminFlag, uid)
                if flag is None:
                    session.add(AdminFlag(user_id=uid, is_admin=is_admin, updated_at=utcnow()))
                else:
                    flag.is_admin = is_admin
                    flag.updated_at = utcnow()
                session.commit()
        except SQLAlchemyError as exc:
            logger.error("Error setting admin status for %s: %s", uid, exc)
            return False
        return True

    def register(self, uid: str, email: str | None = None, role: str = ROLE_USER) -> Identity:
        if role not in ROLES:
            raise ValueError(f"role must be one of {', '.join(ROLES)}")
        with session_scope(self.settings) as session:
            user = session.get(User, uid)
            if user is None:
                user = User(uid=uid, email=email, role=ROLE_USER)
                session.add(user)
            elif email:
                user.email = email
            session.commit()
            identity = _identity(user)
        if role == ROLE_ADMIN:
            self.set_privileged(identity, True)
            identity = Identity(uid=identity.uid, email=identity.email, role=ROLE_ADMIN)
        return identity

    def get_identity(self, uid: str | None) -> Identity | None:
        if not uid:
            return None
        try:
            with session_scope(self.settings) as session:
                user = session.get(User, uid)
                return _identity(user) if user is not None else None
        except SQLAlchemyError as exc:
            logger.error("Error loading user %s: %s", uid, exc)
            return None

    def list_users(self) -> list[tuple[Identity, bool]]:
        with session_scope(self.settings) as session:
            rows = session.execute(
                select(User, AdminFlag.is_admin)
                .outerjoin(AdminFlag, AdminFlag.user_id == User.uid)
                .order_by(User.created_at, User.uid)
            ).all()
            return [(_identity(user), bool(is_admin)) for user, is_admin in rows]
