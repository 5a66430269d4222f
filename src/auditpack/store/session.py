"""Persisted login session and the credential check behind it."""

from __future__ import annotations

import json
import os
from typing import Optional

from ..domain.models import Session, User
from ..errors import AuthenticationFailed
from ..logging import get_logger
from .base import ListStore

LOG = get_logger("session")

SESSION_KEY = "auditpack_user"


class SessionStore:
    """One serialized user record under a fixed key in a JSON file."""

    def __init__(self, path: str) -> None:
        self.path = path

    def load(self) -> Session:
        if not os.path.isfile(self.path):
            return Session()
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            record = data.get(SESSION_KEY) if isinstance(data, dict) else None
            if not isinstance(record, dict):
                return Session()
            user = User.from_record(record)
        except (OSError, ValueError, KeyError) as e:
            LOG.warning(f"Ignoring unreadable session file {self.path}: {e}")
            return Session()
        LOG.info(f"Restored session for {user.email}")
        return Session(user=user)

    def save(self, user: User) -> Session:
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        tmp = self.path + ".tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump({SESSION_KEY: user.to_record()}, f, ensure_ascii=False, indent=2)
        os.replace(tmp, self.path)
        LOG.info(f"Session saved for {user.email}")
        return Session(user=user)

    def clear(self) -> Session:
        if os.path.exists(self.path):
            os.remove(self.path)
            LOG.info("Session cleared")
        return Session()


async def authenticate(store: ListStore, email: str, password: str) -> User:
    """Look the user up by email and compare the stored password as-is."""
    record: Optional[dict] = await store.find_user(email)
    if record is None or not password or str(record.get("password") or "") != password:
        LOG.warning(f"Login rejected for {email!r}")
        raise AuthenticationFailed("E-mail ou senha inválidos.")
    user = User.from_record(record)
    LOG.info(f"Authenticated {user.email} (role={user.role})")
    return user
