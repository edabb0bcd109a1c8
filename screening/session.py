"""Client-side login session persisted to a small JSON file.

The session is owned by a single SessionManager with an explicit
load/save/clear lifecycle; nothing else reads or writes the file.
"""
from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionState:
    """Remembered login across runs; no server-side session exists."""
    is_authenticated: bool = False
    login_name: str | None = None
    authenticated_at: str | None = None


SIGNED_OUT = SessionState()


class SessionManager:
    """Loads, saves and clears the persisted session flag."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._state: SessionState | None = None

    @property
    def state(self) -> SessionState:
        if self._state is None:
            self._state = self.load()
        return self._state

    @property
    def is_authenticated(self) -> bool:
        return self.state.is_authenticated

    def load(self) -> SessionState:
        """Read the session file; missing or unreadable files mean signed out."""
        if not self.path.exists():
            self._state = SIGNED_OUT
            return self._state
        try:
            with self.path.open("r", encoding="utf-8") as f:
                content = f.read().strip()
            data = json.loads(content) if content else {}
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Ignoring unreadable session file {self.path}: {e}")
            data = {}
        if not isinstance(data, dict):
            data = {}
        self._state = SessionState(
            is_authenticated=data.get("is_authenticated") is True,
            login_name=data.get("login_name"),
            authenticated_at=data.get("authenticated_at"),
        )
        return self._state

    def save(self, state: SessionState) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as f:
            json.dump(asdict(state), f, indent=2, ensure_ascii=False)
        self._state = state

    def sign_in(self, login_name: str) -> SessionState:
        state = SessionState(
            is_authenticated=True,
            login_name=login_name,
            authenticated_at=datetime.now(timezone.utc).isoformat(),
        )
        self.save(state)
        return state

    def clear(self) -> None:
        """Forget the session (logout)."""
        if self.path.exists():
            self.path.unlink()
        self._state = SIGNED_OUT
