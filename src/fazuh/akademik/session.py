import json
from pathlib import Path
from typing import Any, Callable

from loguru import logger


class AppContext:
    """Holds the signed-in user's token and identity.

    The state is persisted to a small JSON file so that it survives between
    command invocations. Services receive the context explicitly instead of
    reading the file themselves; listeners registered with `subscribe` are
    notified whenever the identity changes.
    """

    def __init__(self, file_path: str | Path = "data/session.json"):
        self.file_path = Path(file_path)
        self.token: str | None = None
        self.user: dict[str, Any] = {}
        self._listeners: list[Callable[["AppContext"], None]] = []
        self._load()

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    @property
    def role(self) -> str | None:
        return self.user.get("role")

    @property
    def display_name(self) -> str:
        return self.user.get("name") or self.user.get("username") or "?"

    def subscribe(self, listener: Callable[["AppContext"], None]):
        """Registers a callback invoked after every store/clear."""
        self._listeners.append(listener)

    def store(self, token: str, user: dict[str, Any]):
        """Persists a new token and user identity."""
        self.token = token
        self.user = dict(user)
        self._write()
        self._notify()

    def update_user(self, user: dict[str, Any]):
        """Replaces the user identity, keeping the token."""
        self.user = dict(user)
        self._write()
        self._notify()

    def clear(self):
        """Removes stored credentials."""
        self.token = None
        self.user = {}
        if self.file_path.exists():
            self.file_path.unlink()
        self._notify()

    def _load(self):
        if not self.file_path.exists():
            return
        try:
            data = json.loads(self.file_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable session file {self.file_path}: {e}")
            return
        self.token = data.get("token")
        self.user = data.get("user") or {}

    def _write(self):
        if not self.file_path.parent.exists():
            self.file_path.parent.mkdir(parents=True)
        payload = {"token": self.token, "user": self.user}
        self.file_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    def _notify(self):
        for listener in self._listeners:
            listener(self)
