"""
Client-side session store.

Holds the signed-in user and the opaque API token. State lives in an
injected storage mapping so the same store works against a plain dict in
tests and against the per-browser JSON file used by the Streamlit app.
"""
import json
import logging
import secrets
from collections.abc import MutableMapping
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from lapin_ops.config import SESSION_NAMESPACE, TOKEN_KEY, OAUTH_STATE_KEY

logger = logging.getLogger(__name__)


# =============================================================================
# USER
# =============================================================================

@dataclass
class User:
    """Signed-in user profile."""
    id: str
    name: str
    role: str
    email: str = ""
    status: str = "active"
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    line_user_id: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "User":
        return cls(
            id=str(raw.get("id", "")),
            name=str(raw.get("name") or ""),
            role=str(raw.get("role") or "staff"),
            email=str(raw.get("email") or ""),
            status=str(raw.get("status") or "active"),
            phone=raw.get("phone"),
            avatar_url=raw.get("avatar_url"),
            line_user_id=raw.get("line_user_id"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


DEMO_USERS = {
    "admin": User(id="1", name="中山社長", role="admin", email="nakayama@example.com"),
    "staff": User(id="2", name="事務太郎", role="office", email="jimu@example.com"),
    "sales": User(id="3", name="山田太郎", role="sales", email="yamada@example.com"),
}


@dataclass
class Notification:
    id: str
    type: str
    title: str
    message: str
    time: str
    read: bool = False
    link: Optional[str] = None


# =============================================================================
# STORAGE BACKENDS
# =============================================================================

class JsonFileStorage(MutableMapping):
    """
    Mapping persisted as one JSON document on disk.

    Each write rewrites the file; a missing or corrupt file reads as empty.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._data = self._load()

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable session file %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _flush(self):
        if not self._data:
            if self.path.exists():
                self.path.unlink()
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as fh:
            json.dump(self._data, fh, ensure_ascii=False)

    def __getitem__(self, key):
        return self._data[key]

    def __setitem__(self, key, value):
        self._data[key] = value
        self._flush()

    def __delitem__(self, key):
        del self._data[key]
        self._flush()

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)


# =============================================================================
# STORE
# =============================================================================

class SessionStore:
    """
    Explicit auth store with typed transitions.

    Invariant: ``is_authenticated`` is true exactly when ``user`` is set.
    """

    def __init__(self, storage: Optional[MutableMapping] = None):
        self.storage = storage if storage is not None else {}
        self.user: Optional[User] = None
        self.is_loading = False
        self.notifications: List[Notification] = []
        self.hydrate()

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def token(self) -> Optional[str]:
        return self.storage.get(TOKEN_KEY) or None

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def hydrate(self) -> "SessionStore":
        """Load the persisted user from storage."""
        persisted = self.storage.get(SESSION_NAMESPACE) or {}
        raw_user = persisted.get("user")
        self.user = User.from_dict(raw_user) if raw_user else None
        return self

    def _persist(self):
        self.storage[SESSION_NAMESPACE] = {
            "user": self.user.to_dict() if self.user else None,
            "is_authenticated": self.is_authenticated,
        }

    def set_user(self, user: Optional[User]):
        self.user = user
        self._persist()

    def login(self, user: User, token: str):
        self.storage[TOKEN_KEY] = token
        self.user = user
        self._persist()
        logger.info("User %s signed in (role=%s)", user.id, user.role)

    def login_as_demo(self, role: str) -> User:
        if role not in DEMO_USERS:
            raise ValueError(f"Unknown demo role: {role}")
        user = DEMO_USERS[role]
        self.login(user, f"demo_token_{role}")
        return user

    def logout(self):
        user_id = self.user.id if self.user else None
        for key in (TOKEN_KEY, SESSION_NAMESPACE, OAUTH_STATE_KEY):
            if key in self.storage:
                del self.storage[key]
        self.user = None
        self.notifications = []
        logger.info("User %s signed out", user_id)

    # -------------------------------------------------------------------------
    # OAuth nonce
    # -------------------------------------------------------------------------

    def issue_oauth_state(self, prefix: str = "") -> str:
        """Store and return a fresh nonce, optionally prefixed."""
        state = prefix + secrets.token_urlsafe(16)
        self.storage[OAUTH_STATE_KEY] = state
        return state

    def peek_oauth_state(self) -> Optional[str]:
        return self.storage.get(OAUTH_STATE_KEY)

    def consume_oauth_state(self) -> Optional[str]:
        """Return the stored nonce and forget it (single use)."""
        state = self.storage.get(OAUTH_STATE_KEY)
        if OAUTH_STATE_KEY in self.storage:
            del self.storage[OAUTH_STATE_KEY]
        return state

    # -------------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------------

    def add_notification(self, notification: Notification):
        self.notifications = [notification] + self.notifications

    def mark_notification_read(self, notification_id: str):
        for n in self.notifications:
            if n.id == notification_id:
                n.read = True

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self.notifications if not n.read)
