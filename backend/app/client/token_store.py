import json
import logging
import os
from pathlib import Path

logger = logging.getLogger("client.token_store")

DEFAULT_TOKEN_PATH = "~/.family_money/session.json"


def ResolveTokenPath() -> Path:
    raw = os.getenv("FAMILY_MONEY_TOKEN_PATH", "").strip() or DEFAULT_TOKEN_PATH
    return Path(raw).expanduser()


class TokenStore:
    """Persists the access token between runs, like browser local storage."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or ResolveTokenPath()

    @property
    def Path(self) -> Path:
        return self._path

    def Load(self) -> str | None:
        if not self._path.exists():
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            logger.warning("unreadable token file %s, ignoring", self._path)
            return None
        token = data.get("token") if isinstance(data, dict) else None
        return token or None

    def Save(self, token: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps({"token": token}), encoding="utf-8")

    def Clear(self) -> None:
        try:
            self._path.unlink()
        except FileNotFoundError:
            return
