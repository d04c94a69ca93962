import logging
from dataclasses import dataclass
from enum import Enum

import jwt

from app.client.token_store import TokenStore

logger = logging.getLogger("client.session")

VIEW_LOADING = "loading"
VIEW_LOGIN = "login"
VIEW_TRACKER = "tracker"


class SessionState(str, Enum):
    Loading = "Loading"
    Unauthenticated = "Unauthenticated"
    Authenticated = "Authenticated"


@dataclass(frozen=True)
class ClientUser:
    Name: str
    Role: str

    @property
    def IsAdmin(self) -> bool:
        return self.Role == "admin"


def DecodeDisplayUser(token: str) -> ClientUser:
    # Display only: the signature is not checked here, the server checks it on every call.
    payload = jwt.decode(token, options={"verify_signature": False, "verify_exp": False})
    name = payload.get("name")
    role = payload.get("role")
    if not name or not role:
        raise ValueError("Token is missing user fields")
    return ClientUser(Name=name, Role=role)


class SessionController:
    """Holds the token and current user; decides which view to show.

    Nothing should render until ``Initialize`` has read the persisted token,
    so ``View`` reports ``loading`` until then. State only changes through
    ``Login``, ``Logout`` and ``HandleAuthFailure``.
    """

    def __init__(self, store: TokenStore) -> None:
        self._store = store
        self._state = SessionState.Loading
        self._token: str | None = None
        self._user: ClientUser | None = None

    @property
    def State(self) -> SessionState:
        return self._state

    @property
    def Token(self) -> str | None:
        return self._token

    @property
    def CurrentUser(self) -> ClientUser | None:
        return self._user

    @property
    def View(self) -> str:
        if self._state == SessionState.Loading:
            return VIEW_LOADING
        if self._state == SessionState.Authenticated:
            return VIEW_TRACKER
        return VIEW_LOGIN

    def Initialize(self) -> SessionState:
        if self._state != SessionState.Loading:
            return self._state
        token = self._store.Load()
        if token:
            self._Enter(token)
        else:
            self._Leave()
        return self._state

    def Login(self, token: str) -> SessionState:
        self._Enter(token)
        return self._state

    def Logout(self) -> SessionState:
        self._Leave()
        return self._state

    def HandleAuthFailure(self) -> SessionState:
        logger.info("session rejected by server, clearing token")
        self._Leave()
        return self._state

    def _Enter(self, token: str) -> None:
        try:
            user = DecodeDisplayUser(token)
        except (jwt.InvalidTokenError, ValueError):
            logger.warning("failed to decode stored token, logging out")
            self._Leave()
            return
        self._store.Save(token)
        self._token = token
        self._user = user
        self._state = SessionState.Authenticated

    def _Leave(self) -> None:
        self._store.Clear()
        self._token = None
        self._user = None
        self._state = SessionState.Unauthenticated
