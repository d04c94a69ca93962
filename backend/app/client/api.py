import logging

import httpx

from app.client.session import SessionController, SessionState

logger = logging.getLogger("client.api")

API_PREFIX = "/api/money"
_AUTH_FAILURE_CODES = {401, 403}


class ApiError(Exception):
    def __init__(self, status_code: int, detail: str) -> None:
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail


class AuthFailure(ApiError):
    pass


class LoginError(ApiError):
    pass


def _ExtractDetail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:255] or f"HTTP error! status: {response.status_code}"
    if isinstance(body, dict):
        detail = body.get("detail") or body.get("error")
        if isinstance(detail, str) and detail:
            return detail
    return f"HTTP error! status: {response.status_code}"


class MoneyApiClient:
    """Calls the money API on behalf of a ``SessionController``.

    Any 401/403 ends the session: the stored token is cleared and the
    controller drops back to the login view before ``AuthFailure`` is raised.
    """

    def __init__(
        self,
        base_url: str,
        session: SessionController,
        http_client: httpx.Client | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._session = session
        self._http = http_client or httpx.Client(base_url=base_url, timeout=timeout)

    def Close(self) -> None:
        self._http.close()

    def _Request(self, method: str, path: str, json: dict | None = None):
        headers = {"Content-Type": "application/json"}
        if self._session.Token:
            headers["Authorization"] = f"Bearer {self._session.Token}"
        response = self._http.request(method, f"{API_PREFIX}{path}", json=json, headers=headers)

        if response.status_code in _AUTH_FAILURE_CODES:
            self._session.HandleAuthFailure()
            raise AuthFailure(response.status_code, "Session expired. Please log in again.")
        if response.is_error:
            detail = _ExtractDetail(response)
            logger.error("%s %s failed status=%s detail=%s", method, path, response.status_code, detail)
            raise ApiError(response.status_code, detail)
        return response.json()

    def Login(self, name: str, password: str) -> dict:
        response = self._http.post(
            f"{API_PREFIX}/login",
            json={"name": name, "password": password},
        )
        if response.is_error:
            raise LoginError(response.status_code, _ExtractDetail(response))
        data = response.json()
        if self._session.Login(data.get("accessToken") or "") != SessionState.Authenticated:
            raise LoginError(response.status_code, "Server returned an unusable session token")
        return data

    def Logout(self) -> None:
        self._session.Logout()

    def Register(self, name: str, password: str, role: str) -> dict:
        return self._Request("POST", "/register", {"name": name, "password": password, "role": role})

    def GetVapidPublicKey(self) -> str:
        return self._Request("GET", "/vapid-public-key")["publicKey"]

    def Subscribe(self, subscription: dict) -> dict:
        return self._Request("POST", "/subscribe", subscription)

    def ListChildren(self) -> list[str]:
        return [row["name"] for row in self._Request("GET", "/children")]

    def ListTransactions(self) -> list[dict]:
        return self._Request("GET", "/transactions")

    def GetBalances(self) -> dict:
        return self._Request("GET", "/balances")

    def CreateTransaction(
        self,
        description: str,
        amount: float,
        transaction_type: str,
        child_name: str | None = None,
    ) -> dict:
        user = self._session.CurrentUser
        if child_name is None and user is not None:
            child_name = user.Name
        return self._Request(
            "POST",
            "/transactions",
            {
                "description": description,
                "amount": amount,
                "type": transaction_type,
                "child_name": child_name,
            },
        )

    def ApproveTransaction(self, transaction_id: int) -> dict:
        return self._Request("PUT", f"/transactions/{transaction_id}/approve")

    def DeclineTransaction(self, transaction_id: int) -> dict:
        return self._Request("PUT", f"/transactions/{transaction_id}/decline")
