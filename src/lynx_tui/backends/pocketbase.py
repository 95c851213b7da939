from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from ..config import DEFAULT_SERVER_URL, HTTP_TIMEOUT, REQUEST_HEADERS
from ..datamodels import AuthSession
from ..errors import AuthError, LynxError, NotFoundError, QueryError
from .base import Backend

logger = logging.getLogger("lynx")

AUTH_COLLECTION = "users"


class PocketBaseBackend(Backend):
    """Record store backed by the PocketBase REST API."""

    def __init__(self, config: Dict[str, Any], session: Optional[AuthSession] = None):
        super().__init__(config, session=session)
        self.base_url = self.config.get("server_url", DEFAULT_SERVER_URL).rstrip("/")
        self.timeout = self.config.get("http_timeout", HTTP_TIMEOUT)
        self.http = self._create_session()

    def _create_session(self) -> requests.Session:
        # No retry adapter: every retry is a user action.
        s = requests.Session()
        s.headers.update(REQUEST_HEADERS)
        return s

    def _records_url(self, collection: str, record_id: Optional[str] = None) -> str:
        url = f"{self.base_url}/api/collections/{quote(collection, safe='')}/records"
        if record_id is not None:
            url = f"{url}/{quote(record_id, safe='')}"
        return url

    def _request(
        self,
        method: str,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Optional[Dict[str, Any]]:
        request_headers = dict(headers or {})
        if self.session is not None:
            request_headers["Authorization"] = self.session.token

        logger.debug("%s %s params=%s", method, url, params)
        try:
            resp = self.http.request(
                method,
                url,
                params=params,
                json=json,
                headers=request_headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning("Request to %s failed: %s", url, e)
            raise QueryError(f"Could not reach the server: {e}") from e

        if resp.status_code >= 400:
            raise _error_for_response(resp)
        if resp.status_code == 204 or not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise QueryError("The server returned an invalid response.", resp.status_code) from e

    def list_records(
        self,
        collection: str,
        page: int,
        per_page: int,
        filter: str = "",
        sort: str = "",
        fields: Optional[List[str]] = None,
        expand: str = "",
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {"page": page, "perPage": per_page}
        if filter:
            params["filter"] = filter
        if sort:
            params["sort"] = sort
        if fields:
            params["fields"] = ",".join(fields)
        if expand:
            params["expand"] = expand
        return self._request("GET", self._records_url(collection), params=params) or {}

    def get_record(
        self,
        collection: str,
        record_id: str,
        fields: Optional[List[str]] = None,
        expand: str = "",
        headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {}
        if fields:
            params["fields"] = ",".join(fields)
        if expand:
            params["expand"] = expand
        return (
            self._request(
                "GET",
                self._records_url(collection, record_id),
                params=params,
                headers=headers,
            )
            or {}
        )

    def create_record(self, collection: str, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", self._records_url(collection), json=data) or {}

    def delete_record(self, collection: str, record_id: str) -> None:
        self._request("DELETE", self._records_url(collection, record_id))

    def authenticate(self, identity: str, password: str) -> AuthSession:
        url = f"{self.base_url}/api/collections/{AUTH_COLLECTION}/auth-with-password"
        data = self._request("POST", url, json={"identity": identity, "password": password})
        if not data or "token" not in data:
            raise AuthError("Login failed: no token in response.")
        self.session = AuthSession(token=data["token"], user_id=data.get("record", {}).get("id", ""))
        logger.info("Authenticated as %s", identity)
        return self.session


def _error_for_response(resp: requests.Response) -> LynxError:
    message = ""
    try:
        message = (resp.json() or {}).get("message", "")
    except ValueError:
        pass
    message = message or f"HTTP {resp.status_code}"

    if resp.status_code == 404:
        return NotFoundError(message, resp.status_code)
    if resp.status_code in (401, 403):
        return AuthError(message, resp.status_code)
    return QueryError(message, resp.status_code)
