import logging
from typing import Any, Dict, List, Optional

import requests

from dialcrm.core.config import settings
from dialcrm.core.errors import ConfigurationError, ProviderError

logger = logging.getLogger(__name__)


class DialpadClient:
    """Thin wrapper over the Dialpad OAuth and v2 REST endpoints."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = (base_url or settings.dialpad_base_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.dialpad_api_key
        self.timeout = timeout or settings.dialpad_timeout_seconds
        self.session = session or requests.Session()

    def authorize_url(self, state: str, code_challenge: Optional[str] = None) -> str:
        client_id, _, redirect_uri = self._oauth_credentials()
        params = {
            "response_type": "code",
            "client_id": client_id,
            "redirect_uri": redirect_uri,
            "scope": settings.dialpad_oauth_scope,
            "state": state,
        }
        if code_challenge:
            params["code_challenge"] = code_challenge
            params["code_challenge_method"] = "S256"
        request = requests.Request("GET", f"{self.base_url}/oauth2/authorize", params=params)
        return request.prepare().url

    def exchange_code(self, code: str, code_verifier: Optional[str] = None) -> Dict[str, Any]:
        client_id, client_secret, redirect_uri = self._oauth_credentials()
        form = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": redirect_uri,
            "client_id": client_id,
            "client_secret": client_secret,
        }
        if code_verifier:
            form["code_verifier"] = code_verifier
        return self._post_token(form)

    def refresh_token(self, refresh_token: str) -> Dict[str, Any]:
        client_id, client_secret, _ = self._oauth_credentials()
        form = {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
            "client_id": client_id,
            "client_secret": client_secret,
        }
        return self._post_token(form)

    def create_call(
        self,
        access_token: str,
        to_number: str,
        from_number: str,
        external_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {"to": to_number, "from": from_number}
        if external_id:
            body["external_id"] = external_id
        return self._request("POST", "/api/v2/calls", token=access_token, json=body)

    def list_calls(
        self,
        start_time: Optional[str] = None,
        end_time: Optional[str] = None,
        limit: int = 100,
    ) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {"limit": limit}
        if start_time:
            params["start_time"] = start_time
        if end_time:
            params["end_time"] = end_time
        data = self._request("GET", "/api/v2/calls", token=self._require_api_key(), params=params)
        if isinstance(data, list):
            return data
        return data.get("items") or []

    def send_sms(self, to_number: str, text: str) -> Dict[str, Any]:
        body = {"to": to_number, "text": text}
        return self._request("POST", "/api/v2/sms", token=self._require_api_key(), json=body)

    def _oauth_credentials(self) -> tuple[str, str, str]:
        missing = [
            name
            for name in ("dialpad_client_id", "dialpad_client_secret", "dialpad_redirect_url")
            if not getattr(settings, name)
        ]
        if missing:
            raise ConfigurationError(f"Dialpad OAuth not configured: {', '.join(missing)}")
        return settings.dialpad_client_id, settings.dialpad_client_secret, settings.dialpad_redirect_url

    def _require_api_key(self) -> str:
        if not self.api_key:
            raise ConfigurationError("DIALPAD_API_KEY not configured")
        return self.api_key

    def _post_token(self, form: Dict[str, str]) -> Dict[str, Any]:
        try:
            response = self.session.post(
                f"{self.base_url}/oauth2/token",
                data=form,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise ProviderError(f"Dialpad token endpoint unreachable: {exc}") from exc
        if not response.ok:
            logger.warning("Dialpad token endpoint returned %s", response.status_code)
            raise ProviderError(
                "Dialpad token request failed",
                provider_status=response.status_code,
                body=response.text,
            )
        return response.json()

    def _request(self, method: str, path: str, token: str, **kwargs) -> Any:
        headers = {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}
        try:
            response = self.session.request(
                method,
                f"{self.base_url}{path}",
                headers=headers,
                timeout=self.timeout,
                **kwargs,
            )
        except requests.RequestException as exc:
            raise ProviderError(f"Dialpad API unreachable: {exc}") from exc
        if not response.ok:
            logger.error("Dialpad %s %s failed: %s %s", method, path, response.status_code, response.text)
            raise ProviderError(
                f"Dialpad API error: {response.status_code}",
                provider_status=response.status_code,
                body=response.text,
            )
        return response.json()
