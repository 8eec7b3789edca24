import httpx
from typing import Optional, Dict, Any, List
from phantom_driver.service.errors import SessionError
from phantom_driver.service.schema import Session, SessionSummary

# Malformed bodies: invalid JSON (ValueError), missing keys, wrong shapes
_BAD_PAYLOAD = (ValueError, KeyError, TypeError, AttributeError)


class WebDriverClient:
    """Minimal JSON wire protocol client for session creation and listing."""

    def __init__(self, base_url: str, timeout: float = 60.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _check(self, resp: httpx.Response) -> Dict[str, Any]:
        resp.raise_for_status()
        payload = resp.json()
        if not isinstance(payload, dict):
            raise TypeError(f"expected a JSON object, got {type(payload).__name__}")
        status = payload.get("status", 0)
        if status:
            value = payload.get("value") or {}
            message = value.get("message") if isinstance(value, dict) else value
            raise SessionError(f"WebDriver error {status}: {message}")
        return payload

    def new_session(
        self,
        desired: Dict[str, Any],
        required: Optional[Dict[str, Any]] = None,
    ) -> Session:
        body = {
            "desiredCapabilities": desired or {},
            "requiredCapabilities": required or {},
        }
        try:
            resp = httpx.post(f"{self.base_url}/session", json=body, timeout=self.timeout)
            payload = self._check(resp)
            session_id = payload["sessionId"]
            if not session_id:
                raise ValueError("empty sessionId")
            return Session(session_id=session_id, capabilities=payload.get("value") or {})
        except httpx.HTTPError as e:
            raise SessionError(f"Session creation failed: {e}") from e
        except _BAD_PAYLOAD as e:
            raise SessionError(f"Session creation failed: malformed response: {e!r}") from e

    def sessions(self) -> List[SessionSummary]:
        try:
            resp = httpx.get(f"{self.base_url}/sessions", timeout=self.timeout)
            payload = self._check(resp)
            return [
                SessionSummary(id=item["id"], capabilities=item.get("capabilities") or {})
                for item in payload.get("value") or []
            ]
        except httpx.HTTPError as e:
            raise SessionError(f"Session listing failed: {e}") from e
        except _BAD_PAYLOAD as e:
            raise SessionError(f"Session listing failed: malformed response: {e!r}") from e

    def delete_session(self, session_id: str) -> None:
        try:
            resp = httpx.delete(f"{self.base_url}/session/{session_id}", timeout=self.timeout)
            self._check(resp)
        except httpx.HTTPError as e:
            raise SessionError(f"Session deletion failed: {e}") from e
        except _BAD_PAYLOAD as e:
            raise SessionError(f"Session deletion failed: malformed response: {e!r}") from e
