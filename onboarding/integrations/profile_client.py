"""
Progressive Profile Service Client
==================================
HTTP access to the remote service that stores onboarding answers and
triggers the matching handoff.

Environment Variables:
- PROFILE_API_BASE_URL: Base URL (e.g., https://api.example.com/api)
- PROFILE_API_TIMEOUT_SECONDS / PROFILE_API_MAX_RETRIES / PROFILE_API_RETRY_BACKOFF_SECONDS

Every call takes an explicit SessionContext; the client holds no user state.

Usage:
    from onboarding.integrations.profile_client import ProgressiveProfileClient

    client = ProgressiveProfileClient()
    progress = client.get_progress(SessionContext(user_id="u1", access_token="..."))
"""

import json
import time
import logging
from typing import Any, Dict, Optional

import httpx

from onboarding import config
from onboarding.shared.context import SessionContext
from .models import FinalizeResponse, RemoteProgress, SaveAck

logger = logging.getLogger(__name__)


class ProfileServiceError(Exception):
    """Base exception for progressive profile service errors."""

    def __init__(self, message: str, status_code: Optional[int] = None, response_body: Optional[Dict] = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class ProfileServiceAuthError(ProfileServiceError):
    """Authentication/authorization error (401/403)."""
    pass


class ProfileServiceNotFoundError(ProfileServiceError):
    """Endpoint or resource not found (404)."""
    pass


class ProfileServiceValidationError(ProfileServiceError):
    """Payload rejected (400/422)."""
    pass


class ProfileServiceRateLimitError(ProfileServiceError):
    """Rate limit exceeded (429)."""

    def __init__(self, message: str, retry_after: Optional[float] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class ProfileServiceUnavailableError(ProfileServiceError):
    """Timeouts, connection failures and 5xx responses."""
    pass


class ProgressiveProfileClient:
    """
    Progressive profile API client.

    - Bounded retry on 429/5xx/timeouts with linear backoff
    - Structured error hierarchy
    - Unwraps the {success, data, message} response envelope
    """

    BASE_PATH = "/users/progressive"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = config.PROFILE_API_TIMEOUT_SECONDS,
        max_retries: int = config.PROFILE_API_MAX_RETRIES,
        retry_backoff: float = config.PROFILE_API_RETRY_BACKOFF_SECONDS,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = (base_url if base_url is not None else config.PROFILE_API_BASE_URL).rstrip("/")
        self.timeout = timeout
        self.max_retries = max(0, max_retries)
        self.retry_backoff = retry_backoff
        self._transport = transport

        if not self.base_url:
            logger.warning("PROFILE_API_BASE_URL not configured")

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url)

    def _get_headers(self, context: SessionContext) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "X-User-Id": context.user_id,
        }
        headers.update(context.auth_headers())
        return headers

    def _handle_response(self, response: httpx.Response) -> Dict[str, Any]:
        """Handle response and raise appropriate exceptions."""
        try:
            body = response.json() if response.content else {}
        except json.JSONDecodeError:
            body = {"raw": response.text}

        if 200 <= response.status_code < 300:
            return body if isinstance(body, dict) else {"data": body}

        error_msg = body.get("message") or body.get("error") or str(body)
        status = response.status_code

        if status in (401, 403):
            raise ProfileServiceAuthError(
                f"Authentication failed: {error_msg}", status_code=status, response_body=body
            )
        if status == 404:
            raise ProfileServiceNotFoundError(
                f"Resource not found: {error_msg}", status_code=status, response_body=body
            )
        if status in (400, 422):
            raise ProfileServiceValidationError(
                f"Validation error: {error_msg}", status_code=status, response_body=body
            )
        if status == 429:
            retry_after = response.headers.get("Retry-After")
            try:
                retry_seconds = float(retry_after) if retry_after else None
            except ValueError:
                retry_seconds = None
            raise ProfileServiceRateLimitError(
                "Rate limit exceeded", status_code=429, response_body=body, retry_after=retry_seconds
            )
        if status >= 500:
            raise ProfileServiceUnavailableError(
                f"Profile service error ({status}): {error_msg}", status_code=status, response_body=body
            )
        raise ProfileServiceError(
            f"Profile service error ({status}): {error_msg}", status_code=status, response_body=body
        )

    def _request(
        self,
        method: str,
        endpoint: str,
        context: SessionContext,
        data: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Make an authenticated request with retry logic.

        Returns:
            Response envelope as dict
        """
        if not self.is_configured:
            raise ProfileServiceUnavailableError("Profile client not configured. Set PROFILE_API_BASE_URL.")

        url = f"{self.base_url}{self.BASE_PATH}{endpoint}"
        attempts = self.max_retries + 1

        for attempt in range(attempts):
            try:
                with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                    response = client.request(
                        method=method,
                        url=url,
                        headers=self._get_headers(context),
                        json=data,
                    )
                    return self._handle_response(response)

            except ProfileServiceRateLimitError as e:
                if attempt < attempts - 1:
                    wait_time = e.retry_after if e.retry_after is not None else self.retry_backoff * (attempt + 1)
                    logger.warning(f"Rate limited on {endpoint}, waiting {wait_time}s (attempt {attempt + 1}/{attempts})")
                    time.sleep(wait_time)
                else:
                    raise
            except ProfileServiceUnavailableError as e:
                if attempt < attempts - 1:
                    logger.warning(f"{endpoint} failed with {e.status_code}, retrying (attempt {attempt + 1}/{attempts})")
                    time.sleep(self.retry_backoff * (attempt + 1))
                else:
                    raise
            except httpx.TimeoutException:
                if attempt < attempts - 1:
                    logger.warning(f"{endpoint} timed out, retrying (attempt {attempt + 1}/{attempts})")
                    time.sleep(self.retry_backoff * (attempt + 1))
                else:
                    raise ProfileServiceUnavailableError(
                        f"Request to {endpoint} timed out after {attempts} attempts"
                    )
            except httpx.RequestError as e:
                raise ProfileServiceUnavailableError(f"Request to {endpoint} failed: {str(e)}")

        raise ProfileServiceUnavailableError(f"Request to {endpoint} exhausted retries")

    @staticmethod
    def _ack(envelope: Dict[str, Any]) -> SaveAck:
        data = envelope.get("data") or {}
        return SaveAck(
            accepted=bool(envelope.get("success", True)),
            points_earned=data.get("pointsEarned") if isinstance(data, dict) else None,
            message=envelope.get("message") or envelope.get("error"),
        )

    @staticmethod
    def _parse_progress(parser, data: Any, endpoint: str) -> RemoteProgress:
        """Turn a malformed 2xx progress payload into a ProfileServiceValidationError."""
        if not isinstance(data, dict):
            raise ProfileServiceValidationError(
                f"Malformed {endpoint} payload: expected an object, got {type(data).__name__}"
            )
        try:
            return parser(data)
        except (ValueError, TypeError, AttributeError) as e:
            raise ProfileServiceValidationError(f"Malformed {endpoint} payload: {e}", response_body=data)

    # ===== Progress =====

    def get_progress(self, context: SessionContext) -> RemoteProgress:
        """
        Load saved answers.

        Prefers the status endpoint; falls back to the answers endpoint when
        the status endpoint is missing or reports no profile. A payload that
        does not have the expected shape raises ProfileServiceValidationError.
        """
        try:
            envelope = self._request("GET", "/status", context)
            data = envelope.get("data") or {}
            if envelope.get("success", True) and isinstance(data, dict) and data.get("profile"):
                return self._parse_progress(RemoteProgress.from_status, data, "/status")
        except ProfileServiceNotFoundError:
            logger.info(f"No progressive status for user {context.user_id}, trying answers endpoint")

        envelope = self._request("GET", "/answers", context)
        return self._parse_progress(RemoteProgress.from_answers, envelope.get("data") or {}, "/answers")

    def save_answer(self, context: SessionContext, question_id: str, answer: Any, points: int = 0) -> SaveAck:
        envelope = self._request(
            "POST",
            "/save-answer",
            context,
            data={"questionId": question_id, "answer": answer, "points": points},
        )
        return self._ack(envelope)

    def save_batch(self, context: SessionContext, answers: Dict[str, Any], auto_saved: bool = False) -> SaveAck:
        envelope = self._request(
            "POST",
            "/save-batch",
            context,
            data={"answers": answers, "autoSaved": auto_saved},
        )
        return self._ack(envelope)

    def complete_phase(self, context: SessionContext, phase_id: str) -> SaveAck:
        envelope = self._request("PUT", "/phase-complete", context, data={"phaseId": phase_id})
        return self._ack(envelope)

    # ===== Finalize =====

    def finalize(self, context: SessionContext) -> FinalizeResponse:
        envelope = self._request("POST", "/finalize", context)
        data = envelope.get("data") or {}
        return FinalizeResponse(
            success=bool(envelope.get("success", True)),
            profile=data.get("profile") or {},
            user=data.get("user") or {},
            message=envelope.get("message") or envelope.get("error"),
        )
