"""
Progressive Profile Client Tests
================================
Tests for the HTTP client against httpx.MockTransport.

Tests:
1. Request shape (paths, headers, JSON bodies)
2. Envelope unwrapping and status -> answers fallback
3. Error mapping by status code
4. Bounded retry on 429/5xx/timeouts
"""

import json

import httpx
import pytest

from onboarding.integrations import (
    ProfileServiceAuthError,
    ProfileServiceError,
    ProfileServiceNotFoundError,
    ProfileServiceRateLimitError,
    ProfileServiceUnavailableError,
    ProfileServiceValidationError,
    ProgressiveProfileClient,
)
from onboarding.shared import SessionContext

BASE_URL = "https://profiles.test/api"


@pytest.fixture
def context():
    return SessionContext(user_id="user-1", access_token="token-1")


def make_client(handler, max_retries: int = 2) -> ProgressiveProfileClient:
    return ProgressiveProfileClient(
        base_url=BASE_URL,
        timeout=1,
        max_retries=max_retries,
        retry_backoff=0,
        transport=httpx.MockTransport(handler),
    )


def envelope(data=None, success=True, message=None, status_code=200):
    body = {"success": success, "data": data or {}}
    if message:
        body["message"] = message
    return httpx.Response(status_code, json=body)


class RecordingHandler:
    """Replays queued responses and records every request."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


# ============================================
# REQUEST SHAPE
# ============================================

class TestRequests:

    def test_save_answer_payload_and_headers(self, context):
        handler = RecordingHandler(envelope({"pointsEarned": 5}))
        ack = make_client(handler).save_answer(context, "father_name", "Obi", 5)

        request = handler.requests[0]
        assert request.method == "POST"
        assert str(request.url) == f"{BASE_URL}/users/progressive/save-answer"
        assert request.headers["Authorization"] == "Bearer token-1"
        assert request.headers["X-User-Id"] == "user-1"
        assert json.loads(request.content) == {"questionId": "father_name", "answer": "Obi", "points": 5}
        assert ack.accepted is True
        assert ack.points_earned == 5

    def test_save_batch_payload(self, context):
        handler = RecordingHandler(envelope())
        make_client(handler).save_batch(context, {"father_name": "Obi", "photos": ["a"]}, auto_saved=True)
        body = json.loads(handler.requests[0].content)
        assert body == {"answers": {"father_name": "Obi", "photos": ["a"]}, "autoSaved": True}

    def test_complete_phase_uses_put(self, context):
        handler = RecordingHandler(envelope())
        make_client(handler).complete_phase(context, "core")
        request = handler.requests[0]
        assert request.method == "PUT"
        assert request.url.path == "/api/users/progressive/phase-complete"
        assert json.loads(request.content) == {"phaseId": "core"}

    def test_no_token_no_authorization_header(self):
        handler = RecordingHandler(envelope())
        make_client(handler).save_batch(SessionContext(user_id="user-2"), {})
        assert "Authorization" not in handler.requests[0].headers

    def test_rejected_ack(self, context):
        handler = RecordingHandler(envelope(success=False, message="quota reached"))
        ack = make_client(handler).save_answer(context, "father_name", "Obi", 5)
        assert ack.accepted is False
        assert ack.message == "quota reached"


# ============================================
# GET PROGRESS
# ============================================

class TestGetProgress:

    def test_status_endpoint(self, context):
        handler = RecordingHandler(envelope({"profile": {
            "answers": {"father_name": "Obi"},
            "answered_questions": ["father_name"],
            "total_points": 5,
            "current_phase": "core",
            "completed": False,
        }}))
        progress = make_client(handler).get_progress(context)
        assert handler.requests[0].url.path.endswith("/status")
        assert progress.answers == {"father_name": "Obi"}
        assert progress.total_points == 5
        assert progress.current_phase == "core"

    def test_falls_back_to_answers_on_404(self, context):
        handler = RecordingHandler(
            httpx.Response(404, json={"success": False, "message": "no profile"}),
            envelope({"answers": {"mother_name": "Ada"}, "answeredQuestions": ["mother_name"], "totalPoints": 5}),
        )
        progress = make_client(handler).get_progress(context)
        assert [r.url.path.rsplit("/", 1)[-1] for r in handler.requests] == ["status", "answers"]
        assert progress.answered_question_ids == ["mother_name"]
        assert progress.total_points == 5

    def test_falls_back_when_status_has_no_profile(self, context):
        handler = RecordingHandler(envelope({"profile": None}), envelope({"answers": {}}))
        progress = make_client(handler).get_progress(context)
        assert progress.answers == {}
        assert len(handler.requests) == 2

    def test_negative_points_payload_is_a_validation_error(self, context):
        handler = RecordingHandler(
            httpx.Response(404, json={"success": False}),
            envelope({"answers": {}, "totalPoints": -5}),
        )
        with pytest.raises(ProfileServiceValidationError) as exc_info:
            make_client(handler).get_progress(context)
        assert "/answers" in str(exc_info.value)

    def test_answers_as_list_is_a_validation_error(self, context):
        handler = RecordingHandler(
            httpx.Response(404, json={"success": False}),
            envelope({"answers": ["family_stories"]}),
        )
        with pytest.raises(ProfileServiceValidationError):
            make_client(handler).get_progress(context)

    def test_non_object_data_is_a_validation_error(self, context):
        handler = RecordingHandler(
            httpx.Response(404, json={"success": False}),
            envelope(["family_stories"]),
        )
        with pytest.raises(ProfileServiceValidationError):
            make_client(handler).get_progress(context)

    def test_malformed_status_profile_is_a_validation_error(self, context):
        handler = RecordingHandler(envelope({"profile": {"answers": {}, "answered_questions": 7}}))
        with pytest.raises(ProfileServiceValidationError):
            make_client(handler).get_progress(context)

    def test_finalize(self, context):
        handler = RecordingHandler(envelope({
            "profile": {"answers": {"father_name": "Obi"}},
            "user": {"id": "user-1", "profile_completed": True},
        }))
        response = make_client(handler).finalize(context)
        assert response.success is True
        assert response.user["profile_completed"] is True
        assert handler.requests[0].url.path.endswith("/finalize")


# ============================================
# ERRORS & RETRY
# ============================================

class TestErrors:

    @pytest.mark.parametrize("status,error_cls", [
        (401, ProfileServiceAuthError),
        (403, ProfileServiceAuthError),
        (400, ProfileServiceValidationError),
        (422, ProfileServiceValidationError),
        (409, ProfileServiceError),
    ])
    def test_status_mapping(self, context, status, error_cls):
        handler = RecordingHandler(httpx.Response(status, json={"message": "nope"}))
        with pytest.raises(error_cls) as exc_info:
            make_client(handler).save_answer(context, "father_name", "Obi", 5)
        assert exc_info.value.status_code == status
        assert exc_info.value.response_body == {"message": "nope"}
        assert len(handler.requests) == 1

    def test_not_found_on_write(self, context):
        handler = RecordingHandler(httpx.Response(404, json={"message": "gone"}))
        with pytest.raises(ProfileServiceNotFoundError):
            make_client(handler).finalize(context)

    def test_retries_5xx_then_succeeds(self, context):
        handler = RecordingHandler(
            httpx.Response(503, json={"message": "busy"}),
            httpx.Response(502, text="bad gateway"),
            envelope(),
        )
        ack = make_client(handler).save_answer(context, "father_name", "Obi", 5)
        assert ack.accepted is True
        assert len(handler.requests) == 3

    def test_5xx_exhausts_retries(self, context):
        handler = RecordingHandler(*[httpx.Response(500, json={"message": "down"}) for _ in range(3)])
        with pytest.raises(ProfileServiceUnavailableError):
            make_client(handler, max_retries=2).save_answer(context, "father_name", "Obi", 5)
        assert len(handler.requests) == 3

    def test_rate_limit_honours_retry_after(self, context):
        handler = RecordingHandler(
            httpx.Response(429, headers={"Retry-After": "0"}, json={"message": "slow down"}),
            envelope(),
        )
        assert make_client(handler).save_batch(context, {}).accepted is True
        assert len(handler.requests) == 2

    def test_rate_limit_exhausted(self, context):
        handler = RecordingHandler(httpx.Response(429, json={}))
        with pytest.raises(ProfileServiceRateLimitError):
            make_client(handler, max_retries=0).save_batch(context, {})

    def test_timeout_retried_then_unavailable(self, context):
        handler = RecordingHandler(httpx.ReadTimeout("slow"), httpx.ReadTimeout("slow"))
        with pytest.raises(ProfileServiceUnavailableError, match="timed out"):
            make_client(handler, max_retries=1).save_batch(context, {})
        assert len(handler.requests) == 2

    def test_connection_error_is_unavailable(self, context):
        handler = RecordingHandler(httpx.ConnectError("refused"))
        with pytest.raises(ProfileServiceUnavailableError):
            make_client(handler).save_batch(context, {})
        assert len(handler.requests) == 1

    def test_unconfigured_client(self, context):
        client = ProgressiveProfileClient(base_url="")
        assert client.is_configured is False
        with pytest.raises(ProfileServiceUnavailableError, match="not configured"):
            client.save_batch(context, {})
