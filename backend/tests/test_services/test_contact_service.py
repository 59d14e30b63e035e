"""Tests for ContactService and ContactMailDispatcher."""

import pytest

from models.exceptions import (
    ContactValidationException,
    EmailDeliveryException,
    RateLimitExceededException,
)
from models.schemas import ContactSubmission
from services.contact_service import (
    CONFIRMATION_SUBJECT,
    SUCCESS_MESSAGE,
    ContactMailDispatcher,
    ContactService,
    DispatchOutcome,
    DispatchStep,
)
from services.rate_limit_service import FixedWindowRateLimiter
from conftest import RecordingProvider

CLIENT = "203.0.113.5"


@pytest.fixture
def limiter() -> FixedWindowRateLimiter:
    return FixedWindowRateLimiter(max_requests=5, window_seconds=900)


def make_service(settings, provider, limiter) -> ContactService:
    return ContactService(limiter, ContactMailDispatcher(settings, provider))


class TestOwnerNotification:
    def test_addressing(self, settings, provider, valid_submission):
        email = ContactMailDispatcher(settings, provider).build_owner_notification(
            valid_submission
        )

        assert email.to_email == "owner@example.com"
        assert email.reply_to == "jane@example.com"
        assert email.subject == "Portfolio Contact: Project Inquiry"

    def test_multiline_subject_is_one_header_line(
        self, settings, provider, valid_payload
    ):
        submission = ContactSubmission(
            **{**valid_payload, "subject": "Quote\r\nRe:  website"}
        )

        email = ContactMailDispatcher(settings, provider).build_owner_notification(
            submission
        )

        assert email.subject == "Portfolio Contact: Quote Re: website"
        # Body keeps the subject as typed
        assert "Quote\r\nRe:  website" in email.text_body

    def test_owner_email_overrides_account(self, settings, provider, valid_submission):
        settings = settings.model_copy(update={"OWNER_EMAIL": "inbox@example.com"})
        email = ContactMailDispatcher(settings, provider).build_owner_notification(
            valid_submission
        )
        assert email.to_email == "inbox@example.com"

    def test_bodies_contain_all_fields(self, settings, provider, valid_submission):
        email = ContactMailDispatcher(settings, provider).build_owner_notification(
            valid_submission
        )

        for value in ("Jane Doe", "jane@example.com", "Project Inquiry"):
            assert value in email.text_body
            assert value in email.html_body
        assert valid_submission.message in email.text_body

    def test_html_is_escaped(self, settings, provider):
        submission = ContactSubmission(
            name="<b>Mallory</b>",
            email="m@example.com",
            subject="Hello <script>",
            message="line one\n<script>alert(1)</script>",
        )
        email = ContactMailDispatcher(settings, provider).build_owner_notification(
            submission
        )

        assert "<script>" not in email.html_body
        assert "&lt;script&gt;alert(1)&lt;/script&gt;" in email.html_body
        assert "&lt;b&gt;Mallory&lt;/b&gt;" in email.html_body
        assert "line one<br>" in email.html_body
        # Plain text is left as submitted
        assert "<script>alert(1)</script>" in email.text_body


class TestSenderConfirmation:
    def test_addressing(self, settings, provider, valid_submission):
        email = ContactMailDispatcher(settings, provider).build_sender_confirmation(
            valid_submission
        )

        assert email.to_email == "jane@example.com"
        assert email.subject == CONFIRMATION_SUBJECT == "Thank you for contacting me!"
        assert email.reply_to is None

    def test_echoes_submission_and_signs(self, settings, provider, valid_submission):
        email = ContactMailDispatcher(settings, provider).build_sender_confirmation(
            valid_submission
        )

        assert "Hi Jane Doe," in email.text_body
        assert "Subject: Project Inquiry" in email.text_body
        assert valid_submission.message in email.text_body
        assert email.text_body.rstrip().endswith("Best regards,\nAman Gupta")
        assert "Best regards,<br>Aman Gupta" in email.html_body


class TestDispatch:
    def test_sends_notification_then_confirmation(
        self, settings, provider, valid_submission
    ):
        result = ContactMailDispatcher(settings, provider).dispatch(valid_submission)

        assert result.outcome is DispatchOutcome.SUCCEEDED
        assert result.succeeded
        assert [m["to_email"] for m in provider.sent] == [
            "owner@example.com",
            "jane@example.com",
        ]

    def test_failed_notification_skips_confirmation(self, settings, valid_submission):
        provider = RecordingProvider(results=[False])

        result = ContactMailDispatcher(settings, provider).dispatch(valid_submission)

        assert result.outcome is DispatchOutcome.DISPATCH_FAILED
        assert result.failed_step is DispatchStep.OWNER_NOTIFICATION
        assert len(provider.sent) == 1

    def test_failed_confirmation_fails_dispatch(self, settings, valid_submission):
        provider = RecordingProvider(results=[True, False])

        result = ContactMailDispatcher(settings, provider).dispatch(valid_submission)

        assert not result.succeeded
        assert result.failed_step is DispatchStep.SENDER_CONFIRMATION
        assert len(provider.sent) == 2

    def test_provider_exception_is_a_failure(self, settings, valid_submission):
        provider = RecordingProvider(results=[RuntimeError("provider down")])

        result = ContactMailDispatcher(settings, provider).dispatch(valid_submission)

        assert result.failed_step is DispatchStep.OWNER_NOTIFICATION
        assert len(provider.sent) == 1


class TestContactService:
    def test_success(self, settings, provider, limiter, valid_submission):
        result = make_service(settings, provider, limiter).submit(
            valid_submission, CLIENT
        )

        assert result.response.success is True
        assert result.response.message == SUCCESS_MESSAGE
        assert result.rate_limit.remaining == 4
        assert len(provider.sent) == 2

    @pytest.mark.parametrize(
        "overrides,expected",
        [
            ({"name": None}, "All fields are required"),
            ({"message": ""}, "All fields are required"),
            ({"name": "J"}, "Name must be at least 2 characters long"),
            ({"subject": "Hi"}, "Subject must be at least 5 characters long"),
            ({"message": "Hi"}, "Message must be at least 10 characters long"),
            ({"email": "bad"}, "Please enter a valid email address"),
        ],
    )
    def test_validation_failure_sends_nothing(
        self, settings, provider, limiter, valid_payload, overrides, expected
    ):
        submission = ContactSubmission(**{**valid_payload, **overrides})

        with pytest.raises(ContactValidationException) as exc_info:
            make_service(settings, provider, limiter).submit(submission, CLIENT)

        assert exc_info.value.message == expected
        assert provider.sent == []

    def test_invalid_submissions_do_not_use_quota(
        self, settings, provider, limiter, valid_payload
    ):
        service = make_service(settings, provider, limiter)
        invalid = ContactSubmission(**{**valid_payload, "email": "bad"})

        for _ in range(10):
            with pytest.raises(ContactValidationException):
                service.submit(invalid, CLIENT)

        assert limiter.remaining(CLIENT) == 5

    def test_sixth_submission_rate_limited(
        self, settings, provider, limiter, valid_submission
    ):
        service = make_service(settings, provider, limiter)
        for _ in range(5):
            service.submit(valid_submission, CLIENT)

        with pytest.raises(RateLimitExceededException):
            service.submit(valid_submission, CLIENT)

        # Only the five admitted submissions were dispatched
        assert len(provider.sent) == 10

    def test_dispatch_failure_raises_generic_error(
        self, settings, limiter, valid_submission
    ):
        provider = RecordingProvider(results=[False])

        with pytest.raises(EmailDeliveryException) as exc_info:
            make_service(settings, provider, limiter).submit(valid_submission, CLIENT)

        assert exc_info.value.message.startswith("Failed to send message")
        assert exc_info.value.failed_step == "owner_notification"

    def test_unexpected_dispatcher_error_is_mapped(
        self, settings, provider, limiter, valid_submission
    ):
        class ExplodingDispatcher(ContactMailDispatcher):
            def dispatch(self, submission):
                raise KeyError("template")

        service = ContactService(limiter, ExplodingDispatcher(settings, provider))

        with pytest.raises(EmailDeliveryException) as exc_info:
            service.submit(valid_submission, CLIENT)

        assert "template" not in exc_info.value.message

    def test_missing_credentials_surface_as_dispatch_failure(
        self, settings, limiter, valid_submission
    ):
        from services.email_service import get_email_provider

        settings = settings.model_copy(update={"EMAIL_SERVICE": "gmail", "EMAIL_PASS": ""})
        service = make_service(settings, get_email_provider(settings), limiter)

        with pytest.raises(EmailDeliveryException):
            service.submit(valid_submission, CLIENT)
