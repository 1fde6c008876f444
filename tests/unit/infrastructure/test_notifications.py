"""
Unit Tests for Crisis Notifications

Tests the Resend and Twilio sinks against a mocked HTTP transport,
dispatcher failure isolation and message content.
"""

import json
from urllib.parse import parse_qs
from uuid import UUID, uuid4

import httpx
import pytest

from unmute.domain.enums.risk_stage import RiskLevel, Stage
from unmute.domain.enums.workflow import NotificationChannel
from unmute.domain.exceptions import NotificationDeliveryFailure
from unmute.domain.models.alert_event import AlertEvent
from unmute.domain.models.risk_profile import RiskProfile
from unmute.infrastructure.notifications import (
    CrisisNotification,
    NotificationAlertSink,
    NotificationDispatcher,
    NotificationSink,
    ResendEmailSink,
    StaticRecipientDirectory,
    TwilioSmsSink,
)
from unmute.infrastructure.notifications.sinks import mask_recipient


STUDENT = UUID("12345678-aaaa-bbbb-cccc-1234567890ab")


@pytest.fixture
def notification() -> CrisisNotification:
    return CrisisNotification(
        risk_level=RiskLevel.CRITICAL,
        stage=Stage.ACTION,
        student_user_id=STUDENT,
        action="contacted-guardian",
        details="Parent <reached> by phone",
    )


class FlakySink(NotificationSink):
    """E-mail sink that fails for one recipient."""

    def __init__(self, bad_recipient: str) -> None:
        self.bad_recipient = bad_recipient
        self.delivered: list[str] = []

    @property
    def channel(self) -> NotificationChannel:
        return NotificationChannel.EMAIL

    def is_configured(self) -> bool:
        return True

    async def send(self, recipient: str, notification: CrisisNotification) -> None:
        if recipient == self.bad_recipient:
            raise NotificationDeliveryFailure("email", mask_recipient(recipient), "mailbox full")
        self.delivered.append(recipient)


class TestCrisisNotification:
    """Tests for notification content."""

    def test_email_subject(self, notification: CrisisNotification) -> None:
        """The subject carries the risk level."""
        assert notification.email_subject() == "URGENT: Crisis Alert - CRITICAL Risk"

    def test_email_escapes_details(self, notification: CrisisNotification) -> None:
        """Staff-written text is HTML-escaped."""
        html = notification.email_html()

        assert "&lt;reached&gt;" in html
        assert "<reached>" not in html
        assert "contacted guardian" in html

    def test_only_short_student_reference(self, notification: CrisisNotification) -> None:
        """The full student id never leaves the platform."""
        assert "12345678..." in notification.email_html()
        assert str(STUDENT) not in notification.email_html()
        assert str(STUDENT) not in notification.sms_body()

    def test_sms_body(self, notification: CrisisNotification) -> None:
        """SMS carries risk, stage and action but no details."""
        body = notification.sms_body()

        assert body.startswith("UNMUTE CRISIS ALERT")
        assert "Risk: CRITICAL" in body
        assert "Stage: action" in body
        assert "reached" not in body

    @pytest.mark.parametrize(
        "recipient,masked",
        [("counsellor@school.edu", "co***@school.edu"), ("+919876543210", "***3210")],
    )
    def test_mask_recipient(self, recipient: str, masked: str) -> None:
        """Addresses and numbers are masked for logs."""
        assert mask_recipient(recipient) == masked


class TestResendEmailSink:
    """Tests for the Resend e-mail sink."""

    async def test_posts_email(self, notification: CrisisNotification) -> None:
        """The API receives sender, recipient and bearer key."""
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"id": "email-1"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            sink = ResendEmailSink("re_test_key", "alerts@unmute.app", client)
            await sink.send("counsellor@school.edu", notification)

        (request,) = requests
        payload = json.loads(request.content)
        assert request.headers["authorization"] == "Bearer re_test_key"
        assert payload["to"] == ["counsellor@school.edu"]
        assert payload["from"] == "alerts@unmute.app"
        assert payload["subject"] == notification.email_subject()

    async def test_error_status_raises_delivery_failure(self, notification: CrisisNotification) -> None:
        """Provider errors surface as NotificationDeliveryFailure."""
        transport = httpx.MockTransport(lambda request: httpx.Response(422, json={"error": "bad"}))

        async with httpx.AsyncClient(transport=transport) as client:
            sink = ResendEmailSink("re_test_key", "alerts@unmute.app", client)
            with pytest.raises(NotificationDeliveryFailure) as exc_info:
                await sink.send("counsellor@school.edu", notification)

        assert exc_info.value.channel == "email"
        assert exc_info.value.recipient == "co***@school.edu"

    async def test_transport_error_is_retried(self, notification: CrisisNotification) -> None:
        """A dropped connection is retried before giving up."""
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            if len(calls) == 1:
                raise httpx.ConnectError("connection reset", request=request)
            return httpx.Response(200, json={"id": "email-2"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            await ResendEmailSink("re_test_key", "alerts@unmute.app", client).send(
                "counsellor@school.edu", notification
            )

        assert len(calls) == 2

    def test_unconfigured_without_key(self) -> None:
        """No API key means no e-mail."""
        assert not ResendEmailSink("", "alerts@unmute.app", httpx.AsyncClient()).is_configured()


class TestTwilioSmsSink:
    """Tests for the Twilio SMS sink."""

    async def test_posts_form(self, notification: CrisisNotification) -> None:
        """Messages are form-encoded with basic auth."""
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(201, json={"sid": "SM1"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            sink = TwilioSmsSink("AC123", "secret", "+15550001111", client)
            await sink.send("+919876543210", notification)

        (request,) = requests
        form = parse_qs(request.content.decode())
        assert "/Accounts/AC123/Messages.json" in str(request.url)
        assert request.headers["authorization"].startswith("Basic ")
        assert form["To"] == ["+919876543210"]
        assert form["From"] == ["+15550001111"]
        assert form["Body"] == [notification.sms_body()]

    def test_requires_all_credentials(self) -> None:
        """Missing the sender number leaves the sink unconfigured."""
        assert not TwilioSmsSink("AC123", "secret", "", httpx.AsyncClient()).is_configured()


class TestNotificationDispatcher:
    """Tests for fan-out and failure isolation."""

    async def test_one_failure_does_not_stop_others(self, notification: CrisisNotification) -> None:
        """Each recipient is tried independently."""
        sink = FlakySink("bad@school.edu")
        directory = StaticRecipientDirectory(emails=["bad@school.edu", "good@school.edu"])
        dispatcher = NotificationDispatcher([sink], directory)

        report = await dispatcher.deliver(NotificationChannel.EMAIL, notification)

        assert sink.delivered == ["good@school.edu"]
        assert report.sent == {"email": 1}
        assert len(report.failures) == 1

    async def test_unconfigured_sinks_are_ignored(self, notification: CrisisNotification) -> None:
        """A dispatcher without credentials cannot dispatch."""
        client = httpx.AsyncClient()
        dispatcher = NotificationDispatcher(
            [ResendEmailSink("", "alerts@unmute.app", client)],
            StaticRecipientDirectory(emails=["oncall@school.edu"]),
        )

        assert not dispatcher.can_dispatch(NotificationChannel.EMAIL)
        assert not dispatcher.dispatch(NotificationChannel.EMAIL, notification)
        await client.aclose()

    async def test_dispatch_in_background(self, notification: CrisisNotification) -> None:
        """dispatch() schedules delivery and drain() waits for it."""
        sink = FlakySink("nobody")
        dispatcher = NotificationDispatcher([sink], StaticRecipientDirectory(emails=["a@school.edu"]))

        assert dispatcher.dispatch(NotificationChannel.BOTH, notification)
        await dispatcher.drain()

        assert sink.delivered == ["a@school.edu"]

    async def test_no_recipients(self, notification: CrisisNotification) -> None:
        """An empty directory sends nothing."""
        dispatcher = NotificationDispatcher([FlakySink("nobody")], StaticRecipientDirectory())

        report = await dispatcher.deliver(NotificationChannel.EMAIL, notification)

        assert report.total_sent == 0


class TestNotificationAlertSink:
    """Tests for the alert-to-notification bridge."""

    def make_event(self, stage: Stage) -> AlertEvent:
        profile = RiskProfile(user_id=uuid4(), stage=stage, version=1)
        return AlertEvent(profile, Stage.NONE, stage)

    async def test_critical_alert_is_sent(self) -> None:
        """Critical alerts are delivered to on-call staff."""
        sink = FlakySink("nobody")
        bridge = NotificationAlertSink(
            NotificationDispatcher([sink], StaticRecipientDirectory(emails=["oncall@school.edu"]))
        )

        await bridge.deliver(self.make_event(Stage.PLANNING))

        assert sink.delivered == ["oncall@school.edu"]

    async def test_non_critical_alert_is_skipped(self) -> None:
        """Only critical alerts page staff."""
        sink = FlakySink("nobody")
        bridge = NotificationAlertSink(
            NotificationDispatcher([sink], StaticRecipientDirectory(emails=["oncall@school.edu"]))
        )

        await bridge.deliver(self.make_event(Stage.ISOLATION))

        assert sink.delivered == []
