"""
Crisis Orchestrator

Builds and owns every crisis pipeline component for one process:
stores, classifier, alert bus and sinks, notification dispatcher,
escalation workflow, aggregation view and the pipeline itself.

ARCHITECTURE: The HTTP layer only talks to the orchestrator's
components; nothing else constructs them. Wiring follows settings:
UNMUTE_STORE_BACKEND picks in-memory or SQL stores, notification
sinks are enabled by their credentials.
"""

from datetime import timedelta
from typing import Optional

import httpx

from unmute.config.logging_config import get_logger
from unmute.config.settings import Settings, get_settings
from unmute.domain.enums.risk_stage import RiskLevel, Stage
from unmute.domain.enums.workflow import NotificationChannel
from unmute.infrastructure.database import DatabaseManager
from unmute.infrastructure.notifications import (
    NotificationAlertSink,
    NotificationDispatcher,
    ResendEmailSink,
    StaticRecipientDirectory,
    TwilioSmsSink,
)
from unmute.infrastructure.stores import (
    InMemoryAssignmentStore,
    InMemoryResponseLogStore,
    InMemoryRiskProfileStore,
    InMemorySignalRecordStore,
    SqlAssignmentStore,
    SqlResponseLogStore,
    SqlRiskProfileStore,
    SqlSignalRecordStore,
)
from unmute.services.alerts import AlertBus, LoggingAlertSink
from unmute.services.detection.signal_classifier import SignalClassifier
from unmute.services.escalation import EscalationWorkflow
from unmute.services.pipeline import CrisisPipeline
from unmute.services.reporting import AggregationView
from unmute.services.safety.crisis_resources import CrisisResourceResolver
from unmute.services.safety.stage_advancer import StageAdvancer

logger = get_logger(__name__)


class CrisisOrchestrator:
    """
    Composition root of the crisis pipeline.

    Usage:
        orchestrator = CrisisOrchestrator(settings)
        await orchestrator.initialize()
        signal = orchestrator.pipeline.on_user_message(...)
        await orchestrator.shutdown()
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """
        Wire all components (no I/O happens here).

        Args:
            settings: Application settings, defaults to get_settings()
            http_client: Client for notification providers; one is
                created and owned when omitted
        """
        self._settings = settings or get_settings()
        self._owns_http_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(
            timeout=self._settings.notifications.timeout_seconds,
        )
        self._initialized = False

        self.db: Optional[DatabaseManager] = None
        if self._settings.store_backend == "sql":
            self.db = DatabaseManager(self._settings)
            self.profiles = SqlRiskProfileStore(self.db)
            self.assignments = SqlAssignmentStore(self.db)
            self.responses = SqlResponseLogStore(self.db)
            self.signal_records = SqlSignalRecordStore(self.db)
        else:
            self.profiles = InMemoryRiskProfileStore()
            self.assignments = InMemoryAssignmentStore()
            self.responses = InMemoryResponseLogStore()
            self.signal_records = InMemorySignalRecordStore()

        self.classifier = SignalClassifier(
            max_scan_chars=self._settings.classifier.max_scan_chars,
            negation_window=self._settings.classifier.negation_window,
        )
        self.resources = CrisisResourceResolver(self._settings.notifications.resources_file or None)

        alerts = self._settings.alerts
        self.bus = AlertBus(
            cooldown=timedelta(minutes=alerts.cooldown_minutes),
            buffer_size=alerts.subscriber_buffer_size,
            min_stage=Stage.parse(alerts.min_stage),
        )

        self.dispatcher = self._build_dispatcher()

        advancer = StageAdvancer()
        self.workflow = EscalationWorkflow(
            self.assignments,
            self.responses,
            dispatcher=self.dispatcher,
            profiles=self.profiles,
            advancer=advancer,
        )
        self.aggregation = AggregationView(self.profiles)

        escalation = self._settings.escalation
        self.pipeline = CrisisPipeline(
            classifier=self.classifier,
            profiles=self.profiles,
            signal_records=self.signal_records,
            bus=self.bus,
            workflow=self.workflow,
            advancer=advancer,
            write_attempts=escalation.profile_write_attempts,
            backoff_min_seconds=escalation.retry_backoff_min_seconds,
            backoff_max_seconds=escalation.retry_backoff_max_seconds,
            auto_escalate_min_level=RiskLevel.parse(escalation.auto_escalate_min_level),
            sweep_interval_seconds=escalation.sweep_interval_seconds,
            max_deferred_updates=escalation.max_deferred_updates,
            max_deferred_sweeps=escalation.max_deferred_sweeps,
            shutdown_timeout_seconds=escalation.shutdown_timeout_seconds,
        )

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def settings(self) -> Settings:
        return self._settings

    async def initialize(self, create_schema: bool = False) -> None:
        """
        Connect the store, attach alert sinks and start background work.

        Args:
            create_schema: Create tables from ORM metadata (development
                and tests; production uses Alembic migrations)
        """
        if self._initialized:
            return

        if self.db is not None:
            await self.db.initialize()
            if create_schema:
                await self.db.create_schema()

        self.bus.attach_sink(LoggingAlertSink())
        if self._settings.notifications.alerts_enabled:
            if self.dispatcher.can_dispatch(NotificationChannel.BOTH):
                self.bus.attach_sink(NotificationAlertSink(self.dispatcher))
            else:
                logger.warning("Alert notifications enabled but no sink is configured")

        self.pipeline.start()
        self._initialized = True
        logger.info(
            "Crisis orchestrator initialized",
            store_backend=self._settings.store_backend,
            email=self.dispatcher.can_dispatch(NotificationChannel.EMAIL),
            sms=self.dispatcher.can_dispatch(NotificationChannel.SMS),
        )

    async def shutdown(self) -> None:
        """Stop background work and release connections."""
        logger.info("Shutting down crisis orchestrator")
        await self.pipeline.stop()
        await self.bus.close()
        await self.dispatcher.drain()
        if self._owns_http_client:
            await self._http_client.aclose()
        if self.db is not None:
            await self.db.close()
        self._initialized = False

    async def health_check(self) -> bool:
        """Whether the record store is reachable."""
        if self.db is None:
            return True
        if not self.db.is_initialized:
            return False
        return await self.db.health_check()

    def _build_dispatcher(self) -> NotificationDispatcher:
        notify = self._settings.notifications
        sinks = [
            ResendEmailSink(
                api_key=notify.resend_api_key.get_secret_value(),
                sender=notify.email_from,
                client=self._http_client,
            ),
            TwilioSmsSink(
                account_sid=notify.twilio_account_sid,
                auth_token=notify.twilio_auth_token.get_secret_value(),
                from_number=notify.twilio_phone_number,
                client=self._http_client,
            ),
        ]
        directory = StaticRecipientDirectory(
            emails=notify.recipient_emails,
            phones=notify.recipient_phones,
        )
        return NotificationDispatcher(sinks, directory)
