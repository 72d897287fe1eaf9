"""Deliver notification intents with bounded retries and at most one success."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import datetime, timedelta

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from moodlog.config import Settings, get_settings
from moodlog.domain.entities import (
    DeliveryOutcome,
    EventKind,
    NotificationIntent,
    Recipient,
    Severity,
)
from moodlog.domain.errors import ChannelError, NotFound
from moodlog.infrastructure.database import session_scope
from moodlog.infrastructure.locks import KeyedLock
from moodlog.infrastructure.notifications import (
    EmailNotificationChannel,
    NotificationChannel,
)
from moodlog.infrastructure.repositories import (
    EventRepository,
    NotificationDeliveryRepository,
)
from moodlog.utils import now_in_app_timezone

from .recipients import load_policy, load_recipient
from .thresholds import evaluate

logger = logging.getLogger(__name__)
alerts_logger = logging.getLogger("moodlog.alerts")

OutcomeHook = Callable[[DeliveryOutcome], None]

TEST_ALERT_TEMPLATE = (
    "Test alert for {username}: if you can read this, alerts reach you here."
)


def _is_transient(exc: BaseException) -> bool:
    return isinstance(exc, ChannelError) and exc.transient


class NotificationDispatcher:
    """Send intents through a channel and persist the delivery state machine.

    Every intent moves through ``pending`` and ``retrying`` to either
    ``delivered`` or ``failed``. The delivery row for ``(user_id,
    event_sequence)`` is claimed with a conditional update before sending,
    so concurrent or repeated dispatches of the same intent produce at most
    one successful send.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        channel: NotificationChannel | None = None,
        settings: Settings | None = None,
        *,
        clock: Callable[[], datetime] = now_in_app_timezone,
        sleep: Callable[[float], None] = time.sleep,
        locks: KeyedLock | None = None,
        on_outcome: OutcomeHook | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._channel = channel or EmailNotificationChannel()
        self._settings = settings or get_settings()
        self._clock = clock
        self._sleep = sleep
        self._locks = locks or KeyedLock()
        self._on_outcome = on_outcome

    def dispatch(self, intent: NotificationIntent) -> DeliveryOutcome:
        """Deliver ``intent`` unless it was already delivered or is in flight."""

        with self._locks.hold(intent.user_id):
            outcome, claimed = self._claim(intent)
            if not claimed:
                logger.debug(
                    "Skipping intent %s: delivery is %s",
                    intent.key,
                    outcome.status.value,
                )
                return outcome

            try:
                outcome = self._deliver(intent, outcome)
            except Exception:
                self._release(outcome)
                raise

        self._publish(outcome)
        return outcome

    def resume(self, user_id: int) -> list[DeliveryOutcome]:
        """Re-derive the intents of ``user_id`` and dispatch the undelivered ones.

        Used after a restart: intents are recomputed from the stored events
        in sequence order, so nothing depends on in-memory state.
        """

        intents: list[NotificationIntent] = []
        with session_scope(self._session_factory) as db:
            recipient = load_recipient(db, user_id)
            if recipient is None:
                return []
            policy = load_policy(db, user_id, self._settings)
            deliveries = NotificationDeliveryRepository(db)
            last_checkin = None
            for event in EventRepository(db).list(user_id):
                intent = evaluate(
                    event,
                    policy,
                    recipient.display_name,
                    last_checkin=last_checkin,
                )
                if event.kind is EventKind.CHECKIN:
                    last_checkin = event
                if intent is None:
                    continue
                existing = deliveries.get(user_id, event.sequence)
                if existing is not None and existing.delivered:
                    continue
                intents.append(intent)

        if intents:
            logger.info("Resuming %d alert(s) for user %s", len(intents), user_id)
        return [self.dispatch(intent) for intent in intents]

    def send_test_alert(self, user_id: int) -> tuple[Recipient, str]:
        """Send a fixed test message through the channel for ``user_id``.

        Nothing is recorded as a delivery. :class:`ChannelError` propagates so
        the caller can show what is wrong with the contacts or the channel.
        """

        recipient = self._load_recipient(user_id)
        if recipient is None:
            raise NotFound(f"User {user_id} not found")
        message = TEST_ALERT_TEMPLATE.format(username=recipient.display_name)
        self._channel.send(recipient, message, critical=False)
        logger.info(
            "Sent test alert for user %s to %d contact(s)",
            user_id,
            len(recipient.contacts),
        )
        return recipient, message

    def _claim(self, intent: NotificationIntent) -> tuple[DeliveryOutcome, bool]:
        now = self._clock()
        stale_before = now - timedelta(
            seconds=self._settings.notification_claim_timeout_seconds
        )
        user_id, sequence = intent.key
        with session_scope(self._session_factory) as db:
            repository = NotificationDeliveryRepository(db)
            if repository.get(user_id, sequence) is None:
                try:
                    repository.create_pending(intent, now)
                except IntegrityError:
                    logger.debug("Delivery row for %s created concurrently", intent.key)

            current = repository.get(user_id, sequence)
            if current is None:
                raise NotFound(f"User {user_id} not found")
            if current.delivered:
                return current, False
            claimed = repository.claim(
                user_id, sequence, now=now, stale_before=stale_before
            )
            return repository.get(user_id, sequence), claimed

    def _retrying(self, before_sleep: Callable[[RetryCallState], None]) -> Retrying:
        settings = self._settings
        return Retrying(
            stop=stop_after_attempt(settings.notification_max_attempts),
            wait=wait_exponential(
                multiplier=settings.notification_backoff_base_seconds,
                exp_base=settings.notification_backoff_factor,
                max=settings.notification_backoff_max_seconds,
            ),
            retry=retry_if_exception(_is_transient),
            sleep=self._sleep,
            before_sleep=before_sleep,
            reraise=True,
        )

    def _deliver(
        self, intent: NotificationIntent, outcome: DeliveryOutcome
    ) -> DeliveryOutcome:
        critical = intent.severity is Severity.CRITICAL
        attempts = outcome.attempts

        recipient = self._load_recipient(intent.user_id)
        if recipient is None:
            return self._fail(intent, outcome, attempts, "user no longer exists")

        def record_retry(retry_state: RetryCallState) -> None:
            error = retry_state.outcome.exception()
            logger.warning(
                "Delivery attempt %d/%d for intent %s failed: %s; retrying in %.2fs",
                retry_state.attempt_number,
                self._settings.notification_max_attempts,
                intent.key,
                error,
                retry_state.next_action.sleep,
            )
            with session_scope(self._session_factory) as db:
                NotificationDeliveryRepository(db).record_retry(
                    outcome.id, attempts=attempts, error=str(error), now=self._clock()
                )

        try:
            for attempt in self._retrying(record_retry):
                with attempt:
                    attempts += 1
                    self._channel.send(recipient, intent.message, critical=critical)
        except ChannelError as exc:
            if not exc.transient:
                logger.warning(
                    "Permanent channel failure for intent %s: %s", intent.key, exc
                )
            return self._fail(intent, outcome, attempts, str(exc))

        with session_scope(self._session_factory) as db:
            repository = NotificationDeliveryRepository(db)
            repository.mark_delivered(outcome.id, attempts=attempts, now=self._clock())
            delivered = repository.get(intent.user_id, intent.event_sequence)
        logger.info(
            "Delivered %s alert for intent %s after %d attempt(s)",
            intent.severity.value,
            intent.key,
            attempts,
        )
        return delivered

    def _fail(
        self,
        intent: NotificationIntent,
        outcome: DeliveryOutcome,
        attempts: int,
        error: str,
    ) -> DeliveryOutcome:
        with session_scope(self._session_factory) as db:
            repository = NotificationDeliveryRepository(db)
            repository.mark_failed(
                outcome.id, attempts=attempts, error=error, now=self._clock()
            )
            failed = repository.get(intent.user_id, intent.event_sequence)
        alerts_logger.error(
            "Giving up on %s alert for user %s (event %s) after %d attempt(s): %s",
            intent.severity.value,
            intent.user_id,
            intent.event_sequence,
            attempts,
            error,
        )
        return failed

    def _release(self, outcome: DeliveryOutcome) -> None:
        try:
            with session_scope(self._session_factory) as db:
                NotificationDeliveryRepository(db).release(outcome.id)
        except Exception:
            logger.exception("Could not release delivery claim %s", outcome.id)

    def _load_recipient(self, user_id: int) -> Recipient | None:
        with session_scope(self._session_factory) as db:
            return load_recipient(db, user_id)

    def _publish(self, outcome: DeliveryOutcome) -> None:
        if self._on_outcome is None:
            return
        try:
            self._on_outcome(outcome)
        except Exception:
            logger.exception("Outcome hook failed for delivery %s", outcome.id)


__all__ = [
    "NotificationDispatcher",
    "OutcomeHook",
    "TEST_ALERT_TEMPLATE",
    "alerts_logger",
]
