"""Explicit construction of the application's services"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from canteen_api.config import Settings
from canteen_api.database import create_engine, create_session_factory
from canteen_api.notifications import ChannelNotifier, Notifier, SmtpEmailSender, TwilioAlertSender
from canteen_api.repositories import OrderStore, OtpStore
from canteen_api.services.events import EventPublisher
from canteen_api.services.gateway import PaymentGateway, RazorpayGateway
from canteen_api.services.lifecycle import OrderLifecycleManager
from canteen_api.services.otp import OtpService
from canteen_api.services.reconciler import WebhookReconciler
from canteen_api.timeutils import utcnow


@dataclass
class Services:
    """Everything a request handler or job needs, built once per process"""
    settings: Settings
    order_store: OrderStore
    otp_store: OtpStore
    lifecycle: OrderLifecycleManager
    reconciler: WebhookReconciler
    otp: OtpService
    notifier: Notifier
    engine: Optional[AsyncEngine] = None

    async def close(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()


def build_gateway(settings: Settings) -> PaymentGateway:
    return RazorpayGateway(
        key_id=settings.razorpay_key_id,
        key_secret=settings.razorpay_key_secret,
        base_url=settings.razorpay_base_url,
        timeout=settings.razorpay_timeout_seconds,
    )


def build_notifier(settings: Settings) -> Notifier:
    return ChannelNotifier(
        email_sender=SmtpEmailSender(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
            from_address=settings.mail_from,
            timeout=settings.smtp_timeout_seconds,
        ),
        alert_sender=TwilioAlertSender(
            account_sid=settings.twilio_account_sid,
            auth_token=settings.twilio_auth_token,
            from_number=settings.twilio_from_number,
        ),
        alert_number_for=settings.alert_number_for,
    )


def build_event_publisher() -> EventPublisher:
    from canteen_api.jobs.celery_app import celery_app
    from canteen_api.services.events import CeleryEventPublisher

    return CeleryEventPublisher(celery_app)


def build_services(
    settings: Settings,
    session_factory: Optional[async_sessionmaker] = None,
    gateway: Optional[PaymentGateway] = None,
    notifier: Optional[Notifier] = None,
    events: Optional[EventPublisher] = None,
    clock: Callable[[], datetime] = utcnow,
) -> Services:
    """
    Wire stores, lifecycle manager, reconciler and OTP service together.
    Collaborators not passed in are built from settings.
    """
    engine = None
    if session_factory is None:
        engine = create_engine(settings.database_url, echo=settings.database_echo)
        session_factory = create_session_factory(engine)

    gateway = gateway or build_gateway(settings)
    notifier = notifier or build_notifier(settings)
    events = events or build_event_publisher()

    order_store = OrderStore(session_factory)
    otp_store = OtpStore(session_factory)

    lifecycle = OrderLifecycleManager(
        order_store,
        gateway=gateway,
        events=events,
        payment_window=timedelta(minutes=settings.order_payment_window_minutes),
        currency=settings.currency,
        clock=clock,
    )

    return Services(
        settings=settings,
        order_store=order_store,
        otp_store=otp_store,
        lifecycle=lifecycle,
        reconciler=WebhookReconciler(
            lifecycle,
            order_store,
            webhook_secret=settings.razorpay_webhook_secret,
            provider=gateway.name,
        ),
        otp=OtpService(
            otp_store,
            notifier,
            ttl=timedelta(minutes=settings.otp_ttl_minutes),
            subject=settings.otp_email_subject,
            clock=clock,
        ),
        notifier=notifier,
        engine=engine,
    )
