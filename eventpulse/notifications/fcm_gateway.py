"""Firebase Cloud Messaging push gateway.

Sends reminder multicasts through firebase-admin. The SDK is blocking, so
each batch runs in a worker thread. Token lists are split into batches of
at most 500, which is the FCM multicast limit.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, List, Optional, Sequence

import firebase_admin
from firebase_admin import credentials, exceptions, messaging

from config.config import FcmConfig
from eventpulse.errors import ConfigurationError, GatewayUnavailableError
from eventpulse.notifications.gateway import (
    INVALID_REGISTRATION_TOKEN,
    REGISTRATION_TOKEN_NOT_REGISTERED,
    SENDER_ID_MISMATCH,
    UNAVAILABLE,
    UNKNOWN_ERROR,
    AddressResult,
    DispatchResult,
)
from eventpulse.reminders.composer import ReminderMessage
from eventpulse.utils.logger import log_debug, log_error, log_info, log_warning


FIREBASE_APP_NAME = "eventpulse"


def classify_error(exc: Optional[BaseException]) -> str:
    """Map a firebase-admin send exception to a gateway error code."""
    if exc is None:
        return UNKNOWN_ERROR
    if isinstance(exc, messaging.UnregisteredError):
        return REGISTRATION_TOKEN_NOT_REGISTERED
    if isinstance(exc, messaging.SenderIdMismatchError):
        return SENDER_ID_MISMATCH
    if isinstance(exc, exceptions.InvalidArgumentError):
        return INVALID_REGISTRATION_TOKEN
    if isinstance(exc, (exceptions.UnavailableError, exceptions.DeadlineExceededError)):
        return UNAVAILABLE
    code = getattr(exc, "code", None)
    return str(code).lower().replace("_", "-") if code else UNKNOWN_ERROR


def initialize_firebase(config: FcmConfig) -> firebase_admin.App:
    """Return the service's firebase app, initializing it on first use.

    Credentials are taken from inline JSON first, then a file path, then
    application default credentials with only the project ID.
    """
    try:
        return firebase_admin.get_app(FIREBASE_APP_NAME)
    except ValueError:
        pass

    options = {"projectId": config.project_id} if config.project_id else None

    try:
        if config.credentials_json:
            log_debug("[FCM] Using inline JSON credentials")
            cred = credentials.Certificate(json.loads(config.credentials_json))
        elif config.credentials_path:
            log_debug(f"[FCM] Using file-based credentials: {config.credentials_path}")
            cred = credentials.Certificate(config.credentials_path)
        elif config.project_id:
            log_debug("[FCM] Using application default credentials")
            cred = credentials.ApplicationDefault()
        else:
            raise ConfigurationError("FCM enabled but no credentials or project ID configured")

        app = firebase_admin.initialize_app(cred, options=options, name=FIREBASE_APP_NAME)
    except ConfigurationError:
        raise
    except (ValueError, OSError) as e:
        raise ConfigurationError(f"Failed to initialize Firebase: {e}") from e

    log_info(f"✅ [FCM] Firebase app initialized (project={config.project_id or 'default'})")
    return app


class FcmPushGateway:
    """Push gateway backed by FCM multicast."""

    def __init__(self, config: FcmConfig, app: Optional[Any] = None):
        """Initialize the gateway.

        Args:
            config: FCM configuration
            app: Pre-initialized firebase app; created lazily from config if omitted
        """
        self.config = config
        self._app = app
        self._init_lock = asyncio.Lock()

    async def _get_app(self) -> Any:
        if self._app is None:
            async with self._init_lock:
                if self._app is None:
                    self._app = await asyncio.to_thread(initialize_firebase, self.config)
        return self._app

    def build_message(self, tokens: List[str], message: ReminderMessage) -> messaging.MulticastMessage:
        return messaging.MulticastMessage(
            tokens=tokens,
            notification=messaging.Notification(title=message.title, body=message.body),
            data=dict(message.data),
            android=messaging.AndroidConfig(
                priority="high",
                notification=messaging.AndroidNotification(
                    sound="default",
                    channel_id=self.config.android_channel_id,
                    icon="ic_notification",
                ),
            ),
            apns=messaging.APNSConfig(
                payload=messaging.APNSPayload(
                    aps=messaging.Aps(sound="default", badge=1, category="EVENT_REMINDER"),
                ),
            ),
        )

    async def send_multicast(self, addresses: Sequence[str], message: ReminderMessage) -> DispatchResult:
        """Send ``message`` to every token, batch by batch.

        A transport failure on the first batch raises GatewayUnavailableError
        since nothing was delivered. Once a batch has gone out, later batch
        failures are reported per token instead, so the caller still records
        the reminder as sent.
        """
        tokens = list(addresses)
        result = DispatchResult()
        if not tokens:
            return result

        app = await self._get_app()
        batch_size = self.config.batch_size

        for offset in range(0, len(tokens), batch_size):
            batch = tokens[offset:offset + batch_size]
            try:
                response = await asyncio.to_thread(
                    messaging.send_each_for_multicast,
                    self.build_message(batch, message),
                    dry_run=self.config.dry_run,
                    app=app,
                )
            except exceptions.FirebaseError as e:
                if offset == 0:
                    raise GatewayUnavailableError(f"FCM multicast failed: {e}") from e
                log_error(f"[FCM] Batch of {len(batch)} token(s) failed after partial delivery: {e}")
                result = result.merge(DispatchResult(results=[
                    AddressResult(address=token, success=False, error_code=UNAVAILABLE)
                    for token in batch
                ]))
                continue

            result = result.merge(self._to_result(batch, response))

        if result.failure_count:
            log_warning(f"[FCM] {result.failure_count}/{len(tokens)} token(s) failed")
        return result

    @staticmethod
    def _to_result(batch: List[str], response: Any) -> DispatchResult:
        results = []
        for token, send_response in zip(batch, response.responses):
            if send_response.success:
                results.append(AddressResult(
                    address=token, success=True, message_id=send_response.message_id,
                ))
            else:
                results.append(AddressResult(
                    address=token, success=False, error_code=classify_error(send_response.exception),
                ))
        return DispatchResult(results=results)


__all__ = ["FcmPushGateway", "classify_error", "initialize_firebase", "FIREBASE_APP_NAME"]
