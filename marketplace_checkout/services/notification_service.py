"""
Checkout notifications over Redis pub/sub.

Fire-and-forget: publishing happens on a small worker pool after the
checkout transaction has committed, and a failure is logged, never raised
back into the request.
"""

import atexit
import json
import logging
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from typing import Any, Dict, Optional

import redis
from redis.exceptions import RedisError
from flask import Flask

from marketplace_checkout.utils.number_format import quantize_money, to_minor_unit

logger = logging.getLogger(__name__)


def build_checkout_event(order, minor_unit=Decimal('0.01')) -> Dict[str, Any]:
    """Serialize the facts downstream consumers need about a committed order."""
    return {
        'event': 'checkout.completed',
        'order_id': order.id,
        'buyer_id': order.buyer_id,
        'total_amount': str(quantize_money(order.total_amount, minor_unit)),
        'seller_ids': sorted({item.seller_id for item in order.items}),
        'item_count': sum(item.quantity for item in order.items),
    }


class CheckoutNotifier:
    """
    Publishes ``checkout.completed`` events.

    Channel: NOTIFICATION_CHANNEL (default ``checkout.completed``).
    """

    def __init__(self, app: Optional[Flask] = None):
        self.client: Optional[redis.Redis] = None
        self._enabled: bool = False
        self._channel: str = 'checkout.completed'
        self._minor_unit: Decimal = Decimal('0.01')
        self._executor: Optional[ThreadPoolExecutor] = None

        if app:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        """Initialize Redis client from Flask app config."""
        self._enabled = app.config.get('NOTIFICATIONS_ENABLED', True)
        self._channel = app.config.get('NOTIFICATION_CHANNEL', 'checkout.completed')
        self._minor_unit = to_minor_unit(app.config.get('CURRENCY_MINOR_UNIT', '0.01'))
        redis_url = app.config.get('REDIS_URL', 'redis://redis:6379/0')

        if not self._enabled:
            logger.info("[NOTIFY] Notifications are DISABLED via config")
            return

        self.client = redis.from_url(
            redis_url,
            decode_responses=True,
            socket_connect_timeout=3,
            socket_timeout=3,
            retry_on_timeout=True,
            health_check_interval=30
        )
        self._executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix='checkout-notify')
        atexit.register(self.shutdown)
        logger.info(f"[NOTIFY] publishing to channel '{self._channel}' on {redis_url}")

    @property
    def enabled(self) -> bool:
        return self._enabled and self.client is not None and self._executor is not None

    def publish_checkout_completed(self, order) -> bool:
        """Queue the event for publishing. Returns False when notifications are off."""
        if not self.enabled:
            return False
        event = build_checkout_event(order, self._minor_unit)
        self._executor.submit(self._publish, event)
        return True

    def _publish(self, event: Dict[str, Any]) -> None:
        try:
            receivers = self.client.publish(self._channel, json.dumps(event))
            logger.info(f"[NOTIFY] order {event['order_id']} published to {receivers} subscriber(s)")
        except RedisError as e:
            logger.warning(f"[NOTIFY] publish failed for order {event['order_id']}: {e}")

    def shutdown(self) -> None:
        """Stop the worker pool; queued events are still published."""
        if self._executor:
            self._executor.shutdown(wait=True)
            self._executor = None


def init_notifier(app: Flask) -> CheckoutNotifier:
    """Create the notifier for this app and register it as an extension."""
    notifier = CheckoutNotifier(app)
    app.extensions['notifier'] = notifier
    return notifier


def get_notifier(app: Flask) -> CheckoutNotifier:
    """Get notifier instance registered on the app."""
    notifier = app.extensions.get('notifier')
    if notifier is None:
        raise RuntimeError("Notifier not initialized.")
    return notifier
