"""
Unit tests for checkout notifications.
"""

import json
from decimal import Decimal
from types import SimpleNamespace

from flask import Flask
from redis.exceptions import ConnectionError as RedisConnectionError

from marketplace_checkout.services import notification_service
from marketplace_checkout.services.notification_service import (
    CheckoutNotifier, build_checkout_event, get_notifier
)


class FakeRedis:
    def __init__(self, fail=False):
        self.fail = fail
        self.published = []

    def publish(self, channel, message):
        if self.fail:
            raise RedisConnectionError('redis down')
        self.published.append((channel, json.loads(message)))
        return 1


def _order():
    items = [
        SimpleNamespace(seller_id=7, quantity=2),
        SimpleNamespace(seller_id=3, quantity=1),
        SimpleNamespace(seller_id=7, quantity=1),
    ]
    return SimpleNamespace(id=42, buyer_id=5, total_amount=Decimal('30.00000000'), items=items)


class TestBuildCheckoutEvent:

    def test_event_fields(self):
        event = build_checkout_event(_order())

        assert event == {
            'event': 'checkout.completed',
            'order_id': 42,
            'buyer_id': 5,
            'total_amount': '30.00',
            'seller_ids': [3, 7],
            'item_count': 4,
        }


class TestCheckoutNotifier:

    def test_disabled_by_config(self, app):
        """Test config turns notifications off; nothing is queued."""
        notifier = CheckoutNotifier(app)

        assert notifier.enabled is False
        assert notifier.publish_checkout_completed(_order()) is False

    def test_publish_writes_to_channel(self):
        notifier = CheckoutNotifier()
        notifier.client = FakeRedis()

        notifier._publish(build_checkout_event(_order()))

        channel, payload = notifier.client.published[0]
        assert channel == 'checkout.completed'
        assert payload['order_id'] == 42

    def test_publish_failure_is_logged_not_raised(self, caplog):
        notifier = CheckoutNotifier()
        notifier.client = FakeRedis(fail=True)

        notifier._publish(build_checkout_event(_order()))

        assert 'publish failed for order 42' in caplog.text

    def test_registered_on_app(self, app, notifier):
        assert get_notifier(app) is notifier

    def test_worker_pool_stopped_at_exit(self, monkeypatch):
        registered = []
        monkeypatch.setattr(notification_service.atexit, 'register', registered.append)
        flask_app = Flask(__name__)
        flask_app.config.update(NOTIFICATIONS_ENABLED=True, REDIS_URL='redis://localhost:6379/0')

        notifier = CheckoutNotifier(flask_app)
        assert notifier.enabled is True
        assert registered == [notifier.shutdown]

        registered[0]()

        assert notifier.enabled is False
        assert notifier.publish_checkout_completed(_order()) is False

    def test_event_total_follows_configured_minor_unit(self):
        event = build_checkout_event(_order(), minor_unit=Decimal('1'))
        assert event['total_amount'] == '30'
