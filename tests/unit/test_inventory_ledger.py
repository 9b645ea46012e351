"""
Unit tests for the inventory ledger's conditional updates.
"""

import pytest

from marketplace_checkout.database import unit_of_work
from marketplace_checkout.exceptions import ValidationError
from marketplace_checkout.services.inventory_ledger import InventoryLedger


class TestDecrementIfAvailable:

    def test_decrements_when_enough_stock(self, session, make_product, inspect_db):
        product = make_product(quantity=5)

        with unit_of_work(session):
            assert InventoryLedger(session).decrement_if_available(product.id, 2) is True

        assert inspect_db.stock(product.id) == 3

    def test_can_take_the_last_unit(self, session, make_product, inspect_db):
        product = make_product(quantity=1)

        with unit_of_work(session):
            assert InventoryLedger(session).decrement_if_available(product.id, 1) is True

        assert inspect_db.stock(product.id) == 0

    def test_refuses_without_touching_stock(self, session, make_product, inspect_db):
        product = make_product(quantity=1)

        with unit_of_work(session):
            assert InventoryLedger(session).decrement_if_available(product.id, 2) is False

        assert inspect_db.stock(product.id) == 1

    def test_unknown_product_is_refused(self, session):
        with unit_of_work(session):
            assert InventoryLedger(session).decrement_if_available(999999, 1) is False

    def test_second_decrement_for_last_unit_fails(self, database, make_product, inspect_db):
        """Two sessions competing for the last unit: only one row update matches."""
        product = make_product(quantity=1)
        first, second = database.new_session(), database.new_session()
        try:
            with unit_of_work(first):
                assert InventoryLedger(first).decrement_if_available(product.id, 1) is True
            with unit_of_work(second):
                assert InventoryLedger(second).decrement_if_available(product.id, 1) is False
        finally:
            first.close()
            second.close()

        assert inspect_db.stock(product.id) == 0

    @pytest.mark.parametrize('qty', [0, -1, True, 1.5])
    def test_rejects_non_positive_quantities(self, session, make_product, qty):
        product = make_product(quantity=5)
        with pytest.raises(ValidationError):
            InventoryLedger(session).decrement_if_available(product.id, qty)


class TestIncrement:

    def test_returns_units_to_stock(self, session, make_product, inspect_db):
        product = make_product(quantity=0)

        with unit_of_work(session):
            assert InventoryLedger(session).increment(product.id, 4) is True

        assert inspect_db.stock(product.id) == 4

    def test_unknown_product(self, session):
        with unit_of_work(session):
            assert InventoryLedger(session).increment(999999, 1) is False

    def test_rolled_back_with_its_transaction(self, session, make_product, inspect_db):
        product = make_product(quantity=2)

        with pytest.raises(RuntimeError):
            with unit_of_work(session):
                InventoryLedger(session).increment(product.id, 3)
                raise RuntimeError('abort')

        assert inspect_db.stock(product.id) == 2
