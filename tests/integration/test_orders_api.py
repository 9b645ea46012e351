"""
Integration tests for order reads, status changes and deletion.
"""

import pytest


@pytest.fixture
def place_order(client, addresses, put_in_cart):
    """Factory: run a real checkout for ``buyer`` and return the order JSON."""
    def _place(buyer, product, quantity=1, buyer_addresses=None):
        put_in_cart(buyer, product, quantity)
        shipping_id, billing_id = buyer_addresses or addresses
        response = client.post('/orders/checkout', json={
            'buyerId': buyer.id, 'shippingAddressId': shipping_id, 'billingAddressId': billing_id
        })
        assert response.status_code == 201
        return response.get_json()['order']
    return _place


class TestReadOrders:

    def test_get_order(self, client, buyer, make_product, place_order):
        order = place_order(buyer, make_product(), 2)

        response = client.get(f"/orders/{order['id']}")

        assert response.status_code == 200
        order_json = response.get_json()['order']
        assert order_json['items'][0]['quantity'] == 2
        assert order_json['items'][0]['unitPrice'] == '10.00'
        assert order_json['totalAmount'] == '20.00'

    def test_get_missing_order(self, client):
        response = client.get('/orders/999999')

        assert response.status_code == 404
        assert response.get_json()['kind'] == 'NOT_FOUND'

    def test_list_by_buyer(self, client, buyer, other_buyer, make_addresses, make_product, place_order):
        mine = place_order(buyer, make_product())
        place_order(other_buyer, make_product(), buyer_addresses=make_addresses(other_buyer))

        response = client.get(f'/orders?buyer_id={buyer.id}')

        orders = response.get_json()['orders']
        assert [o['id'] for o in orders] == [mine['id']]

    def test_list_by_seller(self, client, buyer, make_user, make_product, place_order):
        other_seller = make_user('seller2')
        place_order(buyer, make_product())
        theirs = place_order(buyer, make_product(owner=other_seller))

        response = client.get(f'/orders?seller_id={other_seller.id}')

        assert [o['id'] for o in response.get_json()['orders']] == [theirs['id']]

    def test_list_newest_first_with_paging(self, client, buyer, make_product, place_order):
        ids = [place_order(buyer, make_product())['id'] for _ in range(3)]

        page = client.get(f'/orders?buyer_id={buyer.id}&limit=2').get_json()
        rest = client.get(f'/orders?buyer_id={buyer.id}&limit=2&offset=2').get_json()

        assert [o['id'] for o in page['orders']] == ids[::-1][:2]
        assert [o['id'] for o in rest['orders']] == ids[:1]
        assert page['limit'] == 2

    def test_list_by_status(self, client, buyer, make_product, place_order):
        order = place_order(buyer, make_product())
        client.put(f"/orders/{order['id']}/status", json={'order_status': 'confirmed'})

        confirmed = client.get('/orders?order_status=confirmed').get_json()['orders']
        pending = client.get('/orders?order_status=pending').get_json()['orders']

        assert [o['id'] for o in confirmed] == [order['id']]
        assert pending == []

    @pytest.mark.parametrize('query', ['limit=0', 'limit=500', 'offset=-1', 'order_status=lost'])
    def test_list_bad_query(self, client, query):
        response = client.get(f'/orders?{query}')
        assert response.status_code == 400


class TestOrderStatus:

    def test_confirm_and_pay(self, client, buyer, make_product, place_order):
        order = place_order(buyer, make_product())

        response = client.put(f"/orders/{order['id']}/status", json={
            'order_status': 'confirmed', 'payment_status': 'paid'
        })

        assert response.status_code == 200
        data = response.get_json()['order']
        assert data['orderStatus'] == 'confirmed'
        assert data['paymentStatus'] == 'paid'

    def test_cancel_returns_stock(self, client, buyer, make_product, place_order, inspect_db):
        product = make_product(quantity=5)
        order = place_order(buyer, product, 2)
        assert inspect_db.stock(product.id) == 3

        response = client.put(f"/orders/{order['id']}/status", json={'order_status': 'cancelled'})

        assert response.status_code == 200
        assert inspect_db.stock(product.id) == 5

    def test_refund_after_shipping_keeps_stock(self, client, buyer, make_product, place_order, inspect_db):
        product = make_product(quantity=5)
        order = place_order(buyer, product, 2)
        url = f"/orders/{order['id']}/status"

        client.put(url, json={'order_status': 'confirmed'})
        client.put(url, json={'order_status': 'shipped'})
        response = client.put(url, json={'order_status': 'refunded', 'payment_status': 'refunded'})

        assert response.status_code == 200
        assert inspect_db.stock(product.id) == 3

    def test_cancelled_order_cannot_move(self, client, buyer, make_product, place_order, inspect_db):
        product = make_product(quantity=5)
        order = place_order(buyer, product, 1)
        url = f"/orders/{order['id']}/status"
        client.put(url, json={'order_status': 'cancelled'})

        response = client.put(url, json={'order_status': 'confirmed'})

        assert response.status_code == 409
        assert response.get_json()['kind'] == 'CONFLICT'
        assert inspect_db.stock(product.id) == 5

    def test_second_cancel_is_a_no_op(self, client, buyer, make_product, place_order, inspect_db):
        product = make_product(quantity=5)
        order = place_order(buyer, product, 1)
        url = f"/orders/{order['id']}/status"

        client.put(url, json={'order_status': 'cancelled'})
        response = client.put(url, json={'order_status': 'cancelled'})

        assert response.status_code == 200
        assert inspect_db.stock(product.id) == 5

    @pytest.mark.parametrize('body', [{}, {'order_status': 'lost'}, {'payment_status': 'maybe'}])
    def test_invalid_body(self, client, buyer, make_product, place_order, body):
        order = place_order(buyer, make_product())

        response = client.put(f"/orders/{order['id']}/status", json=body)

        assert response.status_code == 400


class TestDeleteOrder:

    def test_only_cancelled_orders(self, client, buyer, make_product, place_order, inspect_db):
        order = place_order(buyer, make_product())

        response = client.delete(f"/orders/{order['id']}")

        assert response.status_code == 400
        assert inspect_db.order_count() == 1

    def test_delete_cancelled(self, client, buyer, make_product, place_order, inspect_db):
        order = place_order(buyer, make_product())
        client.put(f"/orders/{order['id']}/status", json={'order_status': 'cancelled'})

        response = client.delete(f"/orders/{order['id']}")

        assert response.status_code == 200
        assert response.get_json()['orderId'] == order['id']
        assert inspect_db.order_count() == 0
        assert inspect_db.order_item_count() == 0
