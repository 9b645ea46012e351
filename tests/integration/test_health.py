"""
Integration tests for the health and metrics endpoints.
"""


def test_health(client):
    response = client.get('/health')

    assert response.status_code == 200
    assert response.get_json() == {'status': 'healthy', 'database': 'connected'}


def test_unknown_route_is_json(client):
    response = client.get('/nowhere')

    assert response.status_code == 404
    assert response.get_json()['kind'] == 'NOT_FOUND'


def test_metrics_count_checkout_outcomes(client, buyer, addresses):
    client.post('/orders/checkout', json={
        'buyerId': buyer.id, 'shippingAddressId': addresses[0], 'billingAddressId': addresses[1]
    })

    body = client.get('/metrics').get_data(as_text=True)

    assert 'checkout_attempts_total{outcome="rejected"}' in body
    assert 'http_requests_total' in body
