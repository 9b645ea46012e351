"""Orders blueprint - checkout plus read/status endpoints for orders."""
from flask import Blueprint, current_app, jsonify, request

from marketplace_checkout.blueprints.metrics import record_checkout_outcome
from marketplace_checkout.database import get_session
from marketplace_checkout.exceptions import CheckoutError, ValidationError
from marketplace_checkout.services import order_service
from marketplace_checkout.services.checkout_service import CheckoutOrchestrator, CheckoutState
from marketplace_checkout.services.notification_service import get_notifier
from marketplace_checkout.utils.http import configured_minor_unit, first_present, get_json_body
from marketplace_checkout.utils.number_format import parse_id, parse_quantity

orders_bp = Blueprint('orders', __name__, url_prefix='/orders')


@orders_bp.route('/checkout', methods=['POST'])
def checkout():
    """
    Convert the buyer's cart into an order.

    201 {order} on success; 400/404 with kind, message and the offending
    product_id on rejection or rollback.
    """
    data = get_json_body()
    buyer_id = parse_id(first_present(data, 'buyerId', 'buyer_id'), 'buyerId')
    shipping_address_id = parse_id(
        first_present(data, 'shippingAddressId', 'shipping_address_id'), 'shippingAddressId'
    )
    billing_address_id = parse_id(
        first_present(data, 'billingAddressId', 'billing_address_id'), 'billingAddressId'
    )
    payment_method = first_present(data, 'paymentMethod', 'payment_method')
    if payment_method is not None and not isinstance(payment_method, str):
        raise ValidationError('paymentMethod must be a string.', payload={'field': 'paymentMethod'})

    orchestrator = CheckoutOrchestrator(
        get_session(),
        notifier=get_notifier(current_app),
        minor_unit=configured_minor_unit(),
        timeout_ms=current_app.config.get('CHECKOUT_STATEMENT_TIMEOUT_MS'),
    )

    try:
        order = orchestrator.checkout(
            buyer_id, shipping_address_id, billing_address_id, payment_method=payment_method
        )
    except CheckoutError as e:
        record_checkout_outcome(orchestrator.state.value, e.kind)
        raise

    record_checkout_outcome(CheckoutState.COMMITTED.value)
    return jsonify({'order': order.to_dict(minor_unit=configured_minor_unit())}), 201


@orders_bp.route('', methods=['GET'])
def list_orders():
    """List orders filtered by buyer_id, seller_id, order_status, payment_status."""
    args = request.args
    default_limit = current_app.config.get('ORDERS_DEFAULT_PAGE_SIZE', 50)
    max_limit = current_app.config.get('ORDERS_MAX_PAGE_SIZE', 200)

    limit = parse_quantity(args.get('limit', default_limit), 'limit')
    offset = parse_quantity(args.get('offset', 0), 'offset', allow_zero=True)
    if limit > max_limit:
        raise ValidationError(f'limit must be at most {max_limit}.', payload={'field': 'limit'})

    buyer_id = parse_id(args['buyer_id'], 'buyer_id') if 'buyer_id' in args else None
    seller_id = parse_id(args['seller_id'], 'seller_id') if 'seller_id' in args else None

    minor_unit = configured_minor_unit()
    orders = order_service.list_orders(
        get_session(),
        buyer_id=buyer_id,
        seller_id=seller_id,
        order_status=args.get('order_status'),
        payment_status=args.get('payment_status'),
        limit=limit,
        offset=offset,
    )
    return jsonify({
        'orders': [o.to_dict(minor_unit=minor_unit) for o in orders],
        'limit': limit,
        'offset': offset,
    })


@orders_bp.route('/<order_id>', methods=['GET'])
def get_order(order_id):
    order = order_service.get_order(get_session(), parse_id(order_id, 'orderId'))
    return jsonify({'order': order.to_dict(minor_unit=configured_minor_unit())})


@orders_bp.route('/<order_id>/status', methods=['PUT'])
def update_order_status(order_id):
    """Change order_status and/or payment_status of an order."""
    order_id = parse_id(order_id, 'orderId')
    data = get_json_body()
    order = order_service.update_order_status(
        get_session(),
        order_id,
        order_status=first_present(data, 'order_status', 'orderStatus'),
        payment_status=first_present(data, 'payment_status', 'paymentStatus'),
    )
    return jsonify({'order': order.to_dict(minor_unit=configured_minor_unit())})


@orders_bp.route('/<order_id>', methods=['DELETE'])
def delete_order(order_id):
    """Delete a cancelled order."""
    order_id = parse_id(order_id, 'orderId')
    order_service.delete_order(get_session(), order_id)
    return jsonify({'message': 'Order deleted successfully.', 'orderId': order_id})
