"""Cart blueprint - JSON API over the buyer's cart."""
from flask import Blueprint, jsonify

from marketplace_checkout.database import get_session, unit_of_work
from marketplace_checkout.services import cart_service
from marketplace_checkout.utils.http import configured_minor_unit, first_present, get_json_body
from marketplace_checkout.utils.number_format import parse_id, parse_quantity

cart_bp = Blueprint('cart', __name__, url_prefix='/cart')


def _parse_line_request(require_quantity=True, allow_zero=False):
    data = get_json_body()
    buyer_id = parse_id(first_present(data, 'buyerId', 'userId', 'buyer_id'), 'buyerId')
    product_id = parse_id(first_present(data, 'productId', 'product_id'), 'productId')
    qty = None
    if require_quantity:
        qty = parse_quantity(data.get('quantity'), 'quantity', allow_zero=allow_zero)
    return buyer_id, product_id, qty


@cart_bp.route('/<buyer_id>', methods=['GET'])
def get_cart(buyer_id):
    """Cart lines joined with live product, image and seller, plus totals."""
    buyer_id = parse_id(buyer_id, 'buyerId')
    minor_unit = configured_minor_unit()
    snapshot = cart_service.get_snapshot(get_session(), buyer_id, minor_unit)
    return jsonify(snapshot.to_dict(minor_unit))


@cart_bp.route('/count/<buyer_id>', methods=['GET'])
def cart_count(buyer_id):
    buyer_id = parse_id(buyer_id, 'buyerId')
    return jsonify({'count': cart_service.count_items(get_session(), buyer_id)})


@cart_bp.route('/add', methods=['POST'])
def add_to_cart():
    """Add a product; additive when the line already exists."""
    buyer_id, product_id, qty = _parse_line_request()
    db_session = get_session()

    with unit_of_work(db_session):
        line, count = cart_service.add_item(db_session, buyer_id, product_id, qty)
        body = {'cartItem': line.to_dict(), 'cartCount': count}

    return jsonify(body), 201


@cart_bp.route('/update', methods=['PUT'])
def update_cart_item():
    """Overwrite a line's quantity; 0 removes the line."""
    buyer_id, product_id, qty = _parse_line_request(allow_zero=True)
    db_session = get_session()

    with unit_of_work(db_session):
        count = cart_service.update_item(db_session, buyer_id, product_id, qty)

    return jsonify({'cartCount': count})


@cart_bp.route('/remove', methods=['DELETE'])
def remove_cart_item():
    buyer_id, product_id, _ = _parse_line_request(require_quantity=False)
    db_session = get_session()

    with unit_of_work(db_session):
        count = cart_service.remove_item(db_session, buyer_id, product_id)

    return jsonify({'cartCount': count})


@cart_bp.route('/clear/<buyer_id>', methods=['DELETE'])
def clear_cart(buyer_id):
    buyer_id = parse_id(buyer_id, 'buyerId')
    db_session = get_session()

    with unit_of_work(db_session):
        cart_service.clear_cart(db_session, buyer_id)

    return jsonify({'cartCount': 0})
