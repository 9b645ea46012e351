"""Request helpers shared by the JSON blueprints."""
from flask import current_app, request

from marketplace_checkout.exceptions import ValidationError
from marketplace_checkout.utils.number_format import to_minor_unit


def get_json_body() -> dict:
    """Return the JSON object body or raise ValidationError."""
    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object.')
    return data


def first_present(data: dict, *keys):
    """Value of the first key present in ``data`` (accepts camelCase and snake_case)."""
    for key in keys:
        if key in data:
            return data[key]
    return None


def configured_minor_unit():
    return to_minor_unit(current_app.config.get('CURRENCY_MINOR_UNIT', '0.01'))
