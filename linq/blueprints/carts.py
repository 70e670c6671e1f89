"""Carts blueprint - in-progress carts held in Redis."""
from flask import Blueprint

from linq.api.service import api_view
from linq.exceptions import BadRequestError
from linq.models import Sale
from linq.services.cart_service import CartStore
from linq.utils.serialization import parse_uuid

carts_bp = Blueprint('carts', __name__, url_prefix='/api/v1')


@carts_bp.route('/users/<user_id>/carts', methods=['POST'])
@api_view
def create_user_cart(api, user_id):
    cart = CartStore().create_user_cart(user_id)
    api.return_json(cart.to_dict())


@carts_bp.route('/users/<user_id>/carts', methods=['GET'])
@api_view
def user_carts(api, user_id):
    carts = CartStore().get_user_carts(user_id)
    api.return_json([cart.to_dict() for cart in carts])


@carts_bp.route('/carts/<sale_id>/items', methods=['POST'])
@api_view
def add_cart_item(api, sale_id):
    """Add one product; body is ``{"data": {"product": "<uuid>"}}``."""
    data = api.decode_body().get('data')
    if not isinstance(data, dict) or 'product' not in data:
        raise BadRequestError('data.product is required')
    cart = Sale.stub(parse_uuid(sale_id, 'uid'))
    items = CartStore().add_cart_item(cart, data['product'])
    api.return_json({'uid': cart.uid, 'items': [str(i) for i in items]})


@carts_bp.route('/carts/<sale_id>/items', methods=['GET'])
@api_view
def cart_items(api, sale_id):
    cart = Sale.stub(parse_uuid(sale_id, 'uid'))
    items = CartStore().get_cart_items(cart)
    api.return_json({'uid': cart.uid, 'items': [str(i) for i in items]})
