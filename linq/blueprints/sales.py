"""Sales blueprint - JSON API over the Sale aggregate repository."""
from flask import Blueprint, current_app

from linq.api.service import RequestDataIds, api_view
from linq.exceptions import BadRequestError, NotFoundError
from linq.models import Sale
from linq.repositories.sale_repository import SaleRepository
from linq.utils.paging import Paging
from linq.utils.serialization import parse_uuid

sales_bp = Blueprint('sales', __name__, url_prefix='/api/v1/sales')

# NOT NULL columns: may be omitted, never sent empty
REQUIRED_FIELDS = ('discount', 'discount_type', 'total', 'total_payment')


def _sale_payload(api) -> dict:
    body = api.decode_body()
    data = body.get('data')
    if not isinstance(data, dict):
        raise BadRequestError('data must be a sale object')
    for name in REQUIRED_FIELDS:
        if name in data and data[name] in (None, ''):
            raise BadRequestError(f"{name} cannot be empty")
    return data


@sales_bp.route('', methods=['GET'])
@api_view
def list_sales(api):
    """List sales (query: start, length, keyword, order, orderDir)."""
    paging = Paging.from_args(api.request.args, current_app.config.get('DEFAULT_PAGE_LENGTH'))
    sales = SaleRepository().get_all(paging)
    api.return_json([sale.to_dict() for sale in sales])


@sales_bp.route('/count', methods=['GET'])
@api_view
def count_sales(api):
    api.return_json({'count': SaleRepository().count_all()})


@sales_bp.route('/<sale_id>', methods=['GET'])
@api_view
def get_sale(api, sale_id):
    api.return_json(SaleRepository().get(sale_id).to_dict())


@sales_bp.route('/<sale_id>/exists', methods=['GET'])
@api_view
def sale_exists(api, sale_id):
    api.return_json({'exists': SaleRepository().is_exist(sale_id)})


@sales_bp.route('', methods=['POST'])
@api_view
def create_sale(api):
    """Create a sale; the identifier is always assigned server-side."""
    sale = Sale.from_dict({k: v for k, v in _sale_payload(api).items() if k != 'uid'})
    SaleRepository().insert(sale)
    api.return_json(sale.to_dict())


@sales_bp.route('/<sale_id>', methods=['PUT'])
@api_view
def update_sale(api, sale_id):
    """Update sale fields; omitted fields keep their stored value."""
    repo = SaleRepository()
    current = repo.get(sale_id).to_dict()
    current.pop('detail', None)
    changes = {k: v for k, v in _sale_payload(api).items() if k not in ('uid', 'detail')}
    sale = Sale.from_dict({**current, **changes})
    api.return_json(repo.update(sale).to_dict())


@sales_bp.route('/<sale_id>', methods=['DELETE'])
@api_view
def delete_sale(api, sale_id):
    repo = SaleRepository()
    uid = parse_uuid(sale_id, 'uid')
    if not repo.is_exist(uid):
        raise NotFoundError(f"sale {uid} not found")
    repo.delete(Sale.stub(uid))
    api.return_json({'uid': str(uid), 'deleted': True})


@sales_bp.route('/delete', methods=['POST'])
@api_view
def delete_sales(api):
    """Bulk soft delete; body is ``{"data": {"ids": [...]}, "token": ...}``."""
    request_data = api.decode_body(RequestDataIds)
    SaleRepository().delete_bulk(request_data.ids)
    api.return_json({'ids': [str(i) for i in request_data.ids], 'deleted': True})
