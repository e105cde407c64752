"""POS blueprint: sell goods, receipts and lookups - Multi-Tenant."""
from typing import Tuple
from flask import Blueprint, request, jsonify, g, current_app, Response
from shoppos.database import get_session
from shoppos.exceptions import PosError, ValidationError
from shoppos.middleware import require_login, require_business
from shoppos.services.sale_request import parse_sale_request
from shoppos.services.sales_service import complete_sale, get_receipt, list_sales
from shoppos.services.stock_service import search_shop_goods
from shoppos.services.debt_service import search_customers
from shoppos.blueprints.metrics import record_sale_completed, record_sale_rejected

pos_bp = Blueprint('pos', __name__, url_prefix='/pos')


@pos_bp.route('/sell', methods=['POST'])
@require_login
@require_business
def sell() -> Tuple[Response, int]:
    """Complete a sale from a cart (or legacy single-item) JSON body."""
    db_session = get_session()

    try:
        payload = request.get_json(silent=True)
        if payload is None:
            raise ValidationError('Request body must be JSON')

        sale_request = parse_sale_request(payload)
        result = complete_sale(sale_request, db_session, g.business_id, g.user.id)
    except PosError as e:
        record_sale_rejected(e)
        current_app.logger.warning(f"Sale rejected for user {g.user.id}: {e.message}")
        raise

    record_sale_completed(result)
    return jsonify({'message': 'Sale completed', **result.to_dict()}), 201


@pos_bp.route('/search', methods=['GET'])
@require_login
@require_business
def search_goods() -> Response:
    """Search in-stock shop goods by name."""
    db_session = get_session()
    goods = search_shop_goods(
        db_session,
        g.business_id,
        request.args.get('q', ''),
        shop_id=request.args.get('shopId', type=int),
        limit=current_app.config.get('POS_SEARCH_LIMIT', 20)
    )
    return jsonify(goods)


@pos_bp.route('/receipt/<int:sale_id>', methods=['GET'])
@require_login
@require_business
def receipt(sale_id: int) -> Response:
    """Receipt for a sale of the operator's business."""
    db_session = get_session()
    return jsonify(get_receipt(db_session, sale_id, g.business_id))


@pos_bp.route('/customers/search', methods=['GET'])
@require_login
@require_business
def customers_search() -> Response:
    """Search customers by name or phone, with outstanding debt."""
    db_session = get_session()
    customers = search_customers(
        db_session,
        g.business_id,
        request.args.get('q', ''),
        limit=current_app.config.get('POS_CUSTOMER_SEARCH_LIMIT', 10)
    )
    return jsonify(customers)


@pos_bp.route('/sales', methods=['GET'])
@require_login
@require_business
def sales() -> Response:
    """List the business's sales, newest first."""
    db_session = get_session()
    return jsonify(list_sales(db_session, g.business_id, request.args.get('q', '')))
