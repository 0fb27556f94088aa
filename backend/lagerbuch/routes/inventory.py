from __future__ import annotations
from flask import Blueprint, current_app, request
from lagerbuch.constants.permissions import RES_INVENTORY
from lagerbuch.decorators.auth import require_permission
from lagerbuch.services.articles import ArticleService
from lagerbuch.services.dedup import get_dedup
from lagerbuch.services.movements import MovementBookingService, MovementFilters, MovementQueryService
from lagerbuch.services.policy import get_access, resolve_acting_employee
from lagerbuch.services.references import load_references
from lagerbuch.services.stock_report import SheetStockReportSource, StockReportService
from lagerbuch.sheets import get_inventory_book
from lagerbuch.utils.listing import make_cached_response, page_params
from lagerbuch.utils.validation import pick

inv_bp = Blueprint('inventory', __name__)


@inv_bp.get('/items')
@require_permission(RES_INVENTORY, 'view')
def list_items():
    items = ArticleService(get_inventory_book()).list_items()
    return make_cached_response({'success': True, 'items': items})


@inv_bp.post('/items')
@require_permission(RES_INVENTORY, 'edit')
def create_item():
    data = request.get_json(silent=True) or {}
    new_id = ArticleService(get_inventory_book()).create_item(data)
    return {'success': True, 'id': new_id}, 201


@inv_bp.get('/categories')
@require_permission(RES_INVENTORY, 'view')
def list_categories():
    categories = ArticleService(get_inventory_book()).list_categories()
    return make_cached_response({'success': True, 'categories': categories})


@inv_bp.get('/references')
@require_permission(RES_INVENTORY, 'view')
def references():
    refs = load_references(get_inventory_book())
    return make_cached_response({'success': True, 'references': refs.as_dict()})


@inv_bp.post('/movements')
@require_permission(RES_INVENTORY, 'edit')
def create_movement():
    data = request.get_json(silent=True) or {}
    employee_id = resolve_acting_employee(pick(data, 'employeeId', 'mitarbeiter_id'))
    service = MovementBookingService(
        get_inventory_book(),
        get_access().evaluator,
        get_dedup('movements'),
        tz_name=current_app.config['SHEET_TIMEZONE'],
    )
    result = service.create_movement(employee_id, data)
    return result.to_json(), (200 if result.duplicate else 201)


@inv_bp.get('/movements')
@require_permission(RES_INVENTORY, 'view')
def list_movements():
    filters = MovementFilters.from_args(request.args)
    page, limit = page_params()
    listing = MovementQueryService(get_inventory_book()).list_movements(filters, page, limit)
    return make_cached_response({
        'success': True,
        'movements': listing['items'],
        'pagination': listing['pagination'],
    })


@inv_bp.get('/stock')
@require_permission(RES_INVENTORY, 'view')
def stock():
    page, limit = page_params()
    service = StockReportService(SheetStockReportSource(get_inventory_book()))
    payload = service.report(request.args.get('location'), request.args.get('article'), page, limit)
    return make_cached_response(payload)
