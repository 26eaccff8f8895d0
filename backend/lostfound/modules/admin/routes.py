from __future__ import annotations

from flask import Blueprint, jsonify, request, g, current_app
from marshmallow import ValidationError
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from ...extensions import db
from ...models.claim import Claim
from ...models.enums import CLAIM_STATUSES, FOUND_ITEM_STATUSES, LOST_ITEM_STATUSES
from ...models.found_item import FoundItem
from ...models.lost_item import LostItem
from ...models.user import User
from ...schemas import first_error
from ...schemas.item import FoundItemSchema, LostItemSchema, StatusUpdateSchema
from ...schemas.user import UserSchema

bp = Blueprint("admin", __name__, url_prefix="/admin")

_found_schema = FoundItemSchema()
_lost_schema = LostItemSchema()
_user_schema = UserSchema()

MAX_OFFSET = 1_000_000


@bp.before_request
def _require_admin():
    u = getattr(g, "current_user", None)
    if not u:
        return jsonify({"error": "Authentication required"}), 401
    if not u.is_admin:
        return jsonify({"error": "Admin access required"}), 403


def _json_error(message: str, status: int = 400):
    return jsonify({"error": message}), status


def _status_from_body(allowed: tuple[str, ...]) -> str:
    data = StatusUpdateSchema().load(request.get_json(silent=True) or {})
    if data["status"] not in allowed:
        raise ValidationError({"status": [f"Invalid status. Use one of: {', '.join(allowed)}."]})
    return data["status"]


@bp.get("/found-items")
def admin_list_found_items():
    """All found items, newest first.

    Query params:
      - filter: all | submitted (delivered to the office) | not_submitted | claimed
      - q: substring of description, location or reporter name
    """
    flt = (request.args.get("filter") or "all").strip().lower()
    q = FoundItem.query
    if flt == "submitted":
        q = q.filter(FoundItem.submitted_to_office.is_(True))
    elif flt == "not_submitted":
        q = q.filter(FoundItem.submitted_to_office.is_(False))
    elif flt == "claimed":
        q = q.filter(FoundItem.status == "claimed")
    elif flt != "all":
        return _json_error("Invalid filter", 400)

    term = (request.args.get("q") or "").strip()
    if term:
        like = f"%{term}%"
        q = q.filter(
            db.or_(
                FoundItem.description.ilike(like),
                FoundItem.location_found.ilike(like),
                FoundItem.reporter_name.ilike(like),
            )
        )
    items = q.order_by(FoundItem.created_at.desc(), FoundItem.id.desc()).all()
    return jsonify({"items": _found_schema.dump(items, many=True), "count": len(items)})


@bp.patch("/found-items/<int:item_id>")
def admin_update_found_item(item_id: int):
    """Direct status correction. Claims attached to the item are left as they are."""
    item = db.session.get(FoundItem, item_id)
    if not item:
        return _json_error("Item not found", 404)
    try:
        status = _status_from_body(FOUND_ITEM_STATUSES)
    except ValidationError as e:
        return _json_error(first_error(e))

    prev = item.status
    item.status = status
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to update found item %s", item_id)
        return _json_error("Failed to update item status.", 500)
    current_app.logger.info("Found item %s status %s -> %s by %s", item_id, prev, status, g.current_user.email)
    return jsonify({"item": _found_schema.dump(item)})


@bp.get("/lost-items")
def admin_list_lost_items():
    """All lost items, newest first.

    Query params:
      - filter: all | not_found (includes freshly reported items) | found | claimed
      - q: substring of description, location, reporter name or item name
    """
    flt = (request.args.get("filter") or "all").strip().lower()
    q = LostItem.query
    if flt == "not_found":
        q = q.filter(LostItem.status.in_(["not_found", "reported"]))
    elif flt in ("found", "claimed"):
        q = q.filter(LostItem.status == flt)
    elif flt != "all":
        return _json_error("Invalid filter", 400)

    term = (request.args.get("q") or "").strip()
    if term:
        like = f"%{term}%"
        q = q.filter(
            db.or_(
                LostItem.description.ilike(like),
                LostItem.location.ilike(like),
                LostItem.reporter_name.ilike(like),
                LostItem.item_name.ilike(like),
            )
        )
    items = q.order_by(LostItem.created_at.desc(), LostItem.id.desc()).all()
    return jsonify({"items": _lost_schema.dump(items, many=True), "count": len(items)})


@bp.patch("/lost-items/<int:item_id>")
def admin_update_lost_item(item_id: int):
    item = db.session.get(LostItem, item_id)
    if not item:
        return _json_error("Item not found", 404)
    try:
        status = _status_from_body(LOST_ITEM_STATUSES)
    except ValidationError as e:
        return _json_error(first_error(e))

    prev = item.status
    item.status = status
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to update lost item %s", item_id)
        return _json_error("Failed to update item status.", 500)
    current_app.logger.info("Lost item %s status %s -> %s by %s", item_id, prev, status, g.current_user.email)
    return jsonify({"item": _lost_schema.dump(item)})


def _counts(column, values) -> dict[str, int]:
    rows = db.session.query(column, func.count()).group_by(column).all()
    by_value = {str(v): int(c or 0) for v, c in rows}
    return {v: by_value.get(v, 0) for v in values}


@bp.get("/stats")
def admin_stats():
    """Dashboard counters."""
    found = _counts(FoundItem.status, FOUND_ITEM_STATUSES)
    lost = _counts(LostItem.status, LOST_ITEM_STATUSES)
    claims = _counts(Claim.status, CLAIM_STATUSES)
    return jsonify({
        "claims": {**claims, "total": sum(claims.values())},
        "foundItems": {
            "byStatus": found,
            "claimed": found["claimed"],
            "unclaimed": sum(found.values()) - found["claimed"],
            "total": sum(found.values()),
        },
        "lostItems": {
            "byStatus": lost,
            "notFound": lost["not_found"] + lost["reported"],
            "found": lost["found"],
            "claimed": lost["claimed"],
            "total": sum(lost.values()),
        },
        "users": int(db.session.query(func.count(User.id)).scalar() or 0),
    })


@bp.get("/users")
def admin_list_users():
    """List users.

    Query params:
    - q: search across email and name
    - role: 'admin' | 'user'
    - limit: page size (default 50, max 200)
    - offset: offset for pagination (default 0)
    """
    term = (request.args.get("q") or "").strip()
    role = (request.args.get("role") or "").strip().lower() or None
    try:
        limit = min(max(int(request.args.get("limit", 50)), 1), 200)
    except (TypeError, ValueError):
        limit = 50
    try:
        offset = min(max(int(request.args.get("offset", 0)), 0), MAX_OFFSET)
    except (TypeError, ValueError):
        offset = 0

    q = User.query
    if term:
        like = f"%{term}%"
        q = q.filter(db.or_(User.email.ilike(like), User.full_name.ilike(like)))
    if role:
        q = q.filter(User.role == role)
    total = q.count()
    users = q.order_by(User.created_at.desc(), User.id.desc()).offset(offset).limit(limit).all()
    return jsonify({"users": _user_schema.dump(users, many=True), "total": total, "limit": limit, "offset": offset})
