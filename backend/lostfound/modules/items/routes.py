import math

from flask import Blueprint, request, jsonify, current_app, g
from marshmallow import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from ...extensions import db
from ...models.enums import normalize_item_type
from ...models.found_item import FoundItem
from ...models.lost_item import LostItem
from ...schemas import first_error
from ...schemas.item import FoundItemReportSchema, FoundItemSchema, LostItemReportSchema, LostItemSchema
from ...storage import StorageError, delete_objects, document_error, image_error, upload_file, upload_files

bp = Blueprint("items", __name__)

MAX_LOST_ITEM_PHOTOS = 3
MAX_PAGE = 100_000

_found_schema = FoundItemSchema()
_lost_schema = LostItemSchema()


def _json_error(message: str, status: int = 400):
    return jsonify({"error": message}), status


@bp.get("/found-items")
def list_found_items():
    """Public listing of found items.

    Query params:
      - type: item type (exact, case-insensitive); 'all' or empty disables the filter
      - q: case-insensitive substring of description or location
      - page: 1-based page number; pages hold FOUND_ITEMS_PAGE_SIZE items (9)
    """
    per_page = int(current_app.config.get("FOUND_ITEMS_PAGE_SIZE") or 9)
    try:
        page = min(max(int(request.args.get("page", 1)), 1), MAX_PAGE)
    except (TypeError, ValueError):
        page = 1

    q = FoundItem.query
    type_param = (request.args.get("type") or "").strip()
    if type_param and type_param.lower() != "all":
        item_type = normalize_item_type(type_param)
        if item_type is None:
            return _json_error("Invalid item type", 400)
        q = q.filter(FoundItem.item_type == item_type)

    term = (request.args.get("q") or "").strip()
    if term:
        like = f"%{term}%"
        q = q.filter(db.or_(FoundItem.description.ilike(like), FoundItem.location_found.ilike(like)))

    total = q.count()
    items = (
        q.order_by(FoundItem.created_at.desc(), FoundItem.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )
    return jsonify({
        "items": _found_schema.dump(items, many=True),
        "page": page,
        "pageSize": per_page,
        "total": total,
        "totalPages": math.ceil(total / per_page) if total else 0,
    })


@bp.get("/found-items/<int:item_id>")
def get_found_item(item_id: int):
    item = db.session.get(FoundItem, item_id)
    if not item:
        return _json_error("Item not found", 404)
    return jsonify({"item": _found_schema.dump(item)})


@bp.post("/found-items")
def create_found_item():
    """Report a found item.

    Multipart form fields: itemType, description, location, dateFound,
    submittedToOffice, reporterName, reporterEmail, reporterPhone and the
    file field 'photo' (required).
    """
    user = getattr(g, "current_user", None)
    if not user:
        return _json_error("Authentication required", 401)

    try:
        data = FoundItemReportSchema().load(request.form.to_dict())
    except ValidationError as e:
        return _json_error(first_error(e))

    photo = request.files.get("photo")
    err = image_error(photo, "a picture of the item")
    if err:
        return _json_error(err)

    try:
        stored = upload_file(photo, "found-items")
    except StorageError:
        return _json_error("Failed to upload the item picture.", 502)

    item = FoundItem(
        item_type=data["item_type"],
        description=data["description"],
        location_found=data["location"],
        date_found=data["date_found"],
        picture_url=stored.url,
        submitted_to_office=data["submitted_to_office"],
        status="submitted" if data["submitted_to_office"] else "reported",
        found_by=user.email,
        reporter_name=data.get("reporter_name") or user.full_name,
        reporter_email=data.get("reporter_email") or user.email,
        reporter_phone=data.get("reporter_phone"),
    )
    try:
        db.session.add(item)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        delete_objects([stored])
        current_app.logger.exception("Failed to store found item report")
        return _json_error("There was an error submitting your report. Please try again.", 500)

    current_app.logger.info("Found item %s reported by %s", item.id, user.email)
    return jsonify({"item": _found_schema.dump(item)}), 201


@bp.post("/lost-items")
def create_lost_item():
    """Report a lost item.

    Multipart form fields: itemName, itemType, description, location,
    dateLost, reporterName, reporterPhone, file field 'photos' (1-3) and an
    optional 'proof' document.
    """
    user = getattr(g, "current_user", None)
    if not user:
        return _json_error("Authentication required", 401)

    try:
        data = LostItemReportSchema().load(request.form.to_dict())
    except ValidationError as e:
        return _json_error(first_error(e))

    photos = [f for f in request.files.getlist("photos") if f and f.filename]
    if not photos:
        return _json_error("Please upload at least one picture of the item.")
    if len(photos) > MAX_LOST_ITEM_PHOTOS:
        return _json_error(f"You can only upload up to {MAX_LOST_ITEM_PHOTOS} images.")
    for f in photos:
        err = image_error(f, "a picture of the item")
        if err:
            return _json_error(err)
    proof = request.files.get("proof")
    if proof is not None and not proof.filename:
        proof = None
    if proof is not None:
        err = document_error(proof, "a proof of ownership")
        if err:
            return _json_error(err)

    stored = []
    try:
        stored.extend(upload_files(photos, "lost-items"))
        if proof is not None:
            stored.append(upload_file(proof, "lost-items/proofs"))
    except StorageError:
        delete_objects(stored)
        return _json_error("Failed to upload the item pictures.", 502)

    item = LostItem(
        item_name=data["item_name"],
        item_type=data["item_type"],
        description=data["description"],
        location=data["location"],
        date_lost=data["date_lost"],
        picture_urls=[s.url for s in stored[:len(photos)]],
        proof_url=stored[len(photos)].url if proof is not None else None,
        status="reported",
        reporter_name=data.get("reporter_name") or user.full_name,
        reporter_email=user.email,
        reporter_phone=data.get("reporter_phone"),
    )
    try:
        db.session.add(item)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        delete_objects(stored)
        current_app.logger.exception("Failed to store lost item report")
        return _json_error("There was an error submitting your report. Please try again.", 500)

    current_app.logger.info("Lost item %s reported by %s", item.id, user.email)
    return jsonify({"item": _lost_schema.dump(item)}), 201


@bp.get("/lost-items/mine")
def my_lost_items():
    user = getattr(g, "current_user", None)
    if not user:
        return _json_error("Authentication required", 401)
    items = (
        LostItem.query.filter(LostItem.reporter_email == user.email)
        .order_by(LostItem.created_at.desc(), LostItem.id.desc())
        .all()
    )
    return jsonify({"items": _lost_schema.dump(items, many=True)})
