import json

from flask import Blueprint, jsonify, request, g
from marshmallow import ValidationError

from ...models.claim import Claim
from ...models.enums import CLAIM_STATUSES
from ...schemas import first_error
from ...schemas.claim import ClaimSchema
from ...schemas.item import StatusUpdateSchema
from .workflow import ClaimError, ClaimSubmission, adjudicate_claim, submit_claim

bp = Blueprint("claims", __name__, url_prefix="/claims")

_claim_schema = ClaimSchema()

# Form keys that are not part of the category-specific verification payload
_RESERVED_FIELDS = {"itemId", "details", "extraInfo"}


def _json_error(message: str, status: int = 400):
    return jsonify({"error": message}), status


def _extra_info_from_form() -> dict:
    raw = request.form.get("extraInfo")
    if raw:
        try:
            data = json.loads(raw)
        except ValueError:
            raise ClaimError("Invalid extraInfo: expected a JSON object")
        if not isinstance(data, dict):
            raise ClaimError("Invalid extraInfo: expected a JSON object")
        return data
    return {k: v for k, v in request.form.to_dict().items() if k not in _RESERVED_FIELDS}


@bp.post("")
def create_claim():
    """Submit an ownership claim for a found item.

    Multipart form:
      - itemId: found item id
      - details: how the claimant can prove ownership
      - extraInfo: JSON object with the category fields (or send them as flat form fields)
      - itemImages: 1-3 pictures of the item
      - claimantImage: one picture of the claimant
      - purchaseReceipt: one picture of the receipt
    """
    user = getattr(g, "current_user", None)
    if not user:
        return _json_error("Authentication required", 401)
    try:
        item_id = int(request.form.get("itemId"))
    except (TypeError, ValueError):
        return _json_error("Invalid itemId", 400)

    try:
        submission = ClaimSubmission(
            details=request.form.get("details") or "",
            extra_info=_extra_info_from_form(),
            item_images=[f for f in request.files.getlist("itemImages") if f and f.filename],
            claimant_image=request.files.get("claimantImage"),
            purchase_receipt=request.files.get("purchaseReceipt"),
        )
        claim = submit_claim(item_id, user.email, submission)
    except ClaimError as e:
        return _json_error(e.message, e.status)

    return jsonify({"claim": _claim_schema.dump(claim)}), 201


@bp.get("")
def list_claims():
    """List claims, newest first.

    Admins see every claim and may filter with ?status=pending|approved|rejected.
    Everyone else only sees their own claims.
    """
    user = getattr(g, "current_user", None)
    if not user:
        return _json_error("Authentication required", 401)

    q = Claim.query
    if not user.is_admin:
        q = q.filter(Claim.claimant_email == user.email)
    status = (request.args.get("status") or "").strip().lower()
    if status and status != "all":
        if status not in CLAIM_STATUSES:
            return _json_error("Invalid status filter", 400)
        q = q.filter(Claim.status == status)

    claims = q.order_by(Claim.created_at.desc(), Claim.id.desc()).all()
    return jsonify({"claims": _claim_schema.dump(claims, many=True), "count": len(claims)})


@bp.get("/<int:claim_id>")
def get_claim(claim_id: int):
    user = getattr(g, "current_user", None)
    if not user:
        return _json_error("Authentication required", 401)
    claim = Claim.query.filter_by(id=claim_id).first()
    # Hide existence of other people's claims
    if not claim or (not user.is_admin and claim.claimant_email != user.email):
        return _json_error("Claim not found", 404)
    return jsonify({"claim": _claim_schema.dump(claim)})


def _admin_error():
    user = getattr(g, "current_user", None)
    if not user:
        return _json_error("Authentication required", 401)
    if not user.is_admin:
        return _json_error("Only administrators can approve or reject claims", 403)
    return None


def _decide(claim_id: int, decision: str):
    denied = _admin_error()
    if denied:
        return denied
    try:
        claim = adjudicate_claim(claim_id, decision, admin_email=g.current_user.email)
    except ClaimError as e:
        return _json_error(e.message, e.status)
    return jsonify({"claim": _claim_schema.dump(claim)})


@bp.patch("/<int:claim_id>")
def update_claim_status(claim_id: int):
    """Body JSON: { status: 'approved' | 'rejected' }"""
    denied = _admin_error()
    if denied:
        return denied
    try:
        data = StatusUpdateSchema().load(request.get_json(silent=True) or {})
    except ValidationError as e:
        return _json_error(first_error(e))
    return _decide(claim_id, data["status"])


@bp.post("/<int:claim_id>/approve")
def approve_claim(claim_id: int):
    return _decide(claim_id, "approved")


@bp.post("/<int:claim_id>/reject")
def reject_claim(claim_id: int):
    return _decide(claim_id, "rejected")
