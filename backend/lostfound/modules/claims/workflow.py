"""Claim submission and adjudication.

Item and claim move together:

    FoundItem: reported/submitted -> claim submitted -> claimed
    Claim:     pending -> approved | rejected

Every database step that touches both records runs in a single transaction.
Media are uploaded before that transaction; if anything fails afterwards the
uploaded objects are deleted again.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from flask import current_app
from marshmallow import ValidationError
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.datastructures import FileStorage

from ...extensions import db
from ...models.claim import Claim
from ...models.found_item import FoundItem
from ...schemas import first_error
from ...storage import StorageError, StoredObject, delete_objects, image_error, upload_files
from .verification import VerificationVariant, variant_for

MAX_ITEM_IMAGES = 3
DECISIONS = ("approved", "rejected")


class ClaimError(Exception):
    def __init__(self, message: str, status: int = 400):
        super().__init__(message)
        self.message = message
        self.status = status


@dataclass
class ClaimSubmission:
    details: str
    extra_info: dict
    item_images: list[FileStorage] = field(default_factory=list)
    claimant_image: FileStorage | None = None
    purchase_receipt: FileStorage | None = None


def validate_submission(item: FoundItem, submission: ClaimSubmission) -> tuple[VerificationVariant, dict]:
    """Check every required input before anything is uploaded or stored."""
    if not (submission.details or "").strip():
        raise ClaimError("Please provide details about how you can prove ownership.")
    if not submission.item_images:
        raise ClaimError("Please upload at least one picture of the item.")
    if len(submission.item_images) > MAX_ITEM_IMAGES:
        raise ClaimError(f"You can only upload up to {MAX_ITEM_IMAGES} images.")
    for f in submission.item_images:
        err = image_error(f, "a picture of the item")
        if err:
            raise ClaimError(err)
    err = image_error(submission.claimant_image, "your picture for verification")
    if err:
        raise ClaimError(err)
    err = image_error(submission.purchase_receipt, "your purchase receipt for verification")
    if err:
        raise ClaimError(err)

    variant = variant_for(item.item_type)
    try:
        extra = variant.load(submission.extra_info)
    except ValidationError as e:
        raise ClaimError(first_error(e)) from e
    return variant, extra


def _upload(files: list[FileStorage], prefix: str, failure: str, uploaded: list[StoredObject]) -> list[str]:
    try:
        stored = upload_files(files, prefix)
    except StorageError as e:
        delete_objects(uploaded)
        current_app.logger.warning("Claim upload aborted (%s); removed %d stored object(s)", prefix, len(uploaded))
        raise ClaimError(failure, 502) from e
    uploaded.extend(stored)
    return [s.url for s in stored]


def submit_claim(item_id: int, claimant_email: str, submission: ClaimSubmission) -> Claim:
    """Create a pending claim and mark its found item as "claim submitted"."""
    item: FoundItem | None = db.session.get(FoundItem, item_id)
    if item is None:
        raise ClaimError("Item not found", 404)
    if item.status == "claimed":
        raise ClaimError("This item has already been claimed", 409)

    variant, extra = validate_submission(item, submission)

    uploaded: list[StoredObject] = []
    item_urls = _upload(submission.item_images, "claims/items", "Failed to upload item images.", uploaded)
    claimant_url = _upload([submission.claimant_image], "claims/claimants", "Failed to upload claimant picture.", uploaded)[0]
    receipt_url = _upload([submission.purchase_receipt], "claims/purchase-receipt", "Failed to upload purchase receipt.", uploaded)[0]

    claim = Claim(
        item_id=item.id,
        claimant_email=claimant_email,
        details=submission.details.strip(),
        item_images=item_urls,
        claimant_image=claimant_url,
        purchase_receipt=receipt_url,
        item_type=item.item_type,
        extra_info_kind=variant.kind,
        extra_info=extra,
        status="pending",
    )
    try:
        db.session.add(claim)
        # An approval may have landed while the files were uploading
        result = db.session.execute(
            update(FoundItem)
            .where(FoundItem.id == item_id, FoundItem.status != "claimed")
            .values(status="claim submitted")
        )
        if result.rowcount != 1:
            db.session.rollback()
            delete_objects(uploaded)
            current_app.logger.info("Found item %s was claimed during submission by %s", item_id, claimant_email)
            raise ClaimError("This item has already been claimed", 409)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        delete_objects(uploaded)
        current_app.logger.exception("Failed to store claim for item %s", item_id)
        raise ClaimError("Failed to submit claim. Please try again.", 500) from e

    current_app.logger.info("Claim %s submitted by %s for found item %s", claim.id, claimant_email, item_id)
    return claim


def adjudicate_claim(claim_id: int, decision: str, admin_email: str | None = None) -> Claim:
    """Approve or reject a pending claim.

    Approval also marks the found item as claimed, in the same transaction.
    Only pending claims can be decided; the status check is part of the
    UPDATE so two admins racing on one claim cannot both succeed.
    """
    decision = decision.strip().lower() if isinstance(decision, str) else ""
    if decision not in DECISIONS:
        raise ClaimError("Invalid status. Use approved or rejected.", 400)

    claim: Claim | None = db.session.get(Claim, claim_id)
    if claim is None:
        raise ClaimError("Claim not found", 404)
    if claim.status != "pending":
        raise ClaimError(f"Claim already {claim.status}", 409)

    try:
        result = db.session.execute(
            update(Claim)
            .where(Claim.id == claim.id, Claim.status == "pending")
            .values(status=decision, decided_by=admin_email, decided_at=datetime.now(timezone.utc))
        )
        if result.rowcount != 1:
            db.session.rollback()
            raise ClaimError("Claim was already decided by another administrator", 409)
        if decision == "approved":
            db.session.execute(
                update(FoundItem).where(FoundItem.id == claim.item_id).values(status="claimed")
            )
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.exception("Failed to mark claim %s as %s", claim_id, decision)
        raise ClaimError("Failed to update claim status.", 500) from e

    db.session.refresh(claim)
    current_app.logger.info("Claim %s %s by %s", claim_id, decision, admin_email or "unknown admin")
    return claim
