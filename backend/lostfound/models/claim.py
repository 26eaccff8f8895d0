from sqlalchemy import func, Index
from ..extensions import db
from .enums import claim_status_enum, item_type_enum
from .types import BigIntId, JSONDoc, utcnow


class Claim(db.Model):
    __tablename__ = "claims"

    id = db.Column(BigIntId, primary_key=True)
    item_id = db.Column(db.BigInteger, db.ForeignKey("found_items.id"), nullable=False)
    claimant_email = db.Column(db.String(255), nullable=False)
    details = db.Column(db.Text, nullable=False)
    item_images = db.Column(JSONDoc, nullable=False, default=list)
    claimant_image = db.Column(db.String(512), nullable=False)
    purchase_receipt = db.Column(db.String(512), nullable=False)
    # Copied from the found item when the claim is created; never re-validated
    item_type = db.Column(item_type_enum, nullable=False)
    # Verification variant chosen at creation time, see modules.claims.verification
    extra_info_kind = db.Column(db.String(40), nullable=False)
    extra_info = db.Column(JSONDoc, nullable=False, default=dict)
    status = db.Column(claim_status_enum, nullable=False, default="pending", server_default="pending")
    decided_by = db.Column(db.String(255))
    decided_at = db.Column(db.DateTime(timezone=True))
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow)

    item = db.relationship("FoundItem", back_populates="claims")

    __table_args__ = (
        Index("idx_claims_item", "item_id"),
        Index("idx_claims_claimant_email", "claimant_email"),
        Index("idx_claims_status", "status"),
    )
