from sqlalchemy import func, false, Index
from ..extensions import db
from .enums import item_type_enum, found_item_status_enum
from .types import BigIntId, utcnow


class FoundItem(db.Model):
    __tablename__ = "found_items"

    id = db.Column(BigIntId, primary_key=True)
    item_type = db.Column(item_type_enum, nullable=False)
    description = db.Column(db.Text, nullable=False)
    location_found = db.Column(db.String(200), nullable=False)
    date_found = db.Column(db.Date)
    picture_url = db.Column(db.String(512))
    submitted_to_office = db.Column(db.Boolean, nullable=False, default=False, server_default=false())
    # Email of the signed-in account that filed the report
    found_by = db.Column(db.String(255))
    reporter_name = db.Column(db.String(200))
    reporter_email = db.Column(db.String(255))
    reporter_phone = db.Column(db.String(50))
    status = db.Column(found_item_status_enum, nullable=False, default="reported", server_default="reported")
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow)

    claims = db.relationship("Claim", back_populates="item", lazy=True)

    __table_args__ = (
        Index("idx_found_items_type_status", "item_type", "status"),
        Index("idx_found_items_created_at", "created_at"),
    )
