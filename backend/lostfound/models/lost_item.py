from sqlalchemy import func, Index
from ..extensions import db
from .enums import item_type_enum, lost_item_status_enum
from .types import BigIntId, JSONDoc, utcnow


class LostItem(db.Model):
    __tablename__ = "lost_items"

    id = db.Column(BigIntId, primary_key=True)
    item_name = db.Column(db.String(200), nullable=False)
    item_type = db.Column(item_type_enum, nullable=False)
    description = db.Column(db.Text, nullable=False)
    location = db.Column(db.String(200), nullable=False)
    date_lost = db.Column(db.Date)
    # 1-3 public URLs
    picture_urls = db.Column(JSONDoc, nullable=False, default=list)
    proof_url = db.Column(db.String(512))
    reporter_name = db.Column(db.String(200))
    reporter_email = db.Column(db.String(255))
    reporter_phone = db.Column(db.String(50))
    status = db.Column(lost_item_status_enum, nullable=False, default="not_found", server_default="not_found")
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow)

    __table_args__ = (
        Index("idx_lost_items_status", "status"),
        Index("idx_lost_items_reporter_email", "reporter_email"),
    )
