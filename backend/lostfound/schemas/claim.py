from marshmallow import Schema, fields


class ClaimItemSchema(Schema):
    id = fields.Int()
    item_type = fields.Str(data_key="itemType")
    description = fields.Str()
    location_found = fields.Str(data_key="locationFound")
    status = fields.Str()


class ClaimSchema(Schema):
    id = fields.Int(dump_only=True)
    item_id = fields.Int(data_key="itemId")
    claimant_email = fields.Str(data_key="claimantEmail")
    details = fields.Str()
    item_images = fields.List(fields.Str(), data_key="itemImages")
    claimant_image = fields.Str(data_key="claimantImage")
    purchase_receipt = fields.Str(data_key="purchaseReceipt")
    item_type = fields.Str(data_key="itemType")
    extra_info_kind = fields.Str(data_key="extraInfoKind")
    extra_info = fields.Dict(keys=fields.Str(), values=fields.Str(), data_key="extraInfo")
    status = fields.Str()
    decided_by = fields.Str(data_key="decidedBy")
    decided_at = fields.DateTime(data_key="decidedAt")
    created_at = fields.DateTime(data_key="createdAt")
    item = fields.Nested(ClaimItemSchema, allow_none=True)
