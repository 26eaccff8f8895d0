from marshmallow import Schema, fields, validate, validates, pre_load, post_load, ValidationError, EXCLUDE

from ..models.enums import normalize_item_type, ITEM_TYPES

_NOT_BLANK = validate.Length(min=1)


class FoundItemSchema(Schema):
    id = fields.Int(dump_only=True)
    item_type = fields.Str(data_key="itemType")
    description = fields.Str()
    location_found = fields.Str(data_key="locationFound")
    date_found = fields.Date(data_key="dateFound")
    picture_url = fields.Str(data_key="pictureUrl")
    submitted_to_office = fields.Bool(data_key="submittedToOffice")
    reporter_name = fields.Str(data_key="reporterName")
    reporter_email = fields.Str(data_key="reporterEmail")
    reporter_phone = fields.Str(data_key="reporterPhone")
    status = fields.Str()
    created_at = fields.DateTime(data_key="createdAt")


class LostItemSchema(Schema):
    id = fields.Int(dump_only=True)
    item_name = fields.Str(data_key="itemName")
    item_type = fields.Str(data_key="itemType")
    description = fields.Str()
    location = fields.Str()
    date_lost = fields.Date(data_key="dateLost")
    picture_urls = fields.List(fields.Str(), data_key="pictureUrls")
    proof_url = fields.Str(data_key="proofUrl")
    reporter_name = fields.Str(data_key="reporterName")
    reporter_email = fields.Str(data_key="reporterEmail")
    reporter_phone = fields.Str(data_key="reporterPhone")
    status = fields.Str()
    created_at = fields.DateTime(data_key="createdAt")


class _ReportSchema(Schema):
    """Shared input rules for the found/lost report forms."""

    class Meta:
        unknown = EXCLUDE

    item_type = fields.Str(required=True, data_key="itemType", error_messages={"required": "Please select an item type."})
    description = fields.Str(required=True, validate=_NOT_BLANK, error_messages={"required": "Please describe the item."})
    location = fields.Str(required=True, validate=_NOT_BLANK, error_messages={"required": "Please provide the location."})
    reporter_name = fields.Str(load_default=None, data_key="reporterName")
    reporter_email = fields.Email(load_default=None, data_key="reporterEmail")
    reporter_phone = fields.Str(load_default=None, data_key="reporterPhone")

    @pre_load
    def _strip(self, data, **kwargs):
        # Form posts send "" for untouched inputs; treat those as absent
        out = {}
        for k, v in dict(data).items():
            if isinstance(v, str):
                v = v.strip()
                if not v:
                    continue
            out[k] = v
        return out

    @validates("item_type")
    def _known_type(self, value, **kwargs):
        if normalize_item_type(value) is None:
            raise ValidationError(f"Unknown item type. Choose one of: {', '.join(ITEM_TYPES)}.")

    @post_load
    def _canonical_type(self, data, **kwargs):
        data["item_type"] = normalize_item_type(data["item_type"])
        return data


class FoundItemReportSchema(_ReportSchema):
    date_found = fields.Date(required=True, data_key="dateFound", error_messages={"required": "Please provide the date the item was found."})
    submitted_to_office = fields.Bool(load_default=False, data_key="submittedToOffice")


class LostItemReportSchema(_ReportSchema):
    item_name = fields.Str(required=True, validate=_NOT_BLANK, data_key="itemName", error_messages={"required": "Please provide the item name."})
    date_lost = fields.Date(required=True, data_key="dateLost", error_messages={"required": "Please provide the date the item was lost."})


class StatusUpdateSchema(Schema):
    status = fields.Str(required=True, error_messages={"required": "Status is required."})

    @pre_load
    def _normalize(self, data, **kwargs):
        if isinstance(data, dict) and isinstance(data.get("status"), str):
            data = {**data, "status": data["status"].strip().lower()}
        return data
