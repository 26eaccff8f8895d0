"""Category-specific verification details attached to a claim.

Each item category has its own variant (a tag plus a marshmallow schema).
The variant is picked once from the found item's type when the claim is
created; the tag is stored next to the payload and never changes.
"""
from __future__ import annotations

from dataclasses import dataclass

from marshmallow import Schema, fields, validate, pre_load, EXCLUDE

from ...models.enums import normalize_item_type

FIELD_LABELS = {
    "imei": "the IMEI number for your device",
    "simName": "the SIM card network name",
    "simNumber": "the SIM card number",
    "frequentNumber1": "a frequently called number",
    "frequentNumber2": "a second frequently called number",
    "model": "the model",
    "lastLocation": "the last place you had the item",
    "serialNumber": "the serial number",
    "recentWebsite": "a recently visited website",
    "signedUpEmail": "an email signed up on the device",
    "installedApps": "some of the installed applications",
    "brand": "the brand",
    "watchSerialImei": "the serial or IMEI number of the watch",
    "color": "the color",
    "uniqueFeatures": "any unique features",
    "purchaseDate": "the purchase date",
}


class _VerificationSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    @pre_load
    def _strip(self, data, **kwargs):
        return {k: v.strip() if isinstance(v, str) else v for k, v in dict(data).items()}


def _required(name: str) -> fields.Str:
    message = f"Please provide {FIELD_LABELS[name]}."
    return fields.Str(
        required=True,
        validate=validate.Length(min=1, error=message),
        error_messages={"required": message, "null": message},
    )


@dataclass(frozen=True)
class VerificationVariant:
    kind: str
    item_types: tuple[str, ...]
    field_names: tuple[str, ...]

    def schema(self) -> Schema:
        schema_cls = _VerificationSchema.from_dict(
            {name: _required(name) for name in self.field_names},
            name=f"{self.kind.title().replace('_', '')}VerificationSchema",
        )
        return schema_cls()

    def load(self, payload: dict | None) -> dict:
        """Validate ``payload``; the result holds exactly this variant's fields.

        Raises marshmallow.ValidationError on missing or blank fields.
        """
        return self.schema().load(payload or {})


PHONE_TABLET = VerificationVariant(
    kind="phone_tablet",
    item_types=("Phone", "Tablet"),
    field_names=("imei", "simName", "simNumber", "frequentNumber1", "frequentNumber2", "model", "lastLocation"),
)
LAPTOP = VerificationVariant(
    kind="laptop",
    item_types=("Laptop",),
    field_names=("serialNumber", "recentWebsite", "signedUpEmail", "model", "installedApps", "lastLocation"),
)
SMART_WATCH = VerificationVariant(
    kind="smart_watch",
    item_types=("Smart watch",),
    field_names=("brand", "model", "watchSerialImei", "color", "uniqueFeatures", "lastLocation"),
)
GENERAL = VerificationVariant(
    kind="general",
    item_types=("ID card", "Other"),
    field_names=("uniqueFeatures", "purchaseDate", "lastLocation", "serialNumber"),
)

VARIANTS = {v.kind: v for v in (PHONE_TABLET, LAPTOP, SMART_WATCH, GENERAL)}
_BY_ITEM_TYPE = {t: v for v in VARIANTS.values() for t in v.item_types}


def variant_for(item_type: str | None) -> VerificationVariant:
    """Select the variant for an item type; unknown types use the general one."""
    return _BY_ITEM_TYPE.get(normalize_item_type(item_type) or "", GENERAL)
