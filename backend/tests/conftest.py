import io
import json
import struct
import zlib
from datetime import date

import pytest
from PIL import Image

from lostfound import create_app
from lostfound.extensions import db
from lostfound.models import Claim, FoundItem, LostItem, User
from lostfound.security import AllowListPolicy, issue_token

ADMIN_EMAIL = "admin@campus.edu"

PHONE_INFO = {
    "imei": "356938035643809",
    "simName": "MTN",
    "simNumber": "08031234567",
    "frequentNumber1": "08030000001",
    "frequentNumber2": "08030000002",
    "model": "iPhone 13",
    "lastLocation": "Library, second floor",
}


def png_bytes(color=(200, 30, 30)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (4, 4), color).save(buf, format="PNG")
    return buf.getvalue()


def png_file(name="photo.png"):
    return (io.BytesIO(png_bytes()), name, "image/png")


def huge_png_bytes(width=20000, height=20000) -> bytes:
    """A tiny PNG whose header claims far more pixels than Pillow will open."""
    def chunk(kind, data):
        return struct.pack(">I", len(data)) + kind + data + struct.pack(">I", zlib.crc32(kind + data) & 0xFFFFFFFF)

    ihdr = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    return b"\x89PNG\r\n\x1a\n" + chunk(b"IHDR", ihdr) + chunk(b"IDAT", zlib.compress(b"")) + chunk(b"IEND", b"")


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {issue_token(user.id, user.role)}"}


def claim_form(item_id, extra=None, images=1, **overrides) -> dict:
    data = {
        "itemId": str(item_id),
        "details": "The lock screen shows my dog and the case has a crack on the back.",
        "extraInfo": json.dumps(PHONE_INFO if extra is None else extra),
        "itemImages": [png_file(f"item{i}.png") for i in range(images)],
        "claimantImage": png_file("me.png"),
        "purchaseReceipt": png_file("receipt.png"),
    }
    data.update(overrides)
    return {k: v for k, v in data.items() if v is not None}


@pytest.fixture()
def app(tmp_path):
    app = create_app("testing", role_policy=AllowListPolicy([ADMIN_EMAIL]))
    app.config["UPLOAD_FOLDER"] = str(tmp_path / "uploads")
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def upload_dir(app, tmp_path):
    return tmp_path / "uploads"


@pytest.fixture()
def make_user(app):
    def _make(email, role="user", full_name=None):
        user = User(email=email, role=role, full_name=full_name or email.split("@")[0].title(), email_verified=True)
        db.session.add(user)
        db.session.commit()
        return user
    return _make


@pytest.fixture()
def user(make_user):
    return make_user("student@campus.edu", full_name="Sam Student")


@pytest.fixture()
def admin(make_user):
    return make_user(ADMIN_EMAIL, role="admin", full_name="Ada Admin")


@pytest.fixture()
def make_found_item(app):
    def _make(**kwargs):
        fields = dict(
            item_type="Phone",
            description="Black iPhone with a cracked case",
            location_found="Main library",
            date_found=date(2025, 3, 1),
            picture_url="/uploads/found-items/sample.png",
            reporter_name="Fola Finder",
            reporter_email="finder@campus.edu",
            reporter_phone="08010000000",
            status="reported",
        )
        fields.update(kwargs)
        item = FoundItem(**fields)
        db.session.add(item)
        db.session.commit()
        return item
    return _make


@pytest.fixture()
def make_lost_item(app):
    def _make(**kwargs):
        fields = dict(
            item_name="Blue backpack",
            item_type="Other",
            description="Blue backpack with a laptop sleeve",
            location="Sports complex",
            date_lost=date(2025, 2, 20),
            picture_urls=["/uploads/lost-items/bag.png"],
            reporter_name="Lola Loser",
            reporter_email="student@campus.edu",
            status="reported",
        )
        fields.update(kwargs)
        item = LostItem(**fields)
        db.session.add(item)
        db.session.commit()
        return item
    return _make


@pytest.fixture()
def make_claim(app):
    def _make(item, **kwargs):
        fields = dict(
            item_id=item.id,
            claimant_email="student@campus.edu",
            details="It has my initials engraved",
            item_images=["/uploads/claims/items/a.png"],
            claimant_image="/uploads/claims/claimants/a.png",
            purchase_receipt="/uploads/claims/purchase-receipt/a.png",
            item_type=item.item_type,
            extra_info_kind="phone_tablet",
            extra_info=dict(PHONE_INFO),
            status="pending",
        )
        fields.update(kwargs)
        claim = Claim(**fields)
        db.session.add(claim)
        item.status = "claim submitted"
        db.session.commit()
        return claim
    return _make
