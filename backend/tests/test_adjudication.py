from lostfound.extensions import db
from lostfound.models import Claim, FoundItem
from lostfound.models.enums import CLAIM_STATUSES, FOUND_ITEM_STATUSES

from conftest import ADMIN_EMAIL, auth_headers, claim_form


def test_full_flow_submit_then_approve(client, user, admin, make_found_item):
    item = make_found_item(item_type="Phone")
    resp = client.post("/api/v1/claims", data=claim_form(item.id), headers=auth_headers(user),
                       content_type="multipart/form-data")
    claim_id = resp.get_json()["claim"]["id"]

    resp = client.patch(f"/api/v1/claims/{claim_id}", json={"status": "approved"}, headers=auth_headers(admin))

    assert resp.status_code == 200, resp.get_json()
    body = resp.get_json()["claim"]
    assert body["status"] == "approved"
    assert body["decidedBy"] == ADMIN_EMAIL
    assert body["decidedAt"] is not None
    assert body["item"]["status"] == "claimed"
    assert db.session.get(FoundItem, item.id).status == "claimed"


def test_reject_leaves_item_unchanged(client, admin, make_found_item, make_claim):
    item = make_found_item()
    claim = make_claim(item)

    resp = client.patch(f"/api/v1/claims/{claim.id}", json={"status": "rejected"}, headers=auth_headers(admin))

    assert resp.status_code == 200
    assert db.session.get(Claim, claim.id).status == "rejected"
    assert db.session.get(FoundItem, item.id).status == "claim submitted"


def test_approve_and_reject_aliases(client, admin, make_found_item, make_claim):
    item = make_found_item()
    first = make_claim(item)
    second = make_claim(item, claimant_email="other@campus.edu")

    assert client.post(f"/api/v1/claims/{second.id}/reject", headers=auth_headers(admin)).status_code == 200
    assert client.post(f"/api/v1/claims/{first.id}/approve", headers=auth_headers(admin)).status_code == 200
    assert db.session.get(FoundItem, item.id).status == "claimed"


def test_only_pending_claims_can_be_decided(client, admin, make_found_item, make_claim):
    item = make_found_item()
    claim = make_claim(item)
    client.patch(f"/api/v1/claims/{claim.id}", json={"status": "rejected"}, headers=auth_headers(admin))

    resp = client.patch(f"/api/v1/claims/{claim.id}", json={"status": "approved"}, headers=auth_headers(admin))

    assert resp.status_code == 409
    assert db.session.get(Claim, claim.id).status == "rejected"
    assert db.session.get(FoundItem, item.id).status == "claim submitted"


def test_pending_is_not_a_decision(client, admin, make_found_item, make_claim):
    claim = make_claim(make_found_item())
    for status in ("pending", "claimed", ""):
        resp = client.patch(f"/api/v1/claims/{claim.id}", json={"status": status}, headers=auth_headers(admin))
        assert resp.status_code == 400


def test_non_admin_cannot_decide(client, user, make_found_item, make_claim):
    claim = make_claim(make_found_item())

    resp = client.patch(f"/api/v1/claims/{claim.id}", json={"status": "approved"}, headers=auth_headers(user))
    assert resp.status_code == 403

    resp = client.patch(f"/api/v1/claims/{claim.id}", json={"status": "approved"})
    assert resp.status_code == 401
    assert db.session.get(Claim, claim.id).status == "pending"


def test_unknown_claim_is_404(client, admin):
    resp = client.patch("/api/v1/claims/4242", json={"status": "approved"}, headers=auth_headers(admin))
    assert resp.status_code == 404


def test_statuses_stay_within_their_sets(client, user, admin, make_found_item):
    items = [make_found_item(), make_found_item(), make_found_item(submitted_to_office=True, status="submitted")]
    claim_ids = []
    for it in items:
        resp = client.post("/api/v1/claims", data=claim_form(it.id), headers=auth_headers(user),
                           content_type="multipart/form-data")
        claim_ids.append(resp.get_json()["claim"]["id"])

    client.post(f"/api/v1/claims/{claim_ids[0]}/approve", headers=auth_headers(admin))
    client.post(f"/api/v1/claims/{claim_ids[1]}/reject", headers=auth_headers(admin))

    assert {c.status for c in Claim.query.all()} <= set(CLAIM_STATUSES)
    assert {i.status for i in FoundItem.query.all()} <= set(FOUND_ITEM_STATUSES)
    statuses = {c.id: (c.status, c.item.status) for c in Claim.query.all()}
    assert statuses[claim_ids[0]] == ("approved", "claimed")
    assert statuses[claim_ids[1]] == ("rejected", "claim submitted")
    assert statuses[claim_ids[2]] == ("pending", "claim submitted")


def test_malformed_decision_body(client, admin, user, make_found_item, make_claim):
    claim = make_claim(make_found_item())
    for body in ({"status": 5}, ["approved"], {}):
        resp = client.patch(f"/api/v1/claims/{claim.id}", json=body, headers=auth_headers(admin))
        assert resp.status_code == 400
    resp = client.patch(f"/api/v1/claims/{claim.id}", json={"status": 5}, headers=auth_headers(user))
    assert resp.status_code == 403
    assert db.session.get(Claim, claim.id).status == "pending"


def test_concurrent_decision_loses(client, admin, make_found_item, make_claim, monkeypatch):
    from sqlalchemy import update

    item = make_found_item()
    claim = make_claim(item)
    real_get = db.session.get

    def get_then_decided_elsewhere(model, ident, **kwargs):
        obj = real_get(model, ident, **kwargs)
        if model is Claim:
            # another admin rejects the claim; the loaded object still reads pending
            db.session.execute(
                update(Claim).where(Claim.id == ident).values(status="rejected"),
                execution_options={"synchronize_session": False},
            )
        return obj

    monkeypatch.setattr(db.session, "get", get_then_decided_elsewhere)
    resp = client.patch(f"/api/v1/claims/{claim.id}", json={"status": "approved"}, headers=auth_headers(admin))
    monkeypatch.undo()

    assert resp.status_code == 409
    assert resp.get_json()["error"] == "Claim was already decided by another administrator"
    assert db.session.get(FoundItem, item.id).status == "claim submitted"
