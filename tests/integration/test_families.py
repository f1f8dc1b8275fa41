import base64

from petfamily.extensions import db
from petfamily.models.family import Family, FamilyMember


def test_create_family_makes_creator_sole_admin(app, client, make_user, login_as):
    user_id = make_user("ana@paws.io")
    login_as(user_id)
    rv = client.post("/api/families", json={"name": "Rivera", "description": "Home"})
    assert rv.status_code == 201
    family_id = rv.get_json()["id"]

    with app.app_context():
        rows = FamilyMember.query.filter_by(family_id=family_id).all()
        assert [(m.user_id, m.role) for m in rows] == [(user_id, "admin")]


def test_create_family_requires_name(client, make_user, login_as):
    login_as(make_user("ana@paws.io"))
    rv = client.post("/api/families", json={"description": "no name"})
    assert rv.status_code == 400
    assert "name" in rv.get_json()["errors"]


def test_create_family_requires_login(client):
    assert client.post("/api/families", json={"name": "X"}).status_code == 401


def test_list_families_returns_every_membership(client, login_as, sample_data):
    login_as(sample_data["admin"])
    rv = client.post("/api/families", json={"name": "Second home"})
    second = rv.get_json()["id"]

    rows = client.get("/api/families").get_json()
    assert {r["family"]["id"] for r in rows} == {sample_data["family"], second}
    assert all(r["role"] == "admin" for r in rows)


def test_list_families_empty(client, make_user, login_as):
    login_as(make_user("solo@paws.io"))
    assert client.get("/api/families").get_json() == []


def test_get_family_with_members(client, login_as, sample_data):
    login_as(sample_data["member"])
    rv = client.get(f"/api/families/{sample_data['family']}")
    assert rv.status_code == 200
    members = rv.get_json()["members"]
    assert {m["user"]["email"] for m in members} == {"ana@paws.io", "leo@paws.io"}


def test_get_family_not_found_and_not_member(client, login_as, sample_data):
    login_as(sample_data["outsider"])
    assert client.get("/api/families/nope").status_code == 404
    assert client.get(f"/api/families/{sample_data['family']}").status_code == 403


def test_admin_adds_member_by_email(client, login_as, sample_data, make_user):
    new_id = make_user("kim@paws.io")
    login_as(sample_data["admin"])
    rv = client.post(
        f"/api/families/{sample_data['family']}/members", json={"email": "kim@paws.io"}
    )
    assert rv.status_code == 201
    body = rv.get_json()
    assert body["userId"] == new_id
    assert body["role"] == "member"


def test_duplicate_membership_is_rejected(app, client, login_as, sample_data):
    login_as(sample_data["admin"])
    rv = client.post(
        f"/api/families/{sample_data['family']}/members",
        json={"userId": sample_data["member"]},
    )
    assert rv.status_code == 409
    with app.app_context():
        assert FamilyMember.query.filter_by(family_id=sample_data["family"]).count() == 2


def test_add_member_validation(client, login_as, sample_data):
    login_as(sample_data["admin"])
    url = f"/api/families/{sample_data['family']}/members"
    assert client.post(url, json={}).status_code == 400
    assert client.post(url, json={"userId": "ghost"}).status_code == 404
    rv = client.post(url, json={"userId": sample_data["outsider"], "role": "owner"})
    assert rv.status_code == 400


def test_member_cannot_add_members(client, login_as, sample_data):
    login_as(sample_data["member"])
    rv = client.post(
        f"/api/families/{sample_data['family']}/members",
        json={"userId": sample_data["outsider"]},
    )
    assert rv.status_code == 403


def test_user_can_belong_to_several_families(client, login_as, sample_data):
    login_as(sample_data["outsider"])
    client.post(
        f"/api/families/{sample_data['other_family']}/members",
        json={"userId": sample_data["member"]},
    )
    login_as(sample_data["member"])
    rows = client.get("/api/families").get_json()
    assert {r["family"]["id"] for r in rows} == {
        sample_data["family"],
        sample_data["other_family"],
    }


def test_member_leaves(app, client, login_as, sample_data):
    login_as(sample_data["member"])
    rv = client.delete(f"/api/families/{sample_data['family']}/members/me")
    assert rv.status_code == 200
    with app.app_context():
        assert FamilyMember.query.filter_by(user_id=sample_data["member"]).count() == 0


def test_leave_when_not_member(client, login_as, sample_data):
    login_as(sample_data["outsider"])
    rv = client.delete(f"/api/families/{sample_data['family']}/members/me")
    assert rv.status_code == 404


def test_admin_cannot_leave_while_others_remain(client, login_as, sample_data):
    login_as(sample_data["admin"])
    url = f"/api/families/{sample_data['family']}/members"
    rv = client.delete(f"{url}/me")
    assert rv.status_code == 400

    # same rule when the admin targets their own id
    rv = client.delete(f"{url}/{sample_data['admin']}")
    assert rv.status_code == 400


def test_sole_admin_may_leave_after_others_removed(app, client, login_as, sample_data):
    login_as(sample_data["admin"])
    url = f"/api/families/{sample_data['family']}/members"
    assert client.delete(f"{url}/{sample_data['member']}").status_code == 204
    assert client.delete(f"{url}/me").status_code == 200
    with app.app_context():
        assert FamilyMember.query.filter_by(family_id=sample_data["family"]).count() == 0
        assert db.session.get(Family, sample_data["family"]) is not None


def test_member_cannot_remove_others(client, login_as, sample_data):
    login_as(sample_data["member"])
    url = f"/api/families/{sample_data['family']}/members/{sample_data['admin']}"
    assert client.delete(url).status_code == 403


def test_role_change_keeps_an_admin(client, login_as, sample_data):
    login_as(sample_data["admin"])
    base = f"/api/families/{sample_data['family']}/members"
    rv = client.patch(f"{base}/{sample_data['admin']}", json={"role": "member"})
    assert rv.status_code == 400

    rv = client.patch(f"{base}/{sample_data['member']}", json={"role": "admin"})
    assert rv.status_code == 200
    assert rv.get_json()["role"] == "admin"

    # with a second admin the first one can step down and leave
    assert client.patch(f"{base}/{sample_data['admin']}", json={"role": "member"}).status_code == 200
    assert client.delete(f"{base}/me").status_code == 200


def test_sole_member_admin_cannot_demote_themselves(app, client, make_user, login_as):
    user_id = make_user("solo@paws.io")
    login_as(user_id)
    family_id = client.post("/api/families", json={"name": "Solo"}).get_json()["id"]

    rv = client.patch(f"/api/families/{family_id}/members/{user_id}", json={"role": "member"})
    assert rv.status_code == 400
    with app.app_context():
        roles = [m.role for m in FamilyMember.query.filter_by(family_id=family_id)]
    assert roles == ["admin"]


def test_delete_family_cascades(app, client, login_as, sample_data, add_note):
    add_note(sample_data["pet"], sample_data["member"], 1)
    login_as(sample_data["member"])
    assert client.delete(f"/api/families/{sample_data['family']}").status_code == 403

    login_as(sample_data["admin"])
    assert client.delete(f"/api/families/{sample_data['family']}").status_code == 204
    with app.app_context():
        assert db.session.get(Family, sample_data["family"]) is None
        assert FamilyMember.query.filter_by(family_id=sample_data["family"]).count() == 0


def test_family_qr_invite(client, login_as, sample_data):
    login_as(sample_data["member"])
    rv = client.get(f"/api/families/{sample_data['family']}/qr")
    assert rv.status_code == 200
    body = rv.get_json()
    invite = body["inviteData"]
    assert invite["type"] == "family-invite"
    assert invite["familyId"] == sample_data["family"]
    assert invite["familyName"] == "Rivera"
    assert isinstance(invite["timestamp"], int)

    prefix = "data:image/png;base64,"
    assert body["qrCode"].startswith(prefix)
    assert base64.b64decode(body["qrCode"][len(prefix):])[:8] == b"\x89PNG\r\n\x1a\n"


def test_family_qr_not_found(client, login_as, sample_data):
    login_as(sample_data["admin"])
    assert client.get("/api/families/missing/qr").status_code == 404
