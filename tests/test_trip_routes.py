from conftest import ALICE, BOB, CAROL, ADMIN, auth


def _create(client, principal=ALICE, **overrides):
    body = {
        "title": "Busan beach",
        "content": "Haeundae at sunrise.",
        "hashtag": "#busan",
        "location": "Busan",
        "country": "Korea",
        "images": ["https://img.example.com/busan.jpg"],
    }
    body.update(overrides)
    return client.post("/api/trip/", json=body, headers=auth(principal))


def test_create_and_get(client):
    resp = _create(client)
    assert resp.status_code == 201
    payload = resp.json()
    assert payload["code"] == 201
    tid = payload["data"]["tid"]
    assert payload["data"]["email"] == ALICE.email

    resp = client.get(f"/api/trip/{tid}", headers=auth(BOB))
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["email"] is None
    assert data["nickname"] == "alice"
    assert data["views"] == 1

    resp = client.get(f"/api/trip/{tid}", headers=auth(BOB))
    assert resp.json()["data"]["views"] == 1


def test_create_requires_identity(client):
    resp = client.post("/api/trip/", json={"title": "t", "content": "c", "hashtag": "#h"})
    assert resp.status_code == 401
    assert resp.json()["code"] == 401


def test_create_validation_errors(client):
    missing = client.post("/api/trip/", json={"content": "c", "hashtag": "#h"}, headers=auth(ALICE))
    assert missing.status_code == 400

    unknown_field = _create(client, likes=99)
    assert unknown_field.status_code == 400

    blank = _create(client, title="   ")
    assert blank.status_code == 400


def test_create_notifies_followers(client, follow, dispatcher):
    follow(BOB, ALICE)
    resp = _create(client)
    assert resp.status_code == 201
    assert dispatcher.calls[0]["recipients"] == [BOB.email]
    assert dispatcher.calls[0]["ref_id"] == resp.json()["data"]["tid"]


def test_guest_route_does_not_count(client):
    tid = _create(client).json()["data"]["tid"]

    resp = client.get(f"/api/trip/guest/{tid}")
    assert resp.status_code == 200
    assert resp.json()["data"]["views"] == 0


def test_hidden_trip_is_404_for_others(client):
    tid = _create(client, is_public=False).json()["data"]["tid"]

    assert client.get(f"/api/trip/{tid}", headers=auth(BOB)).status_code == 404
    assert client.get(f"/api/trip/guest/{tid}").status_code == 404
    assert client.get(f"/api/trip/{tid}", headers=auth(ALICE)).status_code == 200


def test_missing_trip_is_404(client):
    resp = client.get("/api/trip/does-not-exist", headers=auth(BOB))
    assert resp.status_code == 404
    assert resp.json()["data"] is None


def test_update_permissions(client):
    tid = _create(client).json()["data"]["tid"]
    body = {"title": "Busan at night", "content": "Gwangalli bridge.", "hashtag": "#busan"}

    denied = client.patch(f"/api/trip/{tid}", json=body, headers=auth(CAROL))
    assert denied.status_code == 403

    ok = client.patch(f"/api/trip/{tid}", json=body, headers=auth(ALICE))
    assert ok.status_code == 200
    assert ok.json()["data"]["title"] == "Busan at night"
    assert ok.json()["data"]["updated_at"] is not None

    missing = client.patch("/api/trip/nope", json=body, headers=auth(ALICE))
    assert missing.status_code == 404


def test_modify_route_owner_only(client):
    tid = _create(client).json()["data"]["tid"]

    assert client.get(f"/api/trip/modify/{tid}", headers=auth(ALICE)).status_code == 200
    assert client.get(f"/api/trip/modify/{tid}", headers=auth(BOB)).status_code == 403
    assert client.get(f"/api/trip/modify/{tid}").status_code == 401


def test_delete(client):
    tid = _create(client).json()["data"]["tid"]

    assert client.delete(f"/api/trip/{tid}", headers=auth(BOB)).status_code == 403

    resp = client.delete(f"/api/trip/{tid}", headers=auth(ALICE))
    assert resp.status_code == 200
    assert resp.json()["data"] is True

    assert client.get(f"/api/trip/{tid}", headers=auth(BOB)).status_code == 404
    mine = client.get("/api/trip/trips/myTrips", headers=auth(ALICE)).json()["data"]
    assert mine["items"][0]["is_hidden"] is True


def test_listings(client, follow):
    follow(CAROL, ALICE)
    _create(client, title="Seoul", country="Korea")
    _create(client, title="Osaka", country="Japan")
    _create(client, principal=BOB, title="Lisbon", country="Portugal")

    guest = client.get("/api/trip/guest/trips").json()["data"]
    assert guest["total"] == 3

    paged = client.get("/api/trip/guest/trips", params={"page": 1, "page_size": 2}).json()["data"]
    assert paged["total"] == 3
    assert paged["count"] == 1

    by_nick = client.get("/api/trip/nickname", params={"nickname": "alice"}).json()["data"]
    assert by_nick["total"] == 2

    following = client.get("/api/trip/list/following", headers=auth(CAROL)).json()["data"]
    assert {t["title"] for t in following["items"]} == {"Seoul", "Osaka"}

    search = client.get("/api/trip/search", params={"keyword": "lisbon"}).json()["data"]
    assert [t["title"] for t in search["items"]] == ["Lisbon"]

    freqs = client.get("/api/trip/nickname/trips/country-frequencies", params={"nickname": "alice"})
    assert freqs.json()["data"] == [{"country": "Japan", "count": 1}, {"country": "Korea", "count": 1}]

    in_japan = client.get("/api/trip/nickname/trips/country/Japan", params={"nickname": "alice"})
    assert [t["title"] for t in in_japan.json()["data"]["items"]] == ["Osaka"]


def test_unknown_nickname_is_404(client):
    assert client.get("/api/trip/nickname", params={"nickname": "ghost"}).status_code == 404


def test_admin_route(client):
    _create(client, is_public=False)

    assert client.get("/api/trip/admin/trips", headers=auth(BOB)).status_code == 403
    resp = client.get("/api/trip/admin/trips", headers=auth(ADMIN))
    assert resp.status_code == 200
    assert resp.json()["data"]["total"] == 1


def test_like_routes(client):
    tid = _create(client).json()["data"]["tid"]

    liked = client.post("/api/trip/like", json={"tid": tid}, headers=auth(BOB))
    assert liked.status_code == 200
    assert liked.json()["data"]["deleted_at"] is None

    again = client.post("/api/trip/like", json={"tid": tid}, headers=auth(BOB))
    assert again.status_code == 409

    state = client.get(f"/api/trip/like/{tid}", headers=auth(BOB)).json()["data"]
    assert state == {"trip_id": tid, "is_liked": True, "likes": 1}

    toggled = client.post("/api/trip/toggle-like", json={"tid": tid}, headers=auth(BOB)).json()["data"]
    assert toggled["is_liked"] is False
    assert toggled["likes"] == 0

    not_liked = client.post("/api/trip/unlike", json={"tid": tid}, headers=auth(BOB))
    assert not_liked.status_code == 409

    view = client.get(f"/api/trip/{tid}", headers=auth(BOB)).json()["data"]
    assert view["likes"] == 0
    assert view["is_liked"] is False


def test_like_routes_errors(client):
    assert client.post("/api/trip/like", json={"tid": "x"}).status_code == 401
    assert client.post("/api/trip/toggle-like", json={"tid": "missing"}, headers=auth(BOB)).status_code == 404
    assert client.post("/api/trip/like", json={}, headers=auth(BOB)).status_code == 400


def test_paging_bounds_are_validated(client):
    _create(client)

    assert client.get("/api/trip/guest/trips", params={"page": -1}).status_code == 400
    assert client.get("/api/trip/guest/trips", params={"page_size": 0}).status_code == 400
    assert client.get("/api/trip/guest/trips", params={"page_size": 101}).status_code == 400
    assert client.get("/api/trip/trips/myTrips", params={"page": -3}, headers=auth(ALICE)).status_code == 400
    assert client.get("/api/trip/search", params={"keyword": "busan", "page_size": -1}).status_code == 400
    assert client.get("/api/trip/guest/trips", params={"page": 0, "page_size": 100}).status_code == 200


def test_like_routes_unknown_user(client):
    tid = _create(client).json()["data"]["tid"]
    ghost = {"X-Auth-Email": "ghost@nowhere.com"}

    assert client.post("/api/trip/like", json={"tid": tid}, headers=ghost).status_code == 404
    assert client.post("/api/trip/toggle-like", json={"tid": tid}, headers=ghost).status_code == 404
    assert client.get(f"/api/trip/like/{tid}", headers=auth(BOB)).json()["data"]["likes"] == 0
