from __future__ import annotations

import src.rooms.service as rooms_service
from src.rooms.join_codes import JoinCodeExhausted
from tests.conftest import auth_headers, membership_role, new_user_id, seed_profile, seed_room


def test_create_room_makes_creator_admin(api_client, session_factory) -> None:
    creator = new_user_id()

    response = api_client.post(
        "/rooms/create",
        json={"name": "Design Club", "description": "Pixels and type"},
        headers=auth_headers(creator),
    )

    assert response.status_code == 201
    room = response.json()["room"]
    assert room["slug"] == "design-club"
    assert room["created_by"] == creator
    assert len(room["join_code"]) == 4 and room["join_code"].isdigit()
    assert room["join_code_display"] == f"{room['join_code'][:2]} {room['join_code'][2:]}"
    assert membership_role(session_factory, room["id"], creator) == "admin"


def test_create_room_suffixes_duplicate_slug(api_client, session_factory) -> None:
    seed_room(session_factory, created_by=new_user_id(), slug="design-club", join_code="1111")

    response = api_client.post("/rooms/create", json={"name": "Design Club!"}, headers=auth_headers(new_user_id()))

    assert response.status_code == 201
    assert response.json()["room"]["slug"] == "design-club-1"


def test_create_room_validates_name(api_client) -> None:
    response = api_client.post("/rooms/create", json={"name": "ab"}, headers=auth_headers(new_user_id()))
    assert response.status_code == 400


def test_create_room_reports_exhausted_join_codes(api_client, monkeypatch) -> None:
    def exhausted(*args, **kwargs):
        raise JoinCodeExhausted("no codes")

    monkeypatch.setattr(rooms_service, "allocate_join_code", exhausted)

    response = api_client.post("/rooms/create", json={"name": "Full House"}, headers=auth_headers(new_user_id()))

    assert response.status_code == 500
    assert "join code" in response.json()["detail"]


def test_join_room_by_code(api_client, session_factory) -> None:
    room = seed_room(session_factory, created_by=new_user_id(), join_code="0042")
    joiner = new_user_id()

    response = api_client.post("/rooms/join", json={"joinCode": "00 42"}, headers=auth_headers(joiner))

    assert response.status_code == 200
    assert response.json()["room"]["id"] == room.id
    assert membership_role(session_factory, room.id, joiner) == "member"


def test_join_room_twice_conflicts_with_room_payload(api_client, session_factory) -> None:
    room = seed_room(session_factory, created_by=new_user_id(), join_code="4821")
    joiner = new_user_id()
    api_client.post("/rooms/join", json={"joinCode": "4821"}, headers=auth_headers(joiner))

    response = api_client.post("/rooms/join", json={"joinCode": "4821"}, headers=auth_headers(joiner))

    assert response.status_code == 409
    payload = response.json()
    assert payload["detail"] == "Already a member of this room"
    assert payload["room"] == {"id": room.id, "name": room.name, "slug": room.slug}


def test_join_room_errors(api_client) -> None:
    headers = auth_headers(new_user_id())

    assert api_client.post("/rooms/join", json={"joinCode": "12"}, headers=headers).status_code == 400
    assert api_client.post("/rooms/join", json={"joinCode": "9999"}, headers=headers).status_code == 404
    assert api_client.post("/rooms/join", json={"joinCode": "9999"}).status_code == 401


def test_get_room_hides_join_code_from_non_members(api_client, session_factory) -> None:
    creator = new_user_id()
    seed_room(session_factory, created_by=creator)

    public = api_client.get("/rooms/design-club")
    assert public.status_code == 200
    assert public.json()["room"]["join_code"] is None

    member_view = api_client.get("/rooms/design-club", headers=auth_headers(creator))
    assert member_view.json()["room"]["join_code"] == "4821"

    assert api_client.get("/rooms/unknown-room").status_code == 404


def test_list_room_members_requires_membership(api_client, session_factory) -> None:
    creator = new_user_id()
    member = new_user_id()
    seed_profile(session_factory, user_id=creator, username="ada", full_name="Ada Lovelace")
    seed_room(session_factory, created_by=creator, members=[member])

    response = api_client.get("/rooms/design-club/members", headers=auth_headers(member))
    assert response.status_code == 200
    members = response.json()["members"]
    assert [item["user_id"] for item in members] == [creator, member]
    assert members[0]["role"] == "admin"
    assert members[0]["username"] == "ada"
    assert members[1]["username"] is None

    outsider = api_client.get("/rooms/design-club/members", headers=auth_headers(new_user_id()))
    assert outsider.status_code == 403
