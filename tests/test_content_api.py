"""API tests for the content routes."""

import pytest
import pytest_asyncio
from sqlalchemy import select

from deptcms.models.content import Content
from deptcms.models.content_view import ContentView
from deptcms.services.auth_service import AuthService
from deptcms.utils.auth import create_access_token
from factories import make_content

ADMIN = {"identity": "admin@college.edu"}
CSE = {"identity": "cse@college.edu"}
ECE = {"identity": "ece@college.edu"}


@pytest_asyncio.fixture
async def catalog(session, admin, cse_member, ece_member):
    return {
        "A": await make_content(session, "A", "ALL", minutes=0),
        "B": await make_content(session, "B", "CSE", minutes=10),
        "C": await make_content(session, "C", "CSE,ECE", minutes=20),
    }


def _titles(response) -> list:
    return [item["title"] for item in response.json()["data"]]


class TestListContent:
    @pytest.mark.asyncio
    async def test_member_sees_own_department(self, client, catalog):
        response = await client.get("/content", params=CSE)

        assert response.status_code == 200
        assert _titles(response) == ["C", "B", "A"]

    @pytest.mark.asyncio
    async def test_other_department_is_filtered(self, client, catalog):
        response = await client.get("/content", params=ECE)

        assert _titles(response) == ["C", "A"]

    @pytest.mark.asyncio
    async def test_admin_sees_everything(self, client, catalog, session):
        await make_content(session, "Broken", "", minutes=30)

        response = await client.get("/content", params=ADMIN)

        assert _titles(response) == ["Broken", "C", "B", "A"]

    @pytest.mark.asyncio
    async def test_admin_can_preview_a_department(self, client, catalog):
        response = await client.get("/content", params={**ADMIN, "department": "ece"})

        assert _titles(response) == ["C", "A"]

    @pytest.mark.asyncio
    async def test_member_cannot_widen_their_view(self, client, catalog):
        response = await client.get("/content", params={**ECE, "department": "CSE"})

        assert _titles(response) == ["C", "A"]

    @pytest.mark.asyncio
    async def test_bearer_token_identifies_caller(self, client, catalog, ece_member):
        token = create_access_token({"sub": ece_member.id})

        response = await client.get("/content", headers={"Authorization": f"Bearer {token}"})

        assert _titles(response) == ["C", "A"]

    @pytest.mark.asyncio
    async def test_anonymous_caller_is_rejected(self, client, catalog):
        response = await client.get("/content")

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_unknown_caller_is_rejected(self, client, catalog):
        response = await client.get("/content", params={"identity": "nobody@college.edu"})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_view_counts_are_reported(self, client, catalog):
        await client.post(f"/content/{catalog['B'].id}/view", json={"viewerIdentity": "cse@college.edu"})

        response = await client.get("/content", params=CSE)

        counts = {item["title"]: item["viewCount"] for item in response.json()["data"]}
        assert counts == {"A": 0, "B": 1, "C": 0}


class TestBlockedCaller:
    @pytest.mark.asyncio
    async def test_blocked_member_is_refused_by_identity(self, client, catalog, cse_member, session):
        await AuthService.block(session, cse_member, 10)

        response = await client.get("/content", params=CSE)

        assert response.status_code == 403
        assert response.json()["detail"]["code"] == "blocked"

    @pytest.mark.asyncio
    async def test_token_issued_before_block_is_refused(self, client, catalog, cse_member, session):
        token = create_access_token({"sub": cse_member.id})
        await AuthService.block(session, cse_member, 10)

        response = await client.get("/content", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 403
        assert response.json()["detail"]["code"] == "blocked"

    @pytest.mark.asyncio
    async def test_unblocked_member_gets_through_again(self, client, catalog, cse_member, session):
        await AuthService.block(session, cse_member, 10)
        await AuthService.unblock(session, cse_member)

        response = await client.get("/content", params=CSE)

        assert response.status_code == 200


class TestLogView:
    @pytest.mark.asyncio
    async def test_logging_twice_counts_once(self, client, catalog):
        url = f"/content/{catalog['B'].id}/view"

        first = await client.post(url, json={"viewerIdentity": "x@y.com"})
        second = await client.post(url, json={"viewerIdentity": "x@y.com"})

        assert first.status_code == second.status_code == 200
        assert first.json()["data"]["created"] is True
        assert second.json()["data"]["created"] is False

    @pytest.mark.asyncio
    async def test_legacy_field_name_is_accepted(self, client, catalog):
        response = await client.post(
            f"/content/{catalog['A'].id}/view", json={"viewer_email": "x@y.com"}
        )

        assert response.status_code == 200
        assert response.json()["data"]["viewerIdentity"] == "x@y.com"

    @pytest.mark.asyncio
    async def test_missing_viewer_is_bad_request(self, client, catalog):
        response = await client.post(f"/content/{catalog['A'].id}/view", json={})

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "invalid_input"

    @pytest.mark.asyncio
    async def test_unknown_content_is_not_found(self, client, catalog):
        response = await client.post("/content/9999/view", json={"viewerIdentity": "x@y.com"})

        assert response.status_code == 404


class TestViewLog:
    @pytest.mark.asyncio
    async def test_admin_gets_log(self, client, catalog):
        url = f"/content/{catalog['A'].id}"
        await client.post(f"{url}/view", json={"viewerIdentity": "one@y.com"})
        await client.post(f"{url}/view", json={"viewerIdentity": "two@y.com"})

        response = await client.get(f"{url}/views", params={"admin": "admin@college.edu"})

        assert response.status_code == 200
        assert [row["viewerIdentity"] for row in response.json()["data"]] == ["two@y.com", "one@y.com"]

    @pytest.mark.asyncio
    async def test_member_is_forbidden(self, client, catalog):
        response = await client.get(
            f"/content/{catalog['A'].id}/views", params={"admin": "cse@college.edu"}
        )

        assert response.status_code == 403


class TestPublishContent:
    @pytest.mark.asyncio
    async def test_admin_publishes_with_media(self, client, admin, media_storage, session_factory):
        response = await client.post(
            "/content",
            params=ADMIN,
            data={"title": "Timetable", "body": "Week 1", "departments": "ece, cse"},
            files={"media": ("timetable.png", b"\x89PNG", "image/png")},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["author"] == "admin@college.edu"
        assert data["departments"] == ["CSE", "ECE"]
        assert data["media"]["originalName"] == "timetable.png"
        assert data["media"]["mimeType"] == "image/png"
        assert media_storage.path_for(data["media"]["filename"]).exists()

        async with session_factory() as check:
            stored = (await check.execute(select(Content))).scalar_one()
        assert stored.departments == "CSE,ECE"

    @pytest.mark.asyncio
    async def test_publish_without_media(self, client, admin):
        response = await client.post(
            "/content", params=ADMIN, data={"title": "Notice", "departments": "ALL,CSE"}
        )

        assert response.status_code == 200
        assert response.json()["data"]["departments"] == ["ALL"]
        assert response.json()["data"]["media"] is None

    @pytest.mark.asyncio
    async def test_oversized_media_is_rejected(self, client, admin, media_storage, session_factory):
        response = await client.post(
            "/content",
            params=ADMIN,
            data={"title": "Video", "departments": "CSE"},
            files={"media": ("lecture.mp4", b"x" * 4096, "video/mp4")},
        )

        assert response.status_code == 400
        assert list(media_storage.base_path.iterdir()) == []
        async with session_factory() as check:
            assert (await check.execute(select(Content))).first() is None

    @pytest.mark.asyncio
    async def test_departments_are_required(self, client, admin):
        response = await client.post("/content", params=ADMIN, data={"title": "Notice"})

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_member_cannot_publish(self, client, cse_member):
        response = await client.post(
            "/content", params=CSE, data={"title": "Notice", "departments": "CSE"}
        )

        assert response.status_code == 403


class TestUpdateAndDelete:
    @pytest.mark.asyncio
    async def test_admin_updates_title_and_body(self, client, catalog):
        response = await client.put(
            f"/content/{catalog['B'].id}",
            params=ADMIN,
            json={"title": "B2", "body": "new body"},
        )

        assert response.status_code == 200
        assert response.json()["data"]["title"] == "B2"
        assert response.json()["data"]["body"] == "new body"
        assert response.json()["data"]["departments"] == ["CSE"]

    @pytest.mark.asyncio
    async def test_member_cannot_update(self, client, catalog):
        response = await client.put(f"/content/{catalog['B'].id}", params=CSE, json={"title": "x"})

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_update_unknown_content(self, client, admin):
        response = await client.put("/content/9999", params=ADMIN, json={"title": "x"})

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_removes_views_and_media(self, client, admin, media_storage, session_factory):
        published = await client.post(
            "/content",
            params=ADMIN,
            data={"title": "Poster", "departments": "CSE"},
            files={"media": ("poster.jpg", b"jpeg", "image/jpeg")},
        )
        data = published.json()["data"]
        await client.post(f"/content/{data['id']}/view", json={"viewerIdentity": "x@y.com"})

        response = await client.request("DELETE", f"/content/{data['id']}", params=ADMIN)

        assert response.status_code == 200
        assert not media_storage.path_for(data["media"]["filename"]).exists()
        async with session_factory() as check:
            assert (await check.execute(select(Content))).first() is None
            assert (await check.execute(select(ContentView))).first() is None

    @pytest.mark.asyncio
    async def test_member_cannot_delete(self, client, catalog):
        response = await client.request("DELETE", f"/content/{catalog['A'].id}", params=CSE)

        assert response.status_code == 403
