"""Owner-scoped user link API and the user-facing catalog."""

from uuid import uuid4

import pytest


@pytest.fixture
def service_id(client, admin_headers):
    response = client.post(
        "/api/admin/services", json={"name": "Twitter", "slug": "twitter"}, headers=admin_headers
    )
    return response.json()["data"]["id"]


def create_link(client, user_id, headers, service_id, **extra):
    return client.post(
        f"/api/users/{user_id}/links",
        json={"serviceId": service_id, "url": "https://x.com/me", **extra},
        headers=headers,
    )


class TestCatalogForUsers:
    def test_users_see_active_services_only(self, client, admin_headers, headers_a, service_id):
        hidden = client.post(
            "/api/admin/services", json={"name": "Old", "slug": "old"}, headers=admin_headers
        ).json()["data"]["id"]
        client.patch(
            f"/api/admin/services/{hidden}", json={"isActive": False}, headers=admin_headers
        )

        user_view = client.get("/api/services", headers=headers_a).json()
        admin_view = client.get("/api/services", headers=admin_headers).json()

        assert [s["slug"] for s in user_view["data"]["services"]] == ["twitter"]
        assert admin_view["data"]["total"] == 2
        assert client.get(f"/api/services/{hidden}", headers=headers_a).status_code == 404

    def test_catalog_requires_auth(self, client):
        assert client.get("/api/services").status_code == 401


class TestCreate:
    def test_create(self, client, user_a, headers_a, service_id):
        response = create_link(client, user_a, headers_a, service_id, title="Me")

        assert response.status_code == 201
        link = response.json()["data"]
        assert link["userId"] == str(user_a)
        assert link["sortOrder"] == 1
        assert link["iconId"] is None
        assert link["useOriginalIcon"] is False

    def test_create_for_someone_else_forbidden(self, client, user_a, headers_b, service_id):
        response = create_link(client, user_a, headers_b, service_id)

        assert response.status_code == 403

    def test_unsafe_url_rejected(self, client, user_a, headers_a, service_id):
        response = client.post(
            f"/api/users/{user_a}/links",
            json={"serviceId": service_id, "url": "javascript:alert(1)"},
            headers=headers_a,
        )

        assert response.status_code == 400
        assert "url" in {e["field"] for e in response.json()["errors"]}

    def test_unknown_service(self, client, user_a, headers_a):
        response = create_link(client, user_a, headers_a, str(uuid4()))

        assert response.status_code == 400


class TestOwnership:
    def test_other_user_cannot_patch(self, client, user_a, user_b, headers_a, headers_b,
                                     service_id):
        link_id = create_link(client, user_a, headers_a, service_id).json()["data"]["id"]

        # Through the owner's path and through their own path
        via_owner_path = client.patch(
            f"/api/users/{user_a}/links/{link_id}", json={"title": "Hijack"}, headers=headers_b
        )
        via_own_path = client.patch(
            f"/api/users/{user_b}/links/{link_id}", json={"title": "Hijack"}, headers=headers_b
        )

        assert via_owner_path.status_code == 403
        assert via_own_path.status_code == 403

    def test_other_user_cannot_patch_with_invalid_payload(
        self, client, user_a, user_b, headers_a, headers_b, service_id
    ):
        link_id = create_link(client, user_a, headers_a, service_id).json()["data"]["id"]

        response = client.patch(
            f"/api/users/{user_b}/links/{link_id}",
            json={"url": "javascript:alert(1)"},
            headers=headers_b,
        )

        assert response.status_code == 403

    def test_other_user_cannot_delete(self, client, user_a, user_b, headers_a, headers_b,
                                      service_id):
        link_id = create_link(client, user_a, headers_a, service_id).json()["data"]["id"]

        response = client.delete(f"/api/users/{user_b}/links/{link_id}", headers=headers_b)

        assert response.status_code == 403
        links = client.get(f"/api/users/{user_a}/links", headers=headers_a).json()
        assert links["data"]["total"] == 1

    def test_other_user_cannot_read(self, client, user_a, headers_b):
        assert client.get(f"/api/users/{user_a}/links", headers=headers_b).status_code == 403

    def test_admin_can_read(self, client, user_a, headers_a, admin_headers, service_id):
        create_link(client, user_a, headers_a, service_id)

        body = client.get(f"/api/users/{user_a}/links", headers=admin_headers).json()

        assert body["data"]["total"] == 1


class TestUpdate:
    def test_empty_icon_id_clears_icon(self, client, admin_headers, user_a, headers_a,
                                       service_id):
        icon_id = client.post(
            "/api/admin/icons",
            data={"name": "Bird", "serviceId": service_id, "style": "FILLED",
                  "colorScheme": "ORIGINAL"},
            files={"file": ("bird.svg", b"<svg/>", "image/svg+xml")},
            headers=admin_headers,
        ).json()["data"]["id"]
        link_id = create_link(client, user_a, headers_a, service_id, iconId=icon_id).json()[
            "data"
        ]["id"]

        response = client.patch(
            f"/api/users/{user_a}/links/{link_id}", json={"iconId": ""}, headers=headers_a
        )

        assert response.status_code == 200
        assert response.json()["data"]["iconId"] is None

    def test_missing_link(self, client, user_a, headers_a):
        response = client.patch(
            f"/api/users/{user_a}/links/{uuid4()}", json={"title": "x"}, headers=headers_a
        )

        assert response.status_code == 404

    def test_delete(self, client, user_a, headers_a, service_id):
        link_id = create_link(client, user_a, headers_a, service_id).json()["data"]["id"]

        response = client.delete(f"/api/users/{user_a}/links/{link_id}", headers=headers_a)

        assert response.status_code == 200
        assert response.json()["message"] == "Link deleted"


class TestReorder:
    def test_reorder_then_list(self, client, user_a, headers_a, service_id):
        first = create_link(client, user_a, headers_a, service_id).json()["data"]["id"]
        second = create_link(client, user_a, headers_a, service_id).json()["data"]["id"]

        response = client.patch(
            f"/api/users/{user_a}/links/reorder",
            json={"items": [{"id": second, "sortOrder": 0}, {"id": first, "sortOrder": 1}]},
            headers=headers_a,
        )

        assert response.status_code == 200
        assert response.json()["success"] is True
        listing = client.get(f"/api/users/{user_a}/links", headers=headers_a).json()
        assert [link["id"] for link in listing["data"]["links"]] == [second, first]

    def test_reorder_with_links_key(self, client, user_a, headers_a, service_id):
        first = create_link(client, user_a, headers_a, service_id).json()["data"]["id"]
        second = create_link(client, user_a, headers_a, service_id).json()["data"]["id"]

        response = client.patch(
            f"/api/users/{user_a}/links/reorder",
            json={"links": [{"id": second, "sortOrder": 0}, {"id": first, "sortOrder": 1}]},
            headers=headers_a,
        )

        assert response.status_code == 200
        assert response.json()["data"]["updated"] == 2
        listing = client.get(f"/api/users/{user_a}/links", headers=headers_a).json()
        assert [link["id"] for link in listing["data"]["links"]] == [second, first]

    def test_reorder_empty_list(self, client, user_a, headers_a):
        response = client.patch(
            f"/api/users/{user_a}/links/reorder", json={"items": []}, headers=headers_a
        )

        assert response.status_code == 400

    def test_reorder_other_users_links(self, client, user_a, headers_a, headers_b, service_id):
        link_id = create_link(client, user_a, headers_a, service_id).json()["data"]["id"]

        response = client.patch(
            f"/api/users/{user_a}/links/reorder", json={"ids": [link_id]}, headers=headers_b
        )

        assert response.status_code == 403


class TestOriginalIcon:
    def test_upload_svg(self, client, user_a, headers_a):
        response = client.post(
            f"/api/users/{user_a}/links/original-icon",
            files={"file": ("mine.svg", b"<svg/>", "image/svg+xml")},
            headers=headers_a,
        )

        assert response.status_code == 201
        url = response.json()["data"]["url"]
        assert url.startswith(f"/api/files/user-icons/{user_a}/")
        assert client.get(url).content == b"<svg/>"

    def test_png_rejected(self, client, user_a, headers_a):
        response = client.post(
            f"/api/users/{user_a}/links/original-icon",
            files={"file": ("mine.png", b"\x89PNG", "image/png")},
            headers=headers_a,
        )

        assert response.status_code == 400


class TestRateLimit:
    def test_mutations_limited_per_caller(self, client, user_a, user_b, headers_a, headers_b,
                                          service_id):
        from src.api.main import app
        from src.app_shell.rate_limit import RateLimiter
        from src.rules.models import RateLimitRules, RateLimitWindow

        app.state.rate_limiter = RateLimiter(
            RateLimitRules(mutations=RateLimitWindow(window_seconds=60, max_requests=1))
        )

        assert create_link(client, user_a, headers_a, service_id).status_code == 201
        limited = create_link(client, user_a, headers_a, service_id)

        assert limited.status_code == 429
        assert int(limited.headers["retry-after"]) > 0
        assert limited.json()["success"] is False
        # Reads are not limited and other callers have their own window
        assert client.get(f"/api/users/{user_a}/links", headers=headers_a).status_code == 200
        assert create_link(client, user_b, headers_b, service_id).status_code == 201


def upload_icon(client, admin_headers, service_id, name="Bird"):
    return client.post(
        "/api/admin/icons",
        data={"name": name, "serviceId": service_id, "style": "FILLED",
              "colorScheme": "ORIGINAL"},
        files={"file": ("bird.svg", b"<svg/>", "image/svg+xml")},
        headers=admin_headers,
    ).json()["data"]


class TestEmbeddedCatalog:
    def test_links_carry_service_and_icon(self, client, admin_headers, user_a, headers_a,
                                          service_id):
        icon = upload_icon(client, admin_headers, service_id)

        created = create_link(client, user_a, headers_a, service_id, iconId=icon["id"])
        listing = client.get(f"/api/users/{user_a}/links", headers=headers_a).json()

        for link in (created.json()["data"], listing["data"]["links"][0]):
            assert link["service"] == {
                "id": service_id,
                "name": "Twitter",
                "slug": "twitter",
                "description": None,
                "baseUrl": None,
                "allowOriginalIcon": True,
            }
            assert link["icon"] == {
                "id": icon["id"],
                "name": "Bird",
                "filePath": icon["filePath"],
                "style": "FILLED",
                "colorScheme": "ORIGINAL",
            }

    def test_link_without_icon(self, client, user_a, headers_a, service_id):
        link_id = create_link(client, user_a, headers_a, service_id).json()["data"]["id"]

        response = client.patch(
            f"/api/users/{user_a}/links/{link_id}", json={"title": "Me"}, headers=headers_a
        )

        link = response.json()["data"]
        assert link["service"]["slug"] == "twitter"
        assert link["icon"] is None


class TestInactiveCatalog:
    def test_cannot_link_inactive_service(self, client, admin_headers, user_a, headers_a,
                                          service_id):
        client.patch(
            f"/api/admin/services/{service_id}", json={"isActive": False}, headers=admin_headers
        )

        response = create_link(client, user_a, headers_a, service_id)

        assert response.status_code == 400
        links = client.get(f"/api/users/{user_a}/links", headers=headers_a).json()
        assert links["data"]["total"] == 0

    def test_cannot_link_inactive_icon(self, client, admin_headers, user_a, headers_a,
                                       service_id):
        icon_id = upload_icon(client, admin_headers, service_id)["id"]
        client.patch(
            f"/api/admin/icons/{icon_id}", json={"isActive": False}, headers=admin_headers
        )

        response = create_link(client, user_a, headers_a, service_id, iconId=icon_id)

        assert response.status_code == 400

    def test_icons_of_inactive_service_hidden_from_users(self, client, admin_headers,
                                                         headers_a, service_id):
        upload_icon(client, admin_headers, service_id)
        client.patch(
            f"/api/admin/services/{service_id}", json={"isActive": False}, headers=admin_headers
        )

        user_view = client.get(f"/api/services/{service_id}/icons", headers=headers_a)
        admin_view = client.get(f"/api/services/{service_id}/icons", headers=admin_headers)

        assert user_view.status_code == 404
        assert admin_view.json()["data"]["total"] == 1
