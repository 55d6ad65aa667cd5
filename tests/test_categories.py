"""
Tests for the category endpoints under /v2/categories.
"""
from fastapi import status

from models.lifecycle import ActiveState

PNG = b"\x89PNG\r\n\x1a\nfake"


class TestCategoryListing:
    """Test flat and nested category listings."""

    def test_tree_by_default(self, client, make_category):
        """Test the default listing nests children under parents."""
        tools = make_category("Tools")
        make_category("Hammers", parent_id=tools.id)
        make_category("Garden")

        data = client.get("/v2/categories").json()["data"]

        assert [node["name"] for node in data] == ["Garden", "Tools"]
        assert [child["name"] for child in data[1]["children"]] == ["Hammers"]
        assert data[1]["children"][0]["parentId"] == tools.id

    def test_flat(self, client, make_category):
        """Test flat=true returns every active category without nesting."""
        tools = make_category("Tools")
        make_category("Hammers", parent_id=tools.id)

        data = client.get("/v2/categories", params={"flat": "true"}).json()["data"]

        assert [c["name"] for c in data] == ["Hammers", "Tools"]
        assert all("children" not in c for c in data)

    def test_inactive_hidden_but_fetchable(self, client, make_category):
        """Test deactivated categories leave the listing but keep their detail."""
        make_category("Tools")
        gone = make_category("Gone", is_active=ActiveState.INACTIVE)

        names = [c["name"] for c in client.get("/v2/categories", params={"flat": "true"}).json()["data"]]
        assert names == ["Tools"]

        response = client.get(f"/v2/categories/{gone.id}")
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["isActive"] == ActiveState.INACTIVE

    def test_inactive_parent_hides_children_from_tree(self, client, make_category):
        """Test active children of a deactivated parent are only in the flat listing."""
        tools = make_category("Tools", is_active=ActiveState.INACTIVE)
        make_category("Hammers", parent_id=tools.id)
        make_category("Garden")

        tree = client.get("/v2/categories").json()["data"]
        flat = client.get("/v2/categories", params={"flat": "true"}).json()["data"]

        assert [node["name"] for node in tree] == ["Garden"]
        assert tree[0]["children"] == []
        assert [c["name"] for c in flat] == ["Garden", "Hammers"]

    def test_include_inactive(self, client, make_category):
        """Test includeInactive lists deactivated categories too."""
        make_category("Tools")
        make_category("Gone", is_active=ActiveState.INACTIVE)

        data = client.get("/v2/categories", params={"flat": "true", "includeInactive": "true"}).json()["data"]

        assert len(data) == 2

    def test_get_unknown(self, client):
        """Test unknown ids are a 404."""
        response = client.get("/v2/categories/999")
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"] == "Category not found"


class TestCategoryWrites:
    """Test category creation, updates and deactivation."""

    def test_create(self, client, auth_headers):
        """Test a root category is created with a generated slug."""
        response = client.post("/v2/categories", json={"name": "Hand Tools"}, headers=auth_headers)
        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()["data"]
        assert data["slug"] == "hand-tools"
        assert data["parentId"] is None

    def test_create_child(self, client, auth_headers, make_category):
        """Test parentId links the new category."""
        tools = make_category("Tools")
        response = client.post("/v2/categories", json={"name": "Saws", "parentId": tools.id}, headers=auth_headers)
        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["data"]["parentId"] == tools.id

    def test_create_unknown_parent(self, client, auth_headers):
        """Test an unknown parent is rejected."""
        response = client.post("/v2/categories", json={"name": "Saws", "parentId": 999}, headers=auth_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "Parent category not found"

    def test_create_duplicate_slug(self, client, auth_headers, make_category):
        """Test slug collisions are rejected."""
        make_category("Tools")
        response = client.post("/v2/categories", json={"name": "Other", "slug": "tools"}, headers=auth_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "A category with that slug already exists"

    def test_create_requires_token(self, client):
        """Test writes need a bearer token."""
        assert client.post("/v2/categories", json={"name": "Tools"}).status_code == status.HTTP_401_UNAUTHORIZED

    def test_move_and_detach(self, client, auth_headers, make_category):
        """Test parentId can be set and cleared."""
        tools = make_category("Tools")
        saws = make_category("Saws")

        moved = client.put(f"/v2/categories/{saws.id}", json={"parentId": tools.id}, headers=auth_headers)
        assert moved.json()["data"]["parentId"] == tools.id

        detached = client.put(f"/v2/categories/{saws.id}", json={"parentId": None}, headers=auth_headers)
        assert detached.json()["data"]["parentId"] is None

    def test_update_without_parent_keeps_it(self, client, auth_headers, make_category):
        """Test omitting parentId leaves the parent unchanged."""
        tools = make_category("Tools")
        saws = make_category("Saws", parent_id=tools.id)

        response = client.put(f"/v2/categories/{saws.id}", json={"name": "Power Saws"}, headers=auth_headers)

        assert response.json()["data"]["name"] == "Power Saws"
        assert response.json()["data"]["parentId"] == tools.id

    def test_own_parent_rejected(self, client, auth_headers, make_category):
        """Test a category cannot be its own parent."""
        tools = make_category("Tools")
        response = client.put(f"/v2/categories/{tools.id}", json={"parentId": tools.id}, headers=auth_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "A category cannot be its own parent"

    def test_deactivate(self, client, auth_headers, make_category):
        """Test delete is a soft delete."""
        tools = make_category("Tools")
        response = client.delete(f"/v2/categories/{tools.id}", headers=auth_headers)
        assert response.json() == {"success": True, "message": "Category deactivated"}
        assert client.get(f"/v2/categories/{tools.id}").json()["data"]["isActive"] == ActiveState.INACTIVE

    def test_image_roundtrip(self, client, auth_headers, make_category):
        """Test uploading then deleting a category image."""
        tools = make_category("Tools")
        uploaded = client.post(
            f"/v2/categories/{tools.id}/image",
            files={"image": ("c.png", PNG, "image/png")},
            headers=auth_headers,
        )
        assert uploaded.json()["data"]["imageUrl"].startswith("data:image/png;base64,")

        client.delete(f"/v2/categories/{tools.id}/image", headers=auth_headers)
        assert client.get(f"/v2/categories/{tools.id}").json()["data"]["imageUrl"] is None
