"""Tests for stored project endpoints."""


def test_project_crud(client, sample_spec):
    """Test creating, reading, updating and deleting a project."""
    response = client.post(
        "/api/projects",
        json={"name": "Blog", "description": "A blog", "schema_data": sample_spec}
    )
    assert response.status_code == 201
    project = response.json()
    assert project["id"] == 1
    assert project["schema_data"]["schema"]["models"][0]["name"] == "User"

    response = client.get(f"/api/projects/{project['id']}")
    assert response.status_code == 200
    assert response.json()["name"] == "Blog"

    response = client.put(f"/api/projects/{project['id']}", json={"name": "Renamed"})
    assert response.status_code == 200
    assert response.json()["name"] == "Renamed"
    assert response.json()["description"] == "A blog"

    response = client.get("/api/projects")
    assert [p["name"] for p in response.json()] == ["Renamed"]

    response = client.delete(f"/api/projects/{project['id']}")
    assert response.status_code == 204
    assert client.get(f"/api/projects/{project['id']}").status_code == 404


def test_project_not_found(client):
    """Test operations on a missing project."""
    assert client.get("/api/projects/999").json()["detail"] == "Project not found"
    assert client.put("/api/projects/999", json={"name": "x"}).status_code == 404
    assert client.delete("/api/projects/999").status_code == 404


def test_create_project_requires_name(client, sample_spec):
    """Test request validation."""
    response = client.post("/api/projects", json={"name": "", "schema_data": sample_spec})
    assert response.status_code == 422
