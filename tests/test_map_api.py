import io
import os

import pytest
from sqlalchemy.exc import SQLAlchemyError

from models import storage

SQUARE = "POLYGON((0 0, 10 0, 10 10, 0 10, 0 0))"


@pytest.fixture
def sector_id(client, auth_headers):
    return client.post("/api/v1/sectors", json={"name": "Flora"}, headers=auth_headers).get_json()["data"]["id"]


def test_area_lifecycle(client, auth_headers):
    created = client.post(
        "/api/v1/map/areas", json={"location_path": "north", "geometry": SQUARE}, headers=auth_headers
    )
    assert created.status_code == 201
    area = created.get_json()["data"]
    assert area["geometry"] == "POLYGON ((0 0, 10 0, 10 10, 0 10, 0 0))"

    updated = client.put(
        f"/api/v1/map/areas/{area['id']}",
        json={"geometry": "polygon ((0 0, 5.5 0, 5.5 5.5, 0 0))"},
        headers=auth_headers,
    )
    assert updated.status_code == 200
    assert updated.get_json()["data"]["geometry"] == "POLYGON ((0 0, 5.5 0, 5.5 5.5, 0 0))"
    assert updated.get_json()["data"]["location_path"] == "north"

    listing = client.get("/api/v1/map/areas").get_json()["data"]
    assert len(listing) == 1

    assert client.delete(f"/api/v1/map/areas/{area['id']}", headers=auth_headers).status_code == 204
    assert client.delete(f"/api/v1/map/areas/{area['id']}", headers=auth_headers).status_code == 404
    assert client.put("/api/v1/map/areas/999", json={"geometry": SQUARE}, headers=auth_headers).status_code == 404


@pytest.mark.parametrize(
    "geometry",
    [
        "POLYGON((0 0, 10 0, 10 10, 0 10))",
        "POINT(1 2)",
        "POLYGON((0 0, 1 1, 0 0))",
        "POLYGON((a b, 1 0, 1 1, a b))",
        "",
    ],
)
def test_area_rejects_invalid_geometry(client, auth_headers, geometry):
    resp = client.post("/api/v1/map/areas", json={"geometry": geometry}, headers=auth_headers)
    assert resp.status_code == 400
    assert "geometry" in resp.get_json()["details"]


def test_map_plants_and_bulk_delete(client, auth_headers, sector_id):
    ids = []
    for species in ("A", "B", "C"):
        resp = client.post(
            "/api/v1/plants",
            json={"sector_id": sector_id, "species": species, "latitude": 1.5, "longitude": "2,5"},
            headers=auth_headers,
        )
        ids.append(resp.get_json()["data"]["id"])

    plants = client.get("/api/v1/map/plants").get_json()["data"]
    assert [p["species"] for p in plants] == ["A", "B", "C"]
    assert set(plants[0]) == {"id", "species", "variety", "latitude", "longitude", "note"}

    resp = client.post("/api/v1/map/plants/delete", json={"plant_ids": ids[:2] + [999]}, headers=auth_headers)
    assert resp.status_code == 200
    assert resp.get_json()["data"]["deleted"] == ids[:2]

    assert client.post("/api/v1/map/plants/delete", json={"plant_ids": [999]}, headers=auth_headers).status_code == 404
    assert client.post("/api/v1/map/plants/delete", json={"plant_ids": []}, headers=auth_headers).status_code == 400
    assert [p["id"] for p in client.get("/api/v1/map/plants").get_json()["data"]] == [ids[2]]


def test_map_image_upload_replaces_previous(client, app, auth_headers):
    assert client.get("/api/v1/map/image").status_code == 404

    first = client.post(
        "/api/v1/map/image",
        data={"file": (io.BytesIO(b"\x89PNG first"), "garden map.png")},
        content_type="multipart/form-data",
        headers=auth_headers,
    )
    assert first.status_code == 200
    first_name = first.get_json()["data"]["image_path"]
    folder = app.config["UPLOAD_FOLDER"]
    assert first_name.startswith("garden_map_") and first_name.endswith(".png")
    assert os.path.isfile(os.path.join(folder, first_name))

    second = client.post(
        "/api/v1/map/image",
        data={"file": (io.BytesIO(b"GIF89a second"), "new.GIF")},
        content_type="multipart/form-data",
        headers=auth_headers,
    )
    second_name = second.get_json()["data"]["image_path"]
    assert second_name.endswith(".gif")
    assert not os.path.exists(os.path.join(folder, first_name))
    assert client.get("/api/v1/map/image").get_json()["data"]["image_path"] == second_name


def test_map_image_rejects_bad_uploads(client, app, auth_headers):
    bad_ext = client.post(
        "/api/v1/map/image",
        data={"file": (io.BytesIO(b"text"), "notes.txt")},
        content_type="multipart/form-data",
        headers=auth_headers,
    )
    assert bad_ext.status_code == 400

    app.config["MAX_MAP_IMAGE_BYTES"] = 4
    too_big = client.post(
        "/api/v1/map/image",
        data={"file": (io.BytesIO(b"0123456789"), "map.jpg")},
        content_type="multipart/form-data",
        headers=auth_headers,
    )
    assert too_big.status_code == 400

    missing = client.post("/api/v1/map/image", data={}, content_type="multipart/form-data", headers=auth_headers)
    assert missing.status_code == 400


def test_map_image_accepts_non_ascii_filename(client, app, auth_headers):
    resp = client.post(
        "/api/v1/map/image",
        data={"file": (io.BytesIO(b"\x89PNG map"), "карта.PNG")},
        content_type="multipart/form-data",
        headers=auth_headers,
    )
    assert resp.status_code == 200
    name = resp.get_json()["data"]["image_path"]
    assert name.startswith("map_") and name.endswith(".png")
    assert os.path.isfile(os.path.join(app.config["UPLOAD_FOLDER"], name))


def test_map_image_keeps_previous_file_when_commit_fails(client, app, auth_headers, monkeypatch):
    first = client.post(
        "/api/v1/map/image",
        data={"file": (io.BytesIO(b"\x89PNG first"), "first.png")},
        content_type="multipart/form-data",
        headers=auth_headers,
    ).get_json()["data"]["image_path"]
    folder = app.config["UPLOAD_FOLDER"]

    def failing_save():
        storage.rollback()
        raise SQLAlchemyError("commit failed")

    monkeypatch.setattr(storage, "save", failing_save)
    resp = client.post(
        "/api/v1/map/image",
        data={"file": (io.BytesIO(b"\x89PNG second"), "second.png")},
        content_type="multipart/form-data",
        headers=auth_headers,
    )
    assert resp.status_code == 500
    assert os.listdir(folder) == [first]

    monkeypatch.undo()
    assert client.get("/api/v1/map/image").get_json()["data"]["image_path"] == first
