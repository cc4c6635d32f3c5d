import pytest

from models import storage
from models.plant import Plant


@pytest.fixture
def garden(client, auth_headers):
    """One family, genus and two sectors (one demanding biometric ids)."""
    family = client.post("/api/v1/families", json={"name": "Rosaceae"}, headers=auth_headers).get_json()["data"]
    genus = client.post("/api/v1/genera", json={"name": "Rosa"}, headers=auth_headers).get_json()["data"]
    dendro = client.post("/api/v1/sectors", json={"name": "Dendrology"}, headers=auth_headers).get_json()["data"]
    flori = client.post(
        "/api/v1/sectors", json={"name": "Floriculture", "biometric_required": True}, headers=auth_headers
    ).get_json()["data"]
    return {"family": family, "genus": genus, "dendro": dendro, "flori": flori}


def _add_plant(client, headers, **fields):
    return client.post("/api/v1/plants", json=fields, headers=headers)


def test_taxonomy_crud(client, auth_headers, garden):
    assert garden["family"]["name"] == "Rosaceae"
    assert garden["flori"]["biometric_required"] is True

    dup = client.post("/api/v1/families", json={"name": "rosaceae"}, headers=auth_headers)
    assert dup.status_code == 409

    assert client.post("/api/v1/genera", json={"name": "  "}, headers=auth_headers).status_code == 400
    assert client.post("/api/v1/genera", json={"name": "x" * 101}, headers=auth_headers).status_code == 400
    assert client.post("/api/v1/genera", json={"name": "Malus"}).status_code == 401

    got = client.get(f"/api/v1/families/{garden['family']['id']}")
    assert got.status_code == 200
    assert client.get("/api/v1/families/999").status_code == 404

    sectors = client.get("/api/v1/sectors?sort=-name").get_json()
    assert [s["name"] for s in sectors["data"]] == ["Floriculture", "Dendrology"]
    assert sectors["meta"]["total"] == 2
    assert client.get("/api/v1/sectors?sort=id").status_code == 400
    assert client.get("/api/v1/genera?page=x").status_code == 400


def test_add_plant_parses_comma_coordinates(client, auth_headers, garden):
    resp = _add_plant(
        client,
        auth_headers,
        sector_id=garden["dendro"]["id"],
        family_id=garden["family"]["id"],
        genus_id=garden["genus"]["id"],
        species="Rosa rugosa",
        latitude="48,4721",
        longitude=" 135.0719 ",
        biometric_id=7,
    )
    assert resp.status_code == 201
    plant = resp.get_json()["data"]
    assert plant["latitude"] == pytest.approx(48.4721)
    assert plant["longitude"] == pytest.approx(135.0719)
    assert plant["family_name"] == "Rosaceae"
    assert plant["genus_name"] == "Rosa"
    # only sectors that require biometrics keep the id
    assert plant["biometric_id"] is None
    assert plant["herbarium_presence"] is False


@pytest.mark.parametrize(
    "latitude, longitude",
    [("north", "135"), ("48.1", None), ("91", "10"), ("10", "-180.5"), (True, "10")],
)
def test_add_plant_rejects_bad_coordinates(client, auth_headers, garden, latitude, longitude):
    payload = {"sector_id": garden["dendro"]["id"], "latitude": latitude}
    if longitude is not None:
        payload["longitude"] = longitude
    resp = _add_plant(client, auth_headers, **payload)
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "VALIDATION_ERROR"


def test_add_plant_biometric_rules(client, auth_headers, garden):
    missing = _add_plant(client, auth_headers, sector_id=garden["flori"]["id"], latitude=1, longitude=2)
    assert missing.status_code == 400
    assert "biometric_id" in missing.get_json()["details"]

    ok = _add_plant(client, auth_headers, sector_id=garden["flori"]["id"], latitude=1, longitude=2, biometric_id=5)
    assert ok.status_code == 201
    assert ok.get_json()["data"]["biometric_id"] == 5


def test_add_plant_unknown_references(client, auth_headers, garden):
    assert _add_plant(client, auth_headers, sector_id=999, latitude=1, longitude=2).status_code == 400
    resp = _add_plant(client, auth_headers, sector_id=garden["dendro"]["id"], family_id=999, latitude=1, longitude=2)
    assert resp.status_code == 400


def test_list_plants_by_sector(client, auth_headers, garden):
    dendro, flori = garden["dendro"]["id"], garden["flori"]["id"]
    _add_plant(client, auth_headers, sector_id=dendro, species="A", latitude=1, longitude=1)
    _add_plant(client, auth_headers, sector_id=flori, species="B", latitude=1, longitude=1, biometric_id=1)
    _add_plant(client, auth_headers, sector_id=dendro, species="C", latitude=1, longitude=1)

    resp = client.get(f"/api/v1/plants?sector_id={dendro}")
    assert resp.status_code == 200
    assert [p["species"] for p in resp.get_json()["data"]] == ["A", "C"]

    assert client.get("/api/v1/plants").status_code == 400
    assert client.get("/api/v1/plants?sector_id=abc").status_code == 400
    assert client.get("/api/v1/plants?sector_id=0").status_code == 400
    assert client.get("/api/v1/plants?sector_id=999").status_code == 404


def test_batch_update_keeps_null_fields(client, auth_headers, garden):
    dendro = garden["dendro"]["id"]
    first = _add_plant(client, auth_headers, sector_id=dendro, species="A", note="keep", latitude=1, longitude=1)
    second = _add_plant(client, auth_headers, sector_id=dendro, species="B", latitude=1, longitude=1)
    first_id = first.get_json()["data"]["id"]
    second_id = second.get_json()["data"]["id"]

    resp = client.post(
        "/api/v1/plants/update",
        json=[
            {"plant_id": first_id, "species": "A2", "note": None, "latitude": "55,5"},
            {"plant_id": second_id, "herbarium_presence": True, "genus_id": garden["genus"]["id"]},
        ],
        headers=auth_headers,
    )
    assert resp.status_code == 200
    assert resp.get_json()["meta"]["updated"] == 2

    a = client.get(f"/api/v1/plants/{first_id}").get_json()["data"]
    assert a["species"] == "A2"
    assert a["note"] == "keep"
    assert a["latitude"] == pytest.approx(55.5)
    assert a["longitude"] == pytest.approx(1.0)

    b = client.get(f"/api/v1/plants/{second_id}").get_json()["data"]
    assert b["herbarium_presence"] is True
    assert b["genus_name"] == "Rosa"


def test_batch_update_unknown_id_changes_nothing(client, auth_headers, garden):
    plant_id = _add_plant(
        client, auth_headers, sector_id=garden["dendro"]["id"], species="A", latitude=1, longitude=1
    ).get_json()["data"]["id"]

    resp = client.post(
        "/api/v1/plants/update",
        json=[{"plant_id": plant_id, "species": "changed"}, {"plant_id": 999, "species": "x"}],
        headers=auth_headers,
    )
    assert resp.status_code == 404
    assert storage.get(Plant, plant_id).species == "A"


def test_batch_update_rejects_empty_or_malformed(client, auth_headers):
    assert client.post("/api/v1/plants/update", json=[], headers=auth_headers).status_code == 400
    assert client.post("/api/v1/plants/update", json={"plant_id": 1}, headers=auth_headers).status_code == 400
    assert client.post("/api/v1/plants/update", json=[{"species": "x"}], headers=auth_headers).status_code == 400


def test_batch_update_moving_into_biometric_sector(client, auth_headers, garden):
    plant_id = _add_plant(
        client, auth_headers, sector_id=garden["dendro"]["id"], species="A", latitude=1, longitude=1
    ).get_json()["data"]["id"]

    resp = client.post(
        "/api/v1/plants/update",
        json=[{"plant_id": plant_id, "sector_id": garden["flori"]["id"], "species": "moved"}],
        headers=auth_headers,
    )
    assert resp.status_code == 400
    assert "biometric_id" in resp.get_json()["details"]["0"]
    unchanged = storage.get(Plant, plant_id)
    assert unchanged.sector_id == garden["dendro"]["id"]
    assert unchanged.species == "A"

    resp = client.post(
        "/api/v1/plants/update",
        json=[{"plant_id": plant_id, "sector_id": garden["flori"]["id"], "biometric_id": 7}],
        headers=auth_headers,
    )
    assert resp.status_code == 200
    assert resp.get_json()["data"][0]["biometric_id"] == 7


def test_batch_update_moving_out_of_biometric_sector_clears_id(client, auth_headers, garden):
    plant_id = _add_plant(
        client, auth_headers, sector_id=garden["flori"]["id"], latitude=1, longitude=1, biometric_id=3
    ).get_json()["data"]["id"]

    # staying put keeps the stored id
    resp = client.post(
        "/api/v1/plants/update", json=[{"plant_id": plant_id, "note": "x"}], headers=auth_headers
    )
    assert resp.get_json()["data"][0]["biometric_id"] == 3

    resp = client.post(
        "/api/v1/plants/update",
        json=[{"plant_id": plant_id, "sector_id": garden["dendro"]["id"]}],
        headers=auth_headers,
    )
    assert resp.status_code == 200
    assert resp.get_json()["data"][0]["biometric_id"] is None
    assert client.get(f"/api/v1/plants/{plant_id}").get_json()["data"]["biometric_id"] is None


def test_delete_plant(client, auth_headers, garden):
    plant_id = _add_plant(
        client, auth_headers, sector_id=garden["dendro"]["id"], latitude=1, longitude=1
    ).get_json()["data"]["id"]

    assert client.delete(f"/api/v1/plants/{plant_id}").status_code == 401
    assert client.delete(f"/api/v1/plants/{plant_id}", headers=auth_headers).status_code == 204
    assert client.delete(f"/api/v1/plants/{plant_id}", headers=auth_headers).status_code == 404
    assert client.get(f"/api/v1/plants/{plant_id}").status_code == 404


def test_lookups(client, garden):
    data = client.get("/api/v1/plants/lookups").get_json()["data"]
    assert [f["name"] for f in data["families"]] == ["Rosaceae"]
    assert [g["name"] for g in data["genera"]] == ["Rosa"]
    assert len(data["sectors"]) == 2
    assert data["areas"] == []
