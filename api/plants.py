from __future__ import annotations

from flask import Blueprint, request, jsonify, abort
from marshmallow import ValidationError

from models import storage
from models.plant import Plant
from models.taxonomy import PlantFamily, Genus, Sector
from models.garden_map import GardenArea
from models.schemas.plant import PlantCreateSchema, PlantUpdateSchema, PlantOutSchema
from models.schemas.taxonomy import NamedOutSchema, SectorOutSchema
from models.schemas.garden_map import AreaOutSchema
from utils.decorators import jwt_required

bp = Blueprint("plants", __name__)

plant_create_schema = PlantCreateSchema()
plant_updates_schema = PlantUpdateSchema(many=True)
plant_out_schema = PlantOutSchema()
plants_out_schema = PlantOutSchema(many=True)
named_out_list_schema = NamedOutSchema(many=True)
sector_out_list_schema = SectorOutSchema(many=True)
area_out_list_schema = AreaOutSchema(many=True)

# FK field -> model it must reference
REFERENCES = {
    "family_id": (PlantFamily, "Family"),
    "genus_id": (Genus, "Genus"),
    "sector_id": (Sector, "Sector"),
}


def check_references(data: dict) -> None:
    """400 if any family_id / genus_id / sector_id present in data does not exist."""
    for field, (model, label) in REFERENCES.items():
        value = data.get(field)
        if value is not None and not storage.get(model, value):
            abort(400, description=f"{label} {value} not found")


def parse_sector_id() -> int:
    raw = request.args.get("sector_id")
    if raw is None:
        abort(400, description="sector_id is required")
    try:
        sector_id = int(raw)
    except ValueError:
        abort(400, description="sector_id must be an integer")
    if sector_id <= 0:
        abort(400, description="Invalid sector_id provided.")
    return sector_id


@bp.get("/plants")
def list_plants():
    """
    List the plants of one sector, ordered by id, with family and genus names
    ---
    tags: [Plants]
    parameters:
      - in: query
        name: sector_id
        type: integer
        required: true
    responses:
      200: { description: OK }
      400: { description: Missing or invalid sector_id }
      404: { description: Sector not found }
    """
    sector_id = parse_sector_id()
    if not storage.get(Sector, sector_id):
        abort(404, description="Sector not found.")

    session = storage.get_session()
    rows = (
        session.query(Plant)
        .filter(Plant.sector_id == sector_id)
        .order_by(Plant.id.asc())
        .all()
    )
    return jsonify({"data": plants_out_schema.dump(rows), "meta": {"sector_id": sector_id, "total": len(rows)}})


@bp.get("/plants/lookups")
def lookups():
    """
    Families, genera, sectors and map areas in one payload (form dropdowns)
    ---
    tags: [Plants]
    responses:
      200: { description: OK }
    """
    session = storage.get_session()
    return jsonify(
        {
            "data": {
                "families": named_out_list_schema.dump(session.query(PlantFamily).order_by(PlantFamily.id).all()),
                "genera": named_out_list_schema.dump(session.query(Genus).order_by(Genus.id).all()),
                "sectors": sector_out_list_schema.dump(session.query(Sector).order_by(Sector.id).all()),
                "areas": area_out_list_schema.dump(session.query(GardenArea).order_by(GardenArea.id).all()),
            }
        }
    )


@bp.get("/plants/<int:plant_id>")
def get_plant(plant_id: int):
    """
    Get a single plant by id
    ---
    tags: [Plants]
    parameters:
      - { in: path, name: plant_id, type: integer, required: true }
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    plant = storage.get(Plant, plant_id)
    if not plant:
        abort(404, description="Plant not found.")
    return jsonify({"data": plant_out_schema.dump(plant)})


@bp.post("/plants")
@jwt_required()
def create_plant():
    """
    Add a plant
    ---
    tags: [Plants]
    security:
      - Bearer: []
    consumes: [application/json]
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required: [sector_id, latitude, longitude]
          properties:
            sector_id: { type: integer }
            family_id: { type: integer }
            genus_id: { type: integer }
            species: { type: string }
            variety: { type: string }
            latitude: { type: string, example: "48,4721", description: "number, or string with '.' or ',' decimals" }
            longitude: { type: string, example: "135.0719" }
            biometric_id: { type: integer, description: "required when the sector has biometric_required" }
    responses:
      201: { description: Created }
      400: { description: Validation error }
    """
    data = plant_create_schema.load(request.get_json(silent=True) or {})
    check_references(data)

    sector = storage.get(Sector, data["sector_id"])
    if sector.biometric_required:
        if data.get("biometric_id") is None:
            raise ValidationError({"biometric_id": [f"Required for plants in sector '{sector.name}'."]})
    else:
        data["biometric_id"] = None

    plant = Plant(**data)
    storage.new(plant)
    storage.save()
    return jsonify({"data": plant_out_schema.dump(plant)}), 201


@bp.post("/plants/update")
@jwt_required()
def update_plants():
    """
    Batch partial update. Fields sent as null or left out keep their stored value.
    ---
    tags: [Plants]
    security:
      - Bearer: []
    consumes: [application/json]
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: array
          items:
            type: object
            required: [plant_id]
            properties:
              plant_id: { type: integer }
    responses:
      200: { description: Updated }
      400: { description: Validation error or empty list }
      404: { description: One or more plants not found }
    """
    payload = request.get_json(silent=True)
    if not payload:
        abort(400, description="No data provided.")
    updates = plant_updates_schema.load(payload)

    session = storage.get_session()
    plant_ids = {u["plant_id"] for u in updates}
    plants = {p.id: p for p in session.query(Plant).filter(Plant.id.in_(plant_ids)).all()}
    if len(plants) != len(plant_ids):
        abort(404, description="One or more plants not found.")

    for update in updates:
        check_references(update)

    # Biometric rule is checked against the merged row before anything is written
    errors = {}
    for index, update in enumerate(updates):
        plant = plants[update["plant_id"]]
        sector = storage.get(Sector, update.get("sector_id") or plant.sector_id)
        biometric_id = update.get("biometric_id")
        if biometric_id is None:
            biometric_id = plant.biometric_id
        if sector.biometric_required:
            if biometric_id is None:
                errors[index] = {"biometric_id": [f"Required for plants in sector '{sector.name}'."]}
            update["biometric_id"] = biometric_id
        else:
            update["biometric_id"] = None
    if errors:
        raise ValidationError(errors)

    for update in updates:
        plant = plants[update["plant_id"]]
        for field, value in update.items():
            if field == "plant_id":
                continue
            if value is None and field != "biometric_id":
                continue
            setattr(plant, field, value)

    storage.save()
    ordered = [plants[i] for i in sorted(plant_ids)]
    return jsonify({"data": plants_out_schema.dump(ordered), "meta": {"updated": len(ordered)}})


@bp.delete("/plants/<int:plant_id>")
@jwt_required()
def delete_plant(plant_id: int):
    """
    Delete a plant
    ---
    tags: [Plants]
    security:
      - Bearer: []
    parameters:
      - { in: path, name: plant_id, type: integer, required: true }
    responses:
      204: { description: Deleted }
      404: { description: Not found }
    """
    plant = storage.get(Plant, plant_id)
    if not plant:
        abort(404, description="Plant not found.")
    storage.delete(plant)
    storage.save()
    return ("", 204)
