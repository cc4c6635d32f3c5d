"""
Garden map blueprint:
- plants with coordinates, bulk delete of plants picked on the map
- garden areas (WKT polygons)
- the map background image
"""
from __future__ import annotations

import logging
import os
import uuid

from flask import Blueprint, request, jsonify, abort, current_app
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.utils import secure_filename

from models import storage
from models.plant import Plant
from models.garden_map import GardenArea, MapImage
from models.schemas.plant import MapPlantOutSchema, PlantIdsSchema
from models.schemas.garden_map import AreaCreateSchema, AreaUpdateSchema, AreaOutSchema, MapImageOutSchema
from utils.decorators import jwt_required

logger = logging.getLogger(__name__)

bp = Blueprint("garden_map", __name__)

ALLOWED_IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif"}

map_plants_out_schema = MapPlantOutSchema(many=True)
plant_ids_schema = PlantIdsSchema()
area_create_schema = AreaCreateSchema()
area_update_schema = AreaUpdateSchema()
area_out_schema = AreaOutSchema()
areas_out_schema = AreaOutSchema(many=True)
map_image_out_schema = MapImageOutSchema()


@bp.get("/plants")
def map_plants():
    """
    Plants that have both coordinates
    ---
    tags: [Map]
    responses:
      200: { description: OK }
    """
    session = storage.get_session()
    rows = (
        session.query(Plant)
        .filter(Plant.latitude.isnot(None), Plant.longitude.isnot(None))
        .order_by(Plant.id.asc())
        .all()
    )
    return jsonify({"data": map_plants_out_schema.dump(rows)})


@bp.post("/plants/delete")
@jwt_required()
def delete_plants_in_area():
    """
    Delete the given plants (e.g. those selected inside an area)
    ---
    tags: [Map]
    security:
      - Bearer: []
    consumes: [application/json]
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            plant_ids:
              type: array
              items: { type: integer }
    responses:
      200: { description: Deleted }
      400: { description: Empty or invalid list }
      404: { description: None of the plants exist }
    """
    data = plant_ids_schema.load(request.get_json(silent=True) or {})
    session = storage.get_session()
    plants = session.query(Plant).filter(Plant.id.in_(set(data["plant_ids"]))).all()
    if not plants:
        abort(404, description="No plants found in the selected area.")
    for plant in plants:
        storage.delete(plant)
    storage.save()
    return jsonify({"data": {"deleted": sorted(p.id for p in plants)}})


@bp.get("/areas")
def list_areas():
    """
    List garden areas
    ---
    tags: [Map]
    responses:
      200: { description: OK }
    """
    session = storage.get_session()
    rows = session.query(GardenArea).order_by(GardenArea.id.asc()).all()
    return jsonify({"data": areas_out_schema.dump(rows)})


@bp.post("/areas")
@jwt_required()
def create_area():
    """
    Add a garden area
    ---
    tags: [Map]
    security:
      - Bearer: []
    consumes: [application/json]
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required: [geometry]
          properties:
            location_path: { type: string }
            geometry: { type: string, example: "POLYGON ((0 0, 10 0, 10 10, 0 0))" }
    responses:
      201: { description: Created }
      400: { description: Invalid geometry }
    """
    data = area_create_schema.load(request.get_json(silent=True) or {})
    area = GardenArea(**data)
    storage.new(area)
    storage.save()
    return jsonify({"data": area_out_schema.dump(area)}), 201


@bp.put("/areas/<int:area_id>")
@jwt_required()
def update_area(area_id: int):
    """
    Replace an area's geometry (and optionally its location path)
    ---
    tags: [Map]
    security:
      - Bearer: []
    consumes: [application/json]
    parameters:
      - { in: path, name: area_id, type: integer, required: true }
      - in: body
        name: body
        required: true
        schema:
          type: object
          required: [geometry]
          properties:
            location_path: { type: string }
            geometry: { type: string }
    responses:
      200: { description: Updated }
      400: { description: Invalid geometry }
      404: { description: Not found }
    """
    area = storage.get(GardenArea, area_id)
    if not area:
        abort(404, description="Area not found.")
    data = area_update_schema.load(request.get_json(silent=True) or {})
    area.geometry = data["geometry"]
    if data.get("location_path") is not None:
        area.location_path = data["location_path"]
    storage.new(area)
    storage.save()
    return jsonify({"data": area_out_schema.dump(area)})


@bp.delete("/areas/<int:area_id>")
@jwt_required()
def delete_area(area_id: int):
    """
    Delete a garden area
    ---
    tags: [Map]
    security:
      - Bearer: []
    parameters:
      - { in: path, name: area_id, type: integer, required: true }
    responses:
      204: { description: Deleted }
      404: { description: Not found }
    """
    area = storage.get(GardenArea, area_id)
    if not area:
        abort(404, description="Area not found.")
    storage.delete(area)
    storage.save()
    return ("", 204)


@bp.get("/image")
def get_map_image():
    """
    Current map image path
    ---
    tags: [Map]
    responses:
      200: { description: OK }
      404: { description: No map uploaded }
    """
    session = storage.get_session()
    image = session.query(MapImage).order_by(MapImage.id.asc()).first()
    if not image or not image.image_path:
        abort(404, description="Map image has not been uploaded.")
    return jsonify({"data": map_image_out_schema.dump(image)})


@bp.post("/image")
@jwt_required()
def upload_map_image():
    """
    Upload the map image, replacing (and deleting) the previous one
    ---
    tags: [Map]
    security:
      - Bearer: []
    consumes: [multipart/form-data]
    parameters:
      - { in: formData, name: file, type: file, required: true }
    responses:
      200: { description: Uploaded }
      400: { description: Missing file, bad extension or too large }
    """
    file = request.files.get("file")
    if file is None or not file.filename:
        abort(400, description="No file selected.")

    # secure_filename drops non-ASCII characters, so the extension comes from the raw name
    raw_stem, ext = os.path.splitext(file.filename)
    ext = ext.lower()
    if ext not in ALLOWED_IMAGE_EXTENSIONS:
        abort(400, description="Unsupported file type.")

    file.stream.seek(0, os.SEEK_END)
    size = file.stream.tell()
    file.stream.seek(0)
    if size == 0:
        abort(400, description="No file selected.")
    if size > current_app.config["MAX_MAP_IMAGE_BYTES"]:
        abort(400, description="File exceeds the allowed size.")

    folder = current_app.config["UPLOAD_FOLDER"]
    os.makedirs(folder, exist_ok=True)
    stem = secure_filename(raw_stem) or "map"
    stored_name = f"{stem}_{uuid.uuid4().hex}{ext}"
    file.save(os.path.join(folder, stored_name))

    session = storage.get_session()
    image = session.query(MapImage).order_by(MapImage.id.asc()).first()
    previous = None
    if image is None:
        image = MapImage(image_path=stored_name)
    else:
        previous = image.image_path
        image.image_path = stored_name
    storage.new(image)
    try:
        storage.save()
    except SQLAlchemyError:
        os.remove(os.path.join(folder, stored_name))
        raise

    # Old file goes only once the row points at the new one
    if previous:
        old_path = os.path.join(folder, previous)
        if os.path.isfile(old_path):
            os.remove(old_path)
            logger.info("Removed previous map image %s", previous)
    return jsonify({"data": map_image_out_schema.dump(image)})
