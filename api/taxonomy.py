"""
Plant families, genera and sectors: create, get one, list.
"""
from __future__ import annotations

from flask import Blueprint, request, jsonify, abort
from sqlalchemy import func

from models import storage
from models.taxonomy import PlantFamily, Genus, Sector
from models.schemas.taxonomy import (
    FamilyCreateSchema,
    GenusCreateSchema,
    SectorCreateSchema,
    NamedOutSchema,
    SectorOutSchema,
)
from utils.decorators import jwt_required
from api.pagination import parse_pagination, parse_sort

bp = Blueprint("taxonomy", __name__)

family_create_schema = FamilyCreateSchema()
genus_create_schema = GenusCreateSchema()
sector_create_schema = SectorCreateSchema()
named_out_schema = NamedOutSchema()
named_out_list_schema = NamedOutSchema(many=True)
sector_out_schema = SectorOutSchema()
sector_out_list_schema = SectorOutSchema(many=True)


def exists_name_case_insensitive(session, model, name: str) -> bool:
    q = session.query(model).filter(func.lower(model.name) == name.lower())
    return session.query(q.exists()).scalar()


def _create(model, schema, out_schema, label: str):
    session = storage.get_session()
    data = schema.load(request.get_json(silent=True) or {})
    if exists_name_case_insensitive(session, model, data["name"]):
        abort(409, description=f"{label} name already exists.")
    obj = model(**data)
    storage.new(obj)
    storage.save()
    return jsonify({"data": out_schema.dump(obj)}), 201


def _get(model, obj_id: int, out_schema, label: str):
    obj = storage.get(model, obj_id)
    if not obj:
        abort(404, description=f"{label} not found.")
    return jsonify({"data": out_schema.dump(obj)})


def _list(model, out_list_schema):
    session = storage.get_session()
    page, limit = parse_pagination()
    order_by = parse_sort(model.name)

    query = session.query(model)
    total = query.count()
    rows = query.order_by(*order_by).offset((page - 1) * limit).limit(limit).all()
    return jsonify(
        {
            "data": out_list_schema.dump(rows),
            "meta": {"page": page, "limit": limit, "total": total},
        }
    )


@bp.post("/families")
@jwt_required()
def create_family():
    """
    Create a plant family
    ---
    tags: [Families]
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
            name: { type: string, maxLength: 100 }
    responses:
      201: { description: Created }
      400: { description: Validation error }
      409: { description: Name already exists }
    """
    return _create(PlantFamily, family_create_schema, named_out_schema, "Family")


@bp.get("/families/<int:family_id>")
def get_family(family_id: int):
    """
    Get a plant family
    ---
    tags: [Families]
    parameters:
      - { in: path, name: family_id, type: integer, required: true }
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    return _get(PlantFamily, family_id, named_out_schema, "Family")


@bp.get("/families")
def list_families():
    """
    List plant families (pagination, sort by name)
    ---
    tags: [Families]
    parameters:
      - { in: query, name: page, type: integer, default: 1 }
      - { in: query, name: limit, type: integer, default: 20 }
      - { in: query, name: sort, type: string, default: name }
    responses:
      200: { description: OK }
    """
    return _list(PlantFamily, named_out_list_schema)


@bp.post("/genera")
@jwt_required()
def create_genus():
    """
    Create a genus
    ---
    tags: [Genera]
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
            name: { type: string, maxLength: 100 }
    responses:
      201: { description: Created }
      400: { description: Validation error }
      409: { description: Name already exists }
    """
    return _create(Genus, genus_create_schema, named_out_schema, "Genus")


@bp.get("/genera/<int:genus_id>")
def get_genus(genus_id: int):
    """
    Get a genus
    ---
    tags: [Genera]
    parameters:
      - { in: path, name: genus_id, type: integer, required: true }
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    return _get(Genus, genus_id, named_out_schema, "Genus")


@bp.get("/genera")
def list_genera():
    """
    List genera (pagination, sort by name)
    ---
    tags: [Genera]
    parameters:
      - { in: query, name: page, type: integer, default: 1 }
      - { in: query, name: limit, type: integer, default: 20 }
      - { in: query, name: sort, type: string, default: name }
    responses:
      200: { description: OK }
    """
    return _list(Genus, named_out_list_schema)


@bp.post("/sectors")
@jwt_required()
def create_sector():
    """
    Create a sector
    ---
    tags: [Sectors]
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
            name: { type: string, maxLength: 100 }
            biometric_required: { type: boolean, default: false }
    responses:
      201: { description: Created }
      400: { description: Validation error }
      409: { description: Name already exists }
    """
    return _create(Sector, sector_create_schema, sector_out_schema, "Sector")


@bp.get("/sectors/<int:sector_id>")
def get_sector(sector_id: int):
    """
    Get a sector
    ---
    tags: [Sectors]
    parameters:
      - { in: path, name: sector_id, type: integer, required: true }
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    return _get(Sector, sector_id, sector_out_schema, "Sector")


@bp.get("/sectors")
def list_sectors():
    """
    List sectors (pagination, sort by name)
    ---
    tags: [Sectors]
    parameters:
      - { in: query, name: page, type: integer, default: 1 }
      - { in: query, name: limit, type: integer, default: 20 }
      - { in: query, name: sort, type: string, default: name }
    responses:
      200: { description: OK }
    """
    return _list(Sector, sector_out_list_schema)
