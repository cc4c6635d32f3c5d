from marshmallow import Schema, fields, validate

from models.schemas.common import Coordinate, LATITUDE_RANGE, LONGITUDE_RANGE


class PlantFieldsSchema(Schema):
    """Every writable plant attribute, all optional and nullable."""
    inventory_number = fields.String(allow_none=True, validate=validate.Length(max=64))
    family_id = fields.Integer(allow_none=True)
    genus_id = fields.Integer(allow_none=True)
    sector_id = fields.Integer(allow_none=True)
    species = fields.String(allow_none=True, validate=validate.Length(max=255))
    synonyms = fields.String(allow_none=True)
    variety = fields.String(allow_none=True, validate=validate.Length(max=255))
    form = fields.String(allow_none=True, validate=validate.Length(max=255))
    plant_origin = fields.String(allow_none=True, validate=validate.Length(max=255))
    natural_habitat = fields.String(allow_none=True)
    determined = fields.String(allow_none=True, validate=validate.Length(max=255))
    ecology_biology = fields.String(allow_none=True)
    economic_use = fields.String(allow_none=True)
    date_of_planting = fields.String(allow_none=True, validate=validate.Length(max=64))
    originator = fields.String(allow_none=True, validate=validate.Length(max=255))
    date = fields.String(allow_none=True, validate=validate.Length(max=64))
    country = fields.String(allow_none=True, validate=validate.Length(max=128))
    protection_status = fields.String(allow_none=True, validate=validate.Length(max=255))
    herbarium_presence = fields.Boolean(allow_none=True)
    herbarium_duplicate = fields.String(allow_none=True, validate=validate.Length(max=255))
    filled_out = fields.String(allow_none=True, validate=validate.Length(max=255))
    image_path = fields.String(allow_none=True, validate=validate.Length(max=512))
    latitude = Coordinate(*LATITUDE_RANGE, allow_none=True)
    longitude = Coordinate(*LONGITUDE_RANGE, allow_none=True)
    note = fields.String(allow_none=True)
    year_of_obs = fields.Integer(allow_none=True)
    phenophase_date = fields.String(allow_none=True, validate=validate.Length(max=64))
    year = fields.Integer(allow_none=True)
    measurement_type = fields.String(allow_none=True, validate=validate.Length(max=128))
    value = fields.String(allow_none=True, validate=validate.Length(max=128))
    biometric_id = fields.Integer(allow_none=True)


class PlantCreateSchema(PlantFieldsSchema):
    sector_id = fields.Integer(required=True, validate=validate.Range(min=1))
    latitude = Coordinate(*LATITUDE_RANGE, required=True)
    longitude = Coordinate(*LONGITUDE_RANGE, required=True)
    herbarium_presence = fields.Boolean(load_default=False)


class PlantUpdateSchema(PlantFieldsSchema):
    """One entry of a batch update; null or absent fields keep their stored value."""
    plant_id = fields.Integer(required=True)


class PlantOutSchema(PlantFieldsSchema):
    id = fields.Integer()
    family_name = fields.Function(lambda p: p.family.name if p.family else None)
    genus_name = fields.Function(lambda p: p.genus.name if p.genus else None)
    created_at = fields.DateTime()
    updated_at = fields.DateTime()


class MapPlantOutSchema(Schema):
    id = fields.Integer()
    species = fields.String(allow_none=True)
    variety = fields.String(allow_none=True)
    latitude = fields.Float()
    longitude = fields.Float()
    note = fields.String(allow_none=True)


class PlantIdsSchema(Schema):
    plant_ids = fields.List(fields.Integer(), required=True, validate=validate.Length(min=1))
