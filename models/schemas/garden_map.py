from marshmallow import Schema, fields, validate

from models.schemas.common import PolygonWKT


class AreaCreateSchema(Schema):
    location_path = fields.String(allow_none=True, validate=validate.Length(max=255))
    geometry = PolygonWKT(required=True)


class AreaUpdateSchema(Schema):
    location_path = fields.String(allow_none=True, validate=validate.Length(max=255))
    geometry = PolygonWKT(required=True)


class AreaOutSchema(Schema):
    id = fields.Integer()
    location_path = fields.String(allow_none=True)
    geometry = fields.String()


class MapImageOutSchema(Schema):
    image_path = fields.String()
