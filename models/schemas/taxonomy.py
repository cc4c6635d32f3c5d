from marshmallow import Schema, fields, pre_load, validate

NAME_LENGTH = validate.Length(min=1, max=100)


class _NamedCreateSchema(Schema):
    name = fields.String(required=True, validate=NAME_LENGTH)

    @pre_load
    def strip_name(self, data, **kwargs):
        if isinstance(data, dict) and isinstance(data.get("name"), str):
            data = dict(data, name=data["name"].strip())
        return data


class FamilyCreateSchema(_NamedCreateSchema):
    pass


class GenusCreateSchema(_NamedCreateSchema):
    pass


class SectorCreateSchema(_NamedCreateSchema):
    biometric_required = fields.Boolean(load_default=False)


class NamedOutSchema(Schema):
    id = fields.Integer()
    name = fields.String()
    created_at = fields.DateTime()
    updated_at = fields.DateTime()


class SectorOutSchema(NamedOutSchema):
    biometric_required = fields.Boolean()
