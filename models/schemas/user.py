from marshmallow import Schema, fields, pre_load, validate

from models.user import Role

ROLE_VALUES = [r.value for r in Role]


def _norm_email(v):
    return v.strip().lower() if isinstance(v, str) else v


class UserCreateSchema(Schema):
    email = fields.Email(required=True, validate=validate.Length(max=255))
    password = fields.String(required=True, load_only=True, validate=validate.Length(min=1))

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data = dict(data, email=_norm_email(data["email"]))
        return data


class UserLoginSchema(Schema):
    email = fields.String(required=True, validate=validate.Length(min=1))
    password = fields.String(required=True, validate=validate.Length(min=1))

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data = dict(data, email=_norm_email(data["email"]))
        return data


class RefreshRequestSchema(Schema):
    # the (possibly expired) access token
    token = fields.String(required=True, validate=validate.Length(min=1))
    refresh_token = fields.String(required=True, validate=validate.Length(min=1))


class RoleUpdateSchema(Schema):
    role = fields.String(required=True, validate=validate.OneOf(ROLE_VALUES))


class UserOutSchema(Schema):
    email = fields.String()
    role = fields.Function(lambda obj: Role(obj.role).value)


class UserListOutSchema(UserOutSchema):
    id = fields.Integer()
    created_at = fields.DateTime()
