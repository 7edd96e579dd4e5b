from marshmallow import Schema, fields, pre_load, validates, validate, ValidationError


def _norm_email(v):
    # trim only; emails are matched exactly as stored
    return v.strip() if isinstance(v, str) else v


class RegisterSchema(Schema):
    email = fields.Email(required=True)
    password = fields.String(required=True, load_only=True)
    first_name = fields.String(allow_none=True)
    last_name = fields.String(allow_none=True)
    phone_number = fields.String(allow_none=True, validate=validate.Length(max=32))

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data["email"] = _norm_email(data["email"])
        return data

    @validates("password")
    def validate_password(self, value, **kwargs):
        if len(value) < 8:
            raise ValidationError("Password must be at least 8 characters long.")


class LoginSchema(Schema):
    email = fields.Email(required=True)
    # no length rule here: a short password is just a wrong password
    password = fields.String(required=True, load_only=True, validate=validate.Length(min=1))

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data["email"] = _norm_email(data["email"])
        return data


class UserOutSchema(Schema):
    id = fields.String(allow_none=False)
    email = fields.String()
    first_name = fields.String(allow_none=True)
    last_name = fields.String(allow_none=True)
    phone_number = fields.String(allow_none=True)
    status = fields.Method("get_status")
    email_verified = fields.Boolean()
    last_login_at = fields.DateTime(allow_none=True)
    created_at = fields.DateTime()

    def get_status(self, obj):
        status = getattr(obj, "status", None)
        return getattr(status, "value", status)
