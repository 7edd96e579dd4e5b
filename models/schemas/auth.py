from marshmallow import Schema, fields, validate, validates, ValidationError


class RefreshTokenSchema(Schema):
    refresh_token = fields.String(required=True, validate=validate.Length(min=1))


class VerifyEmailSchema(Schema):
    """code_length must match the length codes are minted with (VERIFY_EMAIL_CODE_LENGTH)."""

    code = fields.String(
        required=True,
        validate=validate.Regexp(r"^[A-Za-z0-9]+$", error="Code must be alphanumeric."),
    )

    def __init__(self, *args, code_length: int = 6, **kwargs):
        super().__init__(*args, **kwargs)
        self.code_length = code_length

    @validates("code")
    def validate_code_length(self, value, **kwargs):
        if len(value) != self.code_length:
            raise ValidationError(f"Length must be {self.code_length}.")


class TokenPairSchema(Schema):
    access_token = fields.String()
    refresh_token = fields.String()
    expires_in = fields.Integer()
    token_type = fields.String()
