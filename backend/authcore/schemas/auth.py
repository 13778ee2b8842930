"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, fields, validate

from authcore.models.otp import OTP_TYPES

otp_type_field = fields.String(required=True, validate=validate.OneOf(OTP_TYPES))
token_field = fields.String(required=True, validate=validate.Length(min=1, max=4096))


class SignupSchema(Schema):
    """Input payload for account registration."""

    email = fields.Email(required=True, validate=validate.Length(max=100))
    password = fields.String(required=True, validate=validate.Length(min=6, max=128))
    first_name = fields.String(load_default="", validate=validate.Length(max=100))
    last_name = fields.String(load_default="", validate=validate.Length(max=100))


class LoginSchema(Schema):
    """Input payload for authenticating a user."""

    email = fields.Email(required=True, validate=validate.Length(max=100))
    password = fields.String(required=True, validate=validate.Length(min=1, max=128))


class TokenSchema(Schema):
    """Single encoded token (refresh rotation, logout)."""

    token = token_field


class OtpRequestSchema(Schema):
    email = fields.Email(required=True, validate=validate.Length(max=100))
    otp_type = otp_type_field
    multi_use = fields.Boolean(load_default=False)


class OtpVerifySchema(Schema):
    otp_id = fields.Integer(required=True, strict=True, validate=validate.Range(min=1))
    otp_type = otp_type_field
    otp = fields.String(required=True, validate=validate.Regexp(r"^\d{4,12}$"))


class OtpGuardSchema(Schema):
    """OTP proof fields carried by gated requests; other fields are ignored here."""

    class Meta:
        unknown = EXCLUDE

    otp_id = fields.Integer(required=True, strict=True, validate=validate.Range(min=1))
    otp_type = otp_type_field
    verification_token = fields.String(required=True, validate=validate.Regexp(r"^\d{4,12}$"))


class AccountVerifySchema(OtpGuardSchema):
    class Meta:
        unknown = EXCLUDE

    email = fields.Email(required=True, validate=validate.Length(max=100))


class PasswordResetSchema(OtpGuardSchema):
    class Meta:
        unknown = EXCLUDE

    email = fields.Email(required=True, validate=validate.Length(max=100))
    password = fields.String(required=True, validate=validate.Length(min=6, max=128))


# ------------------------------ Responses ------------------------------


class TokenPairSchema(Schema):
    """Response payload with a signed pair and its timestamps."""

    access_token = fields.String(required=True)
    refresh_token = fields.String(required=True)
    user_id = fields.Integer(required=True)
    access_iat = fields.DateTime(required=True)
    refresh_iat = fields.DateTime(required=True)
    access_exp = fields.DateTime(required=True)
    refresh_exp = fields.DateTime(required=True)
    token_type = fields.Constant("bearer")


class OtpRequestResponseSchema(Schema):
    otp_id = fields.Integer(required=True)
    otp_type = fields.String(required=True)
    expires_at = fields.DateTime(required=True)


class OtpVerifyResponseSchema(Schema):
    otp_id = fields.Integer(required=True)
    verification_token = fields.String(required=True)
