"""User resource schemas."""

from __future__ import annotations

from marshmallow import Schema, fields


class UserSchema(Schema):
    """Public representation of a user (no hashes, no auth stamps)."""

    id = fields.Integer(required=True)
    email = fields.Email(required=True)
    first_name = fields.String(required=True)
    last_name = fields.String(required=True)
    status = fields.String(required=True)
    is_verified = fields.Boolean(required=True)
    created_at = fields.DateTime(required=True)
