"""Authentication endpoints using the service layer."""

from __future__ import annotations

from flask import Blueprint, g

from authcore.api.deps import (
    bearer_token,
    build_auth_service,
    json_response,
    rate_limited,
    request_json,
    require_auth,
    require_otp,
    timing,
)
from authcore.schemas import (
    AccountVerifySchema,
    LoginSchema,
    OtpRequestResponseSchema,
    OtpRequestSchema,
    OtpVerifyResponseSchema,
    OtpVerifySchema,
    PasswordResetSchema,
    SignupSchema,
    TokenPairSchema,
    TokenSchema,
    UserSchema,
)
from authcore.services.auth.dto import (
    LoginIn,
    LogoutIn,
    OtpRequestIn,
    OtpVerifyIn,
    RefreshIn,
    SignupIn,
)

bp = Blueprint("auth", __name__, url_prefix="/auth")

signup_schema = SignupSchema()
login_schema = LoginSchema()
token_schema = TokenSchema()
otp_request_schema = OtpRequestSchema()
otp_verify_schema = OtpVerifySchema()
account_verify_schema = AccountVerifySchema()
password_reset_schema = PasswordResetSchema()
token_pair_schema = TokenPairSchema()
otp_request_response_schema = OtpRequestResponseSchema()
otp_verify_response_schema = OtpVerifyResponseSchema()
user_schema = UserSchema()


@bp.post("/login")
@rate_limited("login", "AUTH_LOGIN_RATE_LIMIT")
@timing
def login():
    """Authenticate credentials and issue a token pair."""

    data = login_schema.load(request_json())
    pair = build_auth_service().login(LoginIn(email=data["email"], password=data["password"]))
    return json_response({"data": token_pair_schema.dump(pair)})


@bp.post("/signup")
@timing
def signup():
    """Create an unverified account."""

    data = signup_schema.load(request_json())
    build_auth_service().signup(SignupIn(**data))
    return json_response(
        {"message": "Signup successful, proceed to verify your account"}, status=201
    )


@bp.post("/refresh")
@timing
def refresh():
    """Rotate a refresh token into a new pair."""

    data = token_schema.load(request_json())
    pair = build_auth_service().refresh(RefreshIn(refresh_token=data["token"]))
    return json_response({"data": token_pair_schema.dump(pair)})


@bp.post("/logout")
@timing
def logout():
    """Revoke the bearer access token and the refresh token from the body."""

    data = token_schema.load(request_json())
    build_auth_service().logout(
        LogoutIn(access_token=bearer_token(), refresh_token=data["token"])
    )
    return json_response({"message": "Successfully logged out"})


@bp.post("/otp/request")
@rate_limited("otp", "AUTH_OTP_RATE_LIMIT")
@timing
def request_otp():
    """Issue a passcode; it is delivered out-of-band, never in the response."""

    data = otp_request_schema.load(request_json())
    out = build_auth_service().request_otp(OtpRequestIn(**data))
    return json_response({"data": otp_request_response_schema.dump(out)}, status=201)


@bp.post("/otp/verify")
@rate_limited("otp_verify", "AUTH_OTP_VERIFY_RATE_LIMIT", body_field="otp_id")
@timing
def verify_otp():
    """Check the passcode and hand out the token that authorizes one follow-up action."""

    data = otp_verify_schema.load(request_json())
    out = build_auth_service().verify_otp(OtpVerifyIn(**data))
    return json_response(
        {"message": "OTP verified successfully", "data": otp_verify_response_schema.dump(out)}
    )


@bp.post("/account/verify")
@require_otp(account_verify_schema)
@timing
def verify_account():
    """Mark the account verified; requires a spent OTP owned by that account."""

    build_auth_service().verify_account(g.payload["email"], g.otp_record)
    return json_response({"message": "Account verified successfully, proceed to log in"})


@bp.post("/password/reset")
@require_otp(password_reset_schema)
@timing
def reset_password():
    """Replace the password; requires a spent OTP owned by that account."""

    data = g.payload
    build_auth_service().reset_password(data["email"], data["password"], g.otp_record)
    return json_response({"message": "Password reset successfully"})


@bp.get("/me")
@require_auth
@timing
def whoami():
    """Return the authenticated user profile."""

    user = build_auth_service().whoami(g.user_id)
    return json_response({"data": user_schema.dump(user)})
