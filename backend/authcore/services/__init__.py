"""Service layer.

Subpackages
-----------
- ``_shared``: base service, error taxonomy, hashing and ports.
- ``tokens``: :class:`~authcore.services.tokens.service.TokenService`.
- ``otp``: :class:`~authcore.services.otp.service.OTPService`.
- ``auth``: :class:`~authcore.services.auth.service.AuthService`, the orchestrator.

Import services from their modules; this package stays import-free because
the models depend on ``_shared.hashing``.
"""
