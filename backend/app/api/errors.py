"""
VaultError -> HTTPException mapping
"""
from fastapi import HTTPException

from lp_vault.errors import (
    ArithmeticViolation,
    StalenessViolation,
    UnauthorizedCaller,
    VaultError,
)


def vault_http_error(error: VaultError) -> HTTPException:
    """Translate a vault failure into an HTTP error with the reason as detail"""
    if isinstance(error, UnauthorizedCaller):
        status_code = 403
    elif isinstance(error, StalenessViolation) or error.reason == "reentrant call":
        status_code = 409
    elif isinstance(error, ArithmeticViolation):
        status_code = 422
    else:
        status_code = 400

    print(f"[Vault] {type(error).__name__}: {error}")
    return HTTPException(
        status_code=status_code,
        detail={"reason": error.reason, "detail": error.detail or None}
    )
