from .basic import AdminAuthResult, safe_equal, verify_admin_basic_auth

__all__ = [
    "AdminAuthResult",
    "safe_equal",
    "verify_admin_basic_auth",
]
