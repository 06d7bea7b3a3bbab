"""Application services."""

from fileflow.application.services.auth_service import AuthService

__all__ = ["AuthService"]
