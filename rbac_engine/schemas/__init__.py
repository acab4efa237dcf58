"""Pydantic schemas."""

from rbac_engine.schemas.access_control import AccessAction, AccessControl

__all__ = ["AccessAction", "AccessControl"]
