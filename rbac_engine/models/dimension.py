"""
Dimension models - Roles, Permissions, Resources and Scopes.

The four dimensions share one shape and are the axes of a policy:
"role R may exercise permission P on resource X within scope S".

Names are stored trimmed and lower-cased, and are unique among
non-deleted rows only, so a soft-deleted name can be reused.

Usage:
    admin = Role(name="Admin", description="Administrators")  # stored as "admin"
    model = DimensionKind.ROLE.model  # -> Role
"""

from enum import Enum

from sqlalchemy import Index, String, text
from sqlalchemy.orm import Mapped, declared_attr, mapped_column, validates

from rbac_engine.utils.names import normalize_name

from .base import Base, AuditedMixin, SoftDeleteMixin


class DimensionMixin(AuditedMixin, SoftDeleteMixin):
    """Shared columns of every dimension table."""

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False, default="")

    @declared_attr.directive
    def __table_args__(cls) -> tuple:
        return (
            Index(
                f"uq_{cls.__tablename__}_active_name",
                "name",
                unique=True,
                postgresql_where=text("NOT is_deleted"),
                sqlite_where=text("is_deleted = 0"),
            ),
        )

    @validates("name")
    def _normalize_name(self, key: str, value: str) -> str:
        name = normalize_name(value)
        if not name:
            raise ValueError(f"{type(self).__name__} name must not be empty")
        return name

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class Role(Base, DimensionMixin):
    """Role definition, e.g. "admin", "editor"."""

    __tablename__ = "roles"


class Permission(Base, DimensionMixin):
    """Permission (action) definition, e.g. "read", "update"."""

    __tablename__ = "permissions"


class Resource(Base, DimensionMixin):
    """Resource definition, e.g. "user", "invoice"."""

    __tablename__ = "resources"


class Scope(Base, DimensionMixin):
    """Scope definition, e.g. "global", "self"."""

    __tablename__ = "scopes"


Dimension = Role | Permission | Resource | Scope


class DimensionKind(str, Enum):
    """The four axes of an authorization decision."""

    ROLE = "role"
    PERMISSION = "permission"
    RESOURCE = "resource"
    SCOPE = "scope"

    @property
    def model(self) -> type[DimensionMixin]:
        return _DIMENSION_MODELS[self]


_DIMENSION_MODELS: dict[DimensionKind, type[DimensionMixin]] = {
    DimensionKind.ROLE: Role,
    DimensionKind.PERMISSION: Permission,
    DimensionKind.RESOURCE: Resource,
    DimensionKind.SCOPE: Scope,
}
