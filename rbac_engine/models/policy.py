"""
Policy model - the (role, permission, resource, scope) grant.

The tuple is unique across ALL rows, soft-deleted ones included. A
tuple that once existed can therefore never be inserted again: it is
reactivated by clearing is_deleted on the existing row.

Lifecycle per tuple:
    absent --create--> active --soft_delete--> inactive --restore--> active
"""

from uuid import UUID

from sqlalchemy import ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, AuditedMixin, SoftDeleteMixin
from .dimension import Permission, Resource, Role, Scope


class Policy(Base, AuditedMixin, SoftDeleteMixin):
    """
    A granted tuple.

    The four dimension rows are loaded eagerly with every policy, since
    the index builder needs their names.
    """

    __tablename__ = "policies"
    __table_args__ = (
        UniqueConstraint(
            "role_id",
            "permission_id",
            "resource_id",
            "scope_id",
            name="uq_policy_tuple",
        ),
    )

    role_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("roles.id", ondelete="NO ACTION"),
        nullable=False,
        index=True,
    )
    permission_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("permissions.id", ondelete="NO ACTION"),
        nullable=False,
    )
    resource_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("resources.id", ondelete="NO ACTION"),
        nullable=False,
    )
    scope_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("scopes.id", ondelete="NO ACTION"),
        nullable=False,
    )

    # Relationships
    role: Mapped[Role] = relationship(Role, lazy="selectin")
    permission: Mapped[Permission] = relationship(Permission, lazy="selectin")
    resource: Mapped[Resource] = relationship(Resource, lazy="selectin")
    scope: Mapped[Scope] = relationship(Scope, lazy="selectin")

    @property
    def key(self) -> tuple[UUID, UUID, UUID, UUID]:
        """Foreign-key tuple in (role, permission, resource, scope) order."""
        return (self.role_id, self.permission_id, self.resource_id, self.scope_id)

    def __repr__(self) -> str:
        state = " deleted" if self.is_deleted else ""
        return f"<Policy {self.id}{state}>"
