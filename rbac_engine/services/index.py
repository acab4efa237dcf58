"""
Policy Index - compiled view of every active policy.

Structure:
    {
      ROLE: {
        RESOURCE: {
          PERMISSION: {
            SCOPE: POLICY_ID
          }
        }
      }
    }

Example:
    {
      "ADMIN": {
        "USER": {
          "READ": {"GLOBAL": "1234abcd-..."},
          "UPDATE": {"SELF": "5678efgh-..."},
        }
      }
    }

Keys are trimmed, upper-cased dimension names. Leaves hold the id of the
authorizing policy, not a flag, so every decision can be traced back.

The index is rebuilt wholesale from the policy list and never patched.
"""

from __future__ import annotations

from typing import Any, Iterable, Iterator, NamedTuple

import structlog

from rbac_engine.models.policy import Policy
from rbac_engine.utils.names import index_key

logger = structlog.get_logger()

IndexTree = dict[str, dict[str, dict[str, dict[str, str]]]]


class Grant(NamedTuple):
    """One leaf of the index."""

    role: str
    permission: str
    resource: str
    scope: str
    policy_id: str


class PolicyIndex:
    """
    Four chained mappings: role -> resource -> permission -> scope -> policy id.

    Lookups take arguments in (role, permission, resource, scope) order,
    the same order as authorize(), and normalize names themselves.
    """

    __slots__ = ("_tree",)

    def __init__(self, tree: IndexTree | None = None):
        self._tree: IndexTree = tree if tree is not None else {}

    # --- building ---

    def add(
        self,
        role: str,
        permission: str,
        resource: str,
        scope: str,
        policy_id: str,
    ) -> bool:
        """
        Insert a path, creating intermediate levels on first use.

        An existing leaf is kept. Returns False when the path was
        already present.
        """
        scopes = (
            self._tree
            .setdefault(index_key(role), {})
            .setdefault(index_key(resource), {})
            .setdefault(index_key(permission), {})
        )
        scope_key = index_key(scope)
        if scope_key in scopes:
            return False
        scopes[scope_key] = str(policy_id)
        return True

    # --- queries ---

    def lookup(
        self,
        role: str,
        permission: str,
        resource: str,
        scope: str,
    ) -> str | None:
        """Id of the policy granting the tuple, or None."""
        return (
            self._tree
            .get(index_key(role), {})
            .get(index_key(resource), {})
            .get(index_key(permission), {})
            .get(index_key(scope))
        )

    def contains(self, role: str, permission: str, resource: str, scope: str) -> bool:
        return self.lookup(role, permission, resource, scope) is not None

    def roles(self) -> list[str]:
        return sorted(self._tree)

    def grants(self, role: str | None = None) -> Iterator[Grant]:
        """Iterate leaves, optionally for one role only."""
        if role is None:
            roles = self._tree.items()
        else:
            key = index_key(role)
            roles = [(key, self._tree.get(key, {}))]

        for role_key, resources in roles:
            for resource_key, permissions in resources.items():
                for permission_key, scopes in permissions.items():
                    for scope_key, policy_id in scopes.items():
                        yield Grant(role_key, permission_key, resource_key, scope_key, policy_id)

    def __len__(self) -> int:
        return sum(1 for _ in self.grants())

    def __bool__(self) -> bool:
        return bool(self._tree)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PolicyIndex):
            return NotImplemented
        return self._tree == other._tree

    def __repr__(self) -> str:
        return f"<PolicyIndex roles={len(self._tree)} grants={len(self)}>"

    # --- serialization ---

    def to_dict(self) -> IndexTree:
        """
        Plain nested dict (JSON-compatible), suitable for any cache backend.

        Returns a copy; changing it never reaches this index.
        """
        return _copy_tree(self._tree)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PolicyIndex":
        """Index over a copy of `data`, so cached entries stay untouched."""
        return cls(_copy_tree(data))


def _copy_tree(tree: dict[str, Any]) -> IndexTree:
    return {
        role: {
            resource: {
                permission: dict(scopes)
                for permission, scopes in permissions.items()
            }
            for resource, permissions in resources.items()
        }
        for role, resources in tree.items()
    }


def _skip_reason(policy: Policy) -> str | None:
    if policy.is_deleted:
        return "policy is deleted"
    for attr in ("role", "permission", "resource", "scope"):
        dimension = getattr(policy, attr, None)
        if dimension is None:
            return f"{attr} missing"
        if not index_key(dimension.name):
            return f"{attr} has empty name"
        if dimension.is_deleted:
            return f"{attr} is deleted"
    return None


def build_policy_index(policies: Iterable[Policy]) -> PolicyIndex:
    """
    Compile policies into a PolicyIndex.

    Pure function: no I/O, the dimension relationships must already be
    loaded. Policies referencing a missing, unnamed or deleted dimension
    are skipped.
    """
    index = PolicyIndex()
    skipped = 0

    for policy in policies:
        reason = _skip_reason(policy)
        if reason:
            skipped += 1
            logger.warning(
                "Skipping policy while building index",
                policy_id=str(policy.id),
                reason=reason,
            )
            continue

        added = index.add(
            role=policy.role.name,
            permission=policy.permission.name,
            resource=policy.resource.name,
            scope=policy.scope.name,
            policy_id=str(policy.id),
        )
        if not added:
            logger.warning(
                "Duplicate policy path ignored",
                policy_id=str(policy.id),
            )

    logger.debug("Policy index built", grants=len(index), skipped=skipped)
    return index
