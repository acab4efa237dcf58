"""
Policy resolution and reconciliation services.
"""

from rbac_engine.services.authorization import AuthorizationCache
from rbac_engine.services.index import Grant, PolicyIndex, build_policy_index
from rbac_engine.services.policy import PolicyService
from rbac_engine.services.reconciler import (
    ACLReconciler,
    IntentOutcome,
    IntentStatus,
    ReconcileReport,
)

__all__ = [
    "AuthorizationCache",
    "Grant",
    "PolicyIndex",
    "build_policy_index",
    "PolicyService",
    "ACLReconciler",
    "IntentOutcome",
    "IntentStatus",
    "ReconcileReport",
]
