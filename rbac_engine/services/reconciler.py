"""
ACL Reconciler - applies a batch of grant/revoke intents.

Each intent is processed in order and on its own:

    Grant:  resolve names -> already active?      -> nothing to do
                          -> exists soft-deleted? -> restore the same row
                          -> otherwise            -> create
    Revoke: resolve names -> active?              -> soft delete
                          -> otherwise            -> nothing to do

Intents whose names do not resolve, or that fail validation, are skipped
and reported; they never abort the batch. Each applied intent is
committed on its own, so a storage failure aborts the rest of the batch
without undoing what was already applied.

The authorization cache is invalidated after every batch, including
batches that changed nothing or failed half-way.

Usage:
    reconciler = ACLReconciler(db, authorization_cache)
    report = await reconciler.reconcile([
        {"role": "admin", "permission": "read", "resource": "user",
         "scope": "global", "action": "grant"},
    ], actor_id=current_user.id)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Sequence
from uuid import UUID, uuid4

import structlog
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rbac_engine.core.exceptions import ConstraintViolationError, FatalStorageError
from rbac_engine.repositories.dimension import DimensionStore, ResolvedDimensions
from rbac_engine.repositories.policy import PolicyRepository
from rbac_engine.schemas.access_control import AccessAction, AccessControl
from rbac_engine.services.authorization import AuthorizationCache

logger = structlog.get_logger()


class IntentStatus(str, Enum):
    """What happened to one intent."""

    GRANTED = "granted"                  # new policy row created
    RESTORED = "restored"                # soft-deleted row reactivated
    ALREADY_GRANTED = "already_granted"  # active row existed
    REVOKED = "revoked"                  # active row soft-deleted
    NOT_GRANTED = "not_granted"          # nothing active to revoke
    UNRESOLVED = "unresolved"            # a dimension name is unknown
    INVALID = "invalid"                  # intent failed validation

    @property
    def changed(self) -> bool:
        return self in (IntentStatus.GRANTED, IntentStatus.RESTORED, IntentStatus.REVOKED)


@dataclass
class IntentOutcome:
    """Result of one intent."""

    status: IntentStatus
    intent: AccessControl | None = None
    policy_id: UUID | None = None
    missing: list[str] = field(default_factory=list)
    error: str | None = None
    position: int = 0


@dataclass
class ReconcileReport:
    """Per-intent outcomes of a batch, in input order."""

    batch_id: str
    outcomes: list[IntentOutcome] = field(default_factory=list)

    def count(self, status: IntentStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == status)

    @property
    def changed(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status.changed)

    @property
    def skipped(self) -> int:
        return self.count(IntentStatus.UNRESOLVED) + self.count(IntentStatus.INVALID)

    def summary(self) -> dict[str, int]:
        return {status.value: self.count(status) for status in IntentStatus}


IntentInput = AccessControl | Mapping[str, Any]


class ACLReconciler:
    """
    Applies grant/revoke intents against the policy store.
    """

    def __init__(self, db: AsyncSession, authorization: AuthorizationCache):
        self.db = db
        self.authorization = authorization
        self.dimensions = DimensionStore(db)
        self.policies = PolicyRepository(db)

    async def reconcile(
        self,
        intents: Sequence[IntentInput],
        actor_id: UUID | None = None,
    ) -> ReconcileReport:
        """
        Apply a batch of intents.

        Raises:
            FatalStorageError: storage failed; intents before the failing
                one stay applied.
        """
        intents = list(intents)
        report = ReconcileReport(batch_id=uuid4().hex)

        with structlog.contextvars.bound_contextvars(batch_id=report.batch_id):
            logger.info("Reconciling access controls", intents=len(intents))
            try:
                for position, raw in enumerate(intents):
                    outcome = await self._apply(position, raw, actor_id)
                    report.outcomes.append(outcome)
            except BaseException:
                await self._invalidate_after_failure()
                raise
            await self.authorization.invalidate()

            logger.info("Access controls reconciled", **report.summary())

        return report

    async def _invalidate_after_failure(self) -> None:
        # The batch error propagates; an invalidation error must not replace it
        try:
            await self.authorization.invalidate()
        except Exception as exc:
            logger.error("Failed to invalidate policy index after failed batch", error=str(exc))

    async def _apply(
        self,
        position: int,
        raw: IntentInput,
        actor_id: UUID | None,
    ) -> IntentOutcome:
        try:
            intent = raw if isinstance(raw, AccessControl) else AccessControl.model_validate(raw)
        except ValidationError as exc:
            logger.info("Invalid access control skipped", position=position, errors=exc.error_count())
            return IntentOutcome(IntentStatus.INVALID, error=str(exc), position=position)

        try:
            outcome = await self.apply_intent(intent, actor_id)
            await self.db.commit()
        except ConstraintViolationError as exc:
            # find_any ran first, so another writer inserted the tuple meanwhile
            logger.error("Concurrent policy write detected", position=position, **intent.describe())
            raise FatalStorageError(
                "Policy changed concurrently while reconciling",
                position=position,
            ) from exc
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.error(
                "Storage failure while reconciling",
                position=position,
                error=str(exc),
                **intent.describe(),
            )
            raise FatalStorageError(
                "Storage failure while reconciling access controls",
                position=position,
            ) from exc

        outcome.position = position
        return outcome

    async def apply_intent(
        self,
        intent: AccessControl,
        actor_id: UUID | None = None,
    ) -> IntentOutcome:
        """Apply one validated intent without committing."""
        resolved, missing = await self.dimensions.resolve(
            intent.role,
            intent.permission,
            intent.resource,
            intent.scope,
        )
        if resolved is None:
            logger.info(
                "Access control references unknown names, skipped",
                missing=[kind.value for kind in missing],
                **intent.describe(),
            )
            return IntentOutcome(
                status=IntentStatus.UNRESOLVED,
                intent=intent,
                missing=[kind.value for kind in missing],
            )

        if intent.action is AccessAction.GRANT:
            return await self._grant(intent, resolved, actor_id)
        return await self._revoke(intent, resolved, actor_id)

    async def _grant(
        self,
        intent: AccessControl,
        dims: ResolvedDimensions,
        actor_id: UUID | None,
    ) -> IntentOutcome:
        args = (dims.role, dims.permission, dims.resource, dims.scope)

        active = await self.policies.find_active(*args)
        if active:
            logger.debug("Policy already granted", policy_id=str(active.id))
            return IntentOutcome(IntentStatus.ALREADY_GRANTED, intent, policy_id=active.id)

        existing = await self.policies.find_any(*args)
        if existing:
            policy = await self.policies.restore(existing.id, actor_id=actor_id)
            logger.info("Policy restored", policy_id=str(policy.id), **intent.describe())
            return IntentOutcome(IntentStatus.RESTORED, intent, policy_id=policy.id)

        policy = await self.policies.create_policy(*args, actor_id=actor_id)
        logger.info("Policy granted", policy_id=str(policy.id), **intent.describe())
        return IntentOutcome(IntentStatus.GRANTED, intent, policy_id=policy.id)

    async def _revoke(
        self,
        intent: AccessControl,
        dims: ResolvedDimensions,
        actor_id: UUID | None,
    ) -> IntentOutcome:
        active = await self.policies.find_active(
            dims.role, dims.permission, dims.resource, dims.scope
        )
        if not active:
            logger.debug("No active policy to revoke", **intent.describe())
            return IntentOutcome(IntentStatus.NOT_GRANTED, intent)

        policy = await self.policies.soft_delete(active.id, actor_id=actor_id)
        logger.info("Policy revoked", policy_id=str(policy.id), **intent.describe())
        return IntentOutcome(IntentStatus.REVOKED, intent, policy_id=policy.id)
