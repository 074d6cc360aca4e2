"""
Job and candidate lifecycle state machines.

Each workflow is a fixed directed graph over its status enumeration. Edges
are single steps: reaching a status two hops away takes two transitions.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from hiretrack.errors import InvalidTransition, StaleStatus, ValidationError
from hiretrack.models import Candidate, Job
from hiretrack.services.notifier import Notifier
from hiretrack.services.record_store import RecordStore
from hiretrack.services.tenancy import AccessGuard
from hiretrack.utils.timestamps import now_str

logger = logging.getLogger(__name__)


class JobStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    PAUSED = "paused"
    CLOSED = "closed"
    ARCHIVED = "archived"


class CandidateStatus(str, Enum):
    NEW = "new"
    APPLIED = "applied"
    SCREENING = "screening"
    INTERVIEW = "interview"
    OFFER = "offer"
    HIRED = "hired"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"
    ON_HOLD = "on-hold"
    ARCHIVED = "archived"


JOB_TRANSITIONS: Mapping[str, tuple[str, ...]] = MappingProxyType({
    "draft": ("active", "archived"),
    "active": ("paused", "closed", "archived"),
    "paused": ("active", "closed", "archived"),
    "closed": ("active", "archived"),
    "archived": (),
})

# "new" is how submitted applications arrive; it behaves exactly like "applied".
CANDIDATE_TRANSITIONS: Mapping[str, tuple[str, ...]] = MappingProxyType({
    "new": ("screening", "rejected"),
    "applied": ("screening", "rejected"),
    "screening": ("interview", "rejected", "on-hold"),
    "interview": ("offer", "rejected", "on-hold"),
    "offer": ("hired", "rejected", "withdrawn"),
    "hired": ("archived",),
    "rejected": ("archived",),
    "withdrawn": ("archived",),
    "on-hold": ("screening", "interview", "rejected"),
    "archived": (),
})


@dataclass(frozen=True)
class Workflow:
    entity: str
    label: str
    model: type
    transitions: Mapping[str, tuple[str, ...]]
    # Statuses that notify the actor when entered.
    significant: frozenset[str]

    @property
    def statuses(self) -> tuple[str, ...]:
        return tuple(self.transitions)

    def allowed(self, current: str) -> list[str]:
        return list(self.transitions.get(current, ()))

    def validate(self, current: str, proposed: str) -> bool:
        return proposed in self.transitions.get(current, ())

    def rules(self) -> dict[str, list[str]]:
        return {status: list(edges) for status, edges in self.transitions.items()}


JOB_WORKFLOW = Workflow(
    entity="job",
    label="Job",
    model=Job,
    transitions=JOB_TRANSITIONS,
    significant=frozenset({"active", "closed", "archived"}),
)

CANDIDATE_WORKFLOW = Workflow(
    entity="candidate",
    label="Candidate",
    model=Candidate,
    transitions=CANDIDATE_TRANSITIONS,
    significant=frozenset({"hired", "rejected", "offer"}),
)

WORKFLOWS: Mapping[str, Workflow] = MappingProxyType({
    JOB_WORKFLOW.entity: JOB_WORKFLOW,
    CANDIDATE_WORKFLOW.entity: CANDIDATE_WORKFLOW,
})


@dataclass
class TransitionResult:
    record: object
    previous_status: str
    new_status: str
    changed_by: str
    changed_at: str
    reason: str | None


class StatusTransitionEngine:
    def __init__(
        self,
        store: RecordStore,
        guard: AccessGuard,
        notifier: Notifier | None = None,
        workflows: Mapping[str, Workflow] = WORKFLOWS,
    ):
        self.store = store
        self.guard = guard
        self.notifier = notifier
        self.workflows = workflows

    def workflow(self, entity: str) -> Workflow:
        try:
            return self.workflows[entity]
        except KeyError:
            raise ValidationError(f"Unknown record type {entity!r}") from None

    def validate_transition(self, entity: str, current: str, proposed: str) -> bool:
        return self.workflow(entity).validate(current, proposed)

    def allowed_transitions(self, entity: str, current: str) -> list[str]:
        return self.workflow(entity).allowed(current)

    def fetch(self, entity: str, record_id: str):
        wf = self.workflow(entity)
        return self.guard.check(self.store.get(wf.model, record_id), wf.label)

    def apply_transition(
        self,
        entity: str,
        record_id: str,
        proposed: str,
        actor_id: str,
        reason: str | None = None,
        notes: str | None = None,
    ) -> TransitionResult:
        wf = self.workflow(entity)
        record = self.fetch(entity, record_id)

        previous = record.status
        # Nothing leaves a terminal status, whatever the proposed token.
        if not wf.allowed(previous):
            raise InvalidTransition(previous, proposed, [])
        if proposed not in wf.transitions:
            raise ValidationError(
                f"Unknown {entity} status {proposed!r}. Must be one of: {', '.join(wf.statuses)}"
            )
        if not wf.validate(previous, proposed):
            raise InvalidTransition(previous, proposed, wf.allowed(previous))

        changed_at = now_str()
        fields = {"updated_at": changed_at}
        if entity == "candidate":
            if proposed == CandidateStatus.HIRED.value:
                fields["hired_at"] = changed_at
            if notes:
                entry = f"[{changed_at}] Status changed to {proposed}: {notes}"
                fields["notes"] = f"{record.notes}\n\n{entry}" if record.notes else entry

        if not self.store.update_status_if(wf.model, record.id, previous, proposed, **fields):
            self.store.rollback()
            raise StaleStatus(previous)
        self.store.add_status_change(
            tenant_id=record.tenant_id,
            entity=entity,
            record_id=record.id,
            previous_status=previous,
            new_status=proposed,
            changed_by=actor_id,
            reason=reason,
            changed_at=changed_at,
        )
        self.store.commit()
        self.store.refresh(record)

        logger.info(
            "%s %s status changed from %s to %s by user %s%s",
            wf.label, record.id, previous, proposed, actor_id,
            f" (reason: {reason})" if reason else "",
        )

        if self.notifier is not None and proposed in wf.significant:
            try:
                self.notifier.status_changed(record.tenant_id, actor_id, entity, record, proposed)
            except Exception:
                # The status change is already committed; a lost notification
                # must not undo it.
                self.store.rollback()
                logger.exception("Failed to send status notification for %s %s", entity, record.id)

        return TransitionResult(
            record=record,
            previous_status=previous,
            new_status=proposed,
            changed_by=actor_id,
            changed_at=changed_at,
            reason=reason,
        )
