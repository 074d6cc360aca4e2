import logging

import pytest

from hiretrack.errors import InvalidTransition, StaleStatus, ValidationError
from hiretrack.models import Notification
from hiretrack.services.record_store import RecordStore
from hiretrack.services.tenancy import AccessGuard, TenantContext
from hiretrack.services.transitions import (
    CANDIDATE_WORKFLOW,
    JOB_TRANSITIONS,
    JOB_WORKFLOW,
    StatusTransitionEngine,
)


class TestWorkflowGraphs:
    def test_job_edges(self):
        assert JOB_WORKFLOW.validate("draft", "active")
        assert not JOB_WORKFLOW.validate("draft", "closed")
        assert JOB_WORKFLOW.allowed("archived") == []

    def test_candidate_edges_are_single_step(self):
        assert CANDIDATE_WORKFLOW.validate("applied", "screening")
        assert not CANDIDATE_WORKFLOW.validate("applied", "interview")
        assert CANDIDATE_WORKFLOW.allowed("new") == CANDIDATE_WORKFLOW.allowed("applied")

    def test_unknown_current_status_has_no_edges(self):
        assert CANDIDATE_WORKFLOW.allowed("bogus") == []
        assert not JOB_WORKFLOW.validate("bogus", "active")

    def test_graph_is_read_only(self):
        with pytest.raises(TypeError):
            JOB_TRANSITIONS["draft"] = ("closed",)

    def test_rules_cover_every_status(self):
        assert set(JOB_WORKFLOW.rules()) == {"draft", "active", "paused", "closed", "archived"}


class _StaleStore(RecordStore):
    def update_status_if(self, *args, **kwargs):
        return False


class _BrokenNotifier:
    def status_changed(self, *args, **kwargs):
        raise RuntimeError("mail server down")


def _engine(store, org, notifier=None):
    guard = AccessGuard(store, TenantContext(org.tenant_id, org.user_id, "admin"))
    return StatusTransitionEngine(store, guard, notifier=notifier)


class TestTransitionEngine:
    def test_apply_records_history(self, store, acme):
        job = store.create_job(acme.tenant_id, title="Ops", department="IT", type="contract")
        result = _engine(store, acme).apply_transition("job", job.id, "active", acme.user_id, reason="ready")
        assert (result.previous_status, result.new_status) == ("draft", "active")
        store.refresh(job)
        assert job.status == "active"
        history = store.list_status_changes(acme.tenant_id, "job", job.id)
        assert [(h.previous_status, h.new_status, h.reason) for h in history] == [("draft", "active", "ready")]

    def test_invalid_edge_lists_allowed(self, store, acme):
        job = store.create_job(acme.tenant_id, title="Ops", department="IT", type="contract")
        with pytest.raises(InvalidTransition) as exc:
            _engine(store, acme).apply_transition("job", job.id, "closed", acme.user_id)
        assert exc.value.allowed == ["active", "archived"]
        store.refresh(job)
        assert job.status == "draft"
        assert store.list_status_changes(acme.tenant_id, "job", job.id) == []

    def test_unknown_status(self, store, acme):
        job = store.create_job(acme.tenant_id, title="Ops", department="IT", type="contract")
        with pytest.raises(ValidationError):
            _engine(store, acme).apply_transition("job", job.id, "launched", acme.user_id)

    def test_unknown_entity(self, store, acme):
        with pytest.raises(ValidationError):
            _engine(store, acme).workflow("invoice")

    def test_concurrent_change_is_rejected(self, db, acme):
        store = _StaleStore(db)
        job = store.create_job(acme.tenant_id, title="Ops", department="IT", type="contract")
        with pytest.raises(StaleStatus) as exc:
            _engine(store, acme).apply_transition("job", job.id, "active", acme.user_id)
        assert exc.value.status_code == 409
        assert store.list_status_changes(acme.tenant_id, "job", job.id) == []

    def test_notifier_failure_keeps_change(self, store, acme, caplog):
        job = store.create_job(acme.tenant_id, title="Ops", department="IT", type="contract")
        with caplog.at_level(logging.ERROR, logger="hiretrack.services.transitions"):
            _engine(store, acme, _BrokenNotifier()).apply_transition("job", job.id, "active", acme.user_id)
        store.refresh(job)
        assert job.status == "active"
        assert len(store.list_status_changes(acme.tenant_id, "job", job.id)) == 1
        assert "Failed to send status notification" in caplog.text

    def test_hire_stamps_hired_at(self, store, acme):
        cand = store.create_candidate(acme.tenant_id, full_name="Ada", email="ada@example.com", status="offer")
        _engine(store, acme).apply_transition("candidate", cand.id, "hired", acme.user_id)
        store.refresh(cand)
        assert cand.hired_at is not None


class TestStatusEndpoints:
    def test_job_transitions(self, client, acme, make_job):
        job = make_job(acme)
        r = client.get(f"/api/jobs/{job['id']}/status-transitions", headers=acme.headers)
        assert r.status_code == 200
        data = r.json()
        assert data["currentStatus"] == "draft"
        assert data["allowedTransitions"] == ["active", "archived"]
        assert data["transitionRules"]["archived"] == []

    def test_candidate_walk_to_hired(self, client, acme, make_job, make_candidate):
        cand = make_candidate(acme, make_job(acme)["id"])
        for status in ("screening", "interview", "offer", "hired"):
            r = client.patch(f"/api/candidates/{cand['id']}/status", json={"status": status}, headers=acme.headers)
            assert r.status_code == 200, r.json()
            assert r.json()["newStatus"] == status
            assert r.json()["changedBy"] == acme.user_id

        r = client.get(f"/api/candidates/{cand['id']}", headers=acme.headers)
        assert r.json()["status"] == "hired"
        assert r.json()["hiredAt"] is not None

        history = client.get(f"/api/candidates/{cand['id']}/status-history", headers=acme.headers).json()
        assert history["currentStatus"] == "hired"
        assert [h["newStatus"] for h in history["history"]] == ["screening", "interview", "offer", "hired"]

    def test_invalid_transition_response(self, client, acme, make_candidate):
        cand = make_candidate(acme)
        r = client.patch(f"/api/candidates/{cand['id']}/status", json={"status": "hired"}, headers=acme.headers)
        assert r.status_code == 400
        assert r.json() == {
            "error": "Invalid status transition from new to hired",
            "allowedTransitions": ["screening", "rejected"],
        }

    def test_unknown_status_response(self, client, acme, make_job):
        job = make_job(acme)
        r = client.patch(f"/api/jobs/{job['id']}/status", json={"status": "launched"}, headers=acme.headers)
        assert r.status_code == 400
        assert "error" in r.json()

    def test_missing_status_field(self, client, acme, make_job):
        job = make_job(acme)
        r = client.patch(f"/api/jobs/{job['id']}/status", json={}, headers=acme.headers)
        assert r.status_code == 422

    def test_notes_are_appended(self, client, acme, make_candidate):
        cand = make_candidate(acme)
        r = client.patch(
            f"/api/candidates/{cand['id']}/status",
            json={"status": "screening", "notes": "Strong portfolio"},
            headers=acme.headers,
        )
        assert r.status_code == 200
        notes = client.get(f"/api/candidates/{cand['id']}", headers=acme.headers).json()["notes"]
        assert notes.endswith("Status changed to screening: Strong portfolio")

    def test_significant_status_notifies(self, client, acme, make_job, db):
        job = make_job(acme, title="Designer")
        client.patch(f"/api/jobs/{job['id']}/status", json={"status": "active"}, headers=acme.headers)
        client.patch(f"/api/jobs/{job['id']}/status", json={"status": "paused"}, headers=acme.headers)

        notes = db.query(Notification).filter(Notification.related_id == job["id"]).all()
        assert [n.message for n in notes] == ['Job "Designer" status changed to active']
        assert notes[0].user_id == acme.user_id


JOB_EDGES = {
    ("draft", "active"), ("draft", "archived"),
    ("active", "paused"), ("active", "closed"), ("active", "archived"),
    ("paused", "active"), ("paused", "closed"), ("paused", "archived"),
    ("closed", "active"), ("closed", "archived"),
}
JOB_STATUSES = ("draft", "active", "paused", "closed", "archived")

CANDIDATE_EDGES = {
    ("new", "screening"), ("new", "rejected"),
    ("applied", "screening"), ("applied", "rejected"),
    ("screening", "interview"), ("screening", "rejected"), ("screening", "on-hold"),
    ("interview", "offer"), ("interview", "rejected"), ("interview", "on-hold"),
    ("offer", "hired"), ("offer", "rejected"), ("offer", "withdrawn"),
    ("hired", "archived"), ("rejected", "archived"), ("withdrawn", "archived"),
    ("on-hold", "screening"), ("on-hold", "interview"), ("on-hold", "rejected"),
}
CANDIDATE_STATUSES = (
    "new", "applied", "screening", "interview", "offer",
    "hired", "rejected", "withdrawn", "on-hold", "archived",
)


class TestEdgeSets:
    @pytest.mark.parametrize("workflow,statuses,edges", [
        (JOB_WORKFLOW, JOB_STATUSES, JOB_EDGES),
        (CANDIDATE_WORKFLOW, CANDIDATE_STATUSES, CANDIDATE_EDGES),
    ])
    def test_validate_matches_declared_edges(self, workflow, statuses, edges):
        assert set(workflow.statuses) == set(statuses)
        for current in statuses:
            for proposed in statuses:
                assert workflow.validate(current, proposed) == ((current, proposed) in edges), (current, proposed)

    def test_draft_to_closed_needs_two_steps(self, store, acme):
        job = store.create_job(acme.tenant_id, title="Ops", department="IT", type="contract")
        engine = _engine(store, acme)
        with pytest.raises(InvalidTransition):
            engine.apply_transition("job", job.id, "closed", acme.user_id)
        engine.apply_transition("job", job.id, "active", acme.user_id)
        assert engine.apply_transition("job", job.id, "closed", acme.user_id).new_status == "closed"

    @pytest.mark.parametrize("entity", ["job", "candidate"])
    def test_archived_is_terminal(self, store, acme, entity):
        if entity == "job":
            record = store.create_job(acme.tenant_id, title="Ops", department="IT", type="contract", status="archived")
        else:
            record = store.create_candidate(acme.tenant_id, full_name="Ada", email="a@example.com", status="archived")
        with pytest.raises(InvalidTransition) as exc:
            _engine(store, acme).apply_transition(entity, record.id, "active" if entity == "job" else "screening", acme.user_id)
        assert exc.value.allowed == []

    def test_archived_rejects_unknown_token_as_transition(self, store, acme):
        job = store.create_job(acme.tenant_id, title="Ops", department="IT", type="contract", status="archived")
        with pytest.raises(InvalidTransition) as exc:
            _engine(store, acme).apply_transition("job", job.id, "launched", acme.user_id)
        assert exc.value.allowed == []
        assert exc.value.to_body()["allowedTransitions"] == []
