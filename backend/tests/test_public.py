CHROME_MOBILE = (
    "Mozilla/5.0 (Linux; Android 14; Pixel 8) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.6099.144 Mobile Safari/537.36"
)


def _start(client, job_id, session_id="sess-1", **extra):
    return client.post("/api/analytics/forms/start", json={
        "jobId": job_id,
        "sessionId": session_id,
        **extra,
    }, headers={"User-Agent": CHROME_MOBILE})


class TestApplications:
    def test_apply_to_active_job(self, client, acme, make_job):
        job = make_job(acme, status="active")
        r = client.post("/api/applications", json={
            "jobId": job["id"],
            "fullName": "Linus",
            "email": "linus@example.com",
        })
        assert r.status_code == 201
        data = r.json()
        assert data["tenantId"] == acme.tenant_id
        assert data["status"] == "new"

        r = client.get(f"/api/candidates?jobId={job['id']}", headers=acme.headers)
        assert r.json()["total"] == 1

    def test_draft_job_does_not_accept_applications(self, client, acme, make_job):
        job = make_job(acme)
        r = client.post("/api/applications", json={
            "jobId": job["id"],
            "fullName": "Linus",
            "email": "linus@example.com",
        })
        assert r.status_code == 404

    def test_application_closes_funnel_session(self, client, acme, make_job):
        job = make_job(acme, status="active")
        _start(client, job["id"], source="linkedin")
        r = client.post("/api/applications", json={
            "jobId": job["id"],
            "fullName": "Linus",
            "email": "linus@example.com",
            "sessionId": "sess-1",
        })
        assert r.status_code == 201

        r = client.get(f"/api/analytics/jobs/{job['id']}/forms", headers=acme.headers)
        data = r.json()
        assert data["totalStarted"] == 1
        assert data["totalConverted"] == 1
        assert data["conversionRate"] == 100

        r = client.post("/api/analytics/forms/step", json={"sessionId": "sess-1", "step": 2})
        assert r.status_code == 409


class TestFormTracking:
    def test_start_detects_device(self, client, acme, make_job):
        job = make_job(acme, status="active")
        r = _start(client, job["id"])
        assert r.status_code == 201
        data = r.json()
        assert data["deviceType"] == "mobile"
        assert data["browserName"] == "chrome"
        assert data["source"] == "direct"
        assert data["stepReached"] == 1

    def test_duplicate_session(self, client, acme, make_job):
        job = make_job(acme, status="active")
        _start(client, job["id"])
        assert _start(client, job["id"]).status_code == 409

    def test_unknown_job(self, client):
        assert _start(client, "missing").status_code == 404

    def test_steps_only_move_forward(self, client, acme, make_job):
        job = make_job(acme, status="active")
        _start(client, job["id"], totalSteps=4)
        client.post("/api/analytics/forms/step", json={"sessionId": "sess-1", "step": 3})
        r = client.post("/api/analytics/forms/step", json={"sessionId": "sess-1", "step": 2})
        assert r.json()["stepReached"] == 3

    def test_complete_then_submit(self, client, acme, make_job, make_candidate):
        job = make_job(acme, status="active")
        cand = make_candidate(acme, job["id"])
        _start(client, job["id"])

        r = client.post("/api/analytics/forms/complete", json={"sessionId": "sess-1", "timeToComplete": 95})
        assert r.json()["formCompleted"] is True
        assert r.json()["stepReached"] == 3

        r = client.post("/api/analytics/forms/submit", json={"sessionId": "sess-1", "candidateId": cand["id"]})
        assert r.status_code == 200
        assert r.json()["candidateCreated"] is True

        r = client.post("/api/analytics/forms/complete", json={"sessionId": "sess-1"})
        assert r.status_code == 409

    def test_submit_with_foreign_candidate(self, client, acme, globex, make_job, make_candidate):
        job = make_job(acme, status="active")
        foreign = make_candidate(globex)
        _start(client, job["id"])
        r = client.post("/api/analytics/forms/submit", json={"sessionId": "sess-1", "candidateId": foreign["id"]})
        assert r.status_code == 404

    def test_unknown_session(self, client):
        r = client.post("/api/analytics/forms/step", json={"sessionId": "nope", "step": 2})
        assert r.status_code == 404


class TestTrackingAnalytics:
    def test_conversions_and_devices(self, client, acme, globex, make_job):
        job = make_job(acme, status="active")
        other = make_job(globex, status="active")
        _start(client, job["id"], session_id="a")
        _start(client, job["id"], session_id="b")
        _start(client, other["id"], session_id="c")
        client.post("/api/analytics/forms/complete", json={"sessionId": "a"})

        r = client.get("/api/analytics/conversions", headers=acme.headers)
        data = r.json()
        assert data["totalStarted"] == 2
        assert data["completionRate"] == 50
        assert data["abandonmentAnalysis"] == [{"step": 1, "count": 1, "percentage": 50}]

        r = client.get("/api/analytics/devices", headers=acme.headers)
        assert r.json()["total"] == 2
        assert r.json()["devices"] == [{"device": "mobile", "count": 2, "percentage": 100}]

    def test_conversions_date_filter(self, client, acme, make_job):
        job = make_job(acme, status="active")
        _start(client, job["id"])
        r = client.get("/api/analytics/conversions?startDate=2000-01-01&endDate=2000-12-31", headers=acme.headers)
        assert r.json()["totalStarted"] == 0

    def test_job_views(self, client, acme, globex, make_job):
        job = make_job(acme, status="active")
        other = make_job(globex, status="active")
        assert client.post("/api/job-views", json={"jobId": job["id"]}).status_code == 201
        client.post("/api/job-views", json={"jobId": job["id"]})
        client.post("/api/job-views", json={"jobId": other["id"]})

        r = client.get("/api/job-views/analytics", headers=acme.headers)
        data = r.json()
        assert data["totalViews"] == 2
        assert data["currentMonthViews"] == 2
        assert data["perJob"] == [{"jobId": job["id"], "title": job["title"], "count": 2}]

    def test_tracking_analytics_require_session(self, client):
        assert client.get("/api/analytics/conversions").status_code == 401
        assert client.get("/api/job-views/analytics").status_code == 401
