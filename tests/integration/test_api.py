"""HTTP surface over an in-memory database with a pinned clock."""

from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from assessment.api.deps import get_clock
from assessment.api.main import app
from assessment.db.database import get_async_session
from assessment.scheduling.manager import build_schedulers, set_schedulers

STUDENT = {"X-User-Id": "student-1", "X-User-Role": "student"}
ADMIN = {"X-User-Id": "admin-1", "X-User-Role": "admin"}
GRADER = {"X-User-Id": "grader-1", "X-User-Role": "grader"}


@pytest_asyncio.fixture
async def client(session_factory, clock, seed):
    async def override_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_async_session] = override_session
    app.dependency_overrides[get_clock] = lambda: clock
    set_schedulers(build_schedulers(session_factory, clock, review_task_retry_delays_ms=[0]))

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
    set_schedulers(None)


class TestIdentity:
    @pytest.mark.asyncio
    async def test_missing_user_header(self, client):
        response = await client.get("/api/practice/sessions")

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_unknown_role(self, client):
        response = await client.get("/api/practice/sessions", headers={"X-User-Id": "u", "X-User-Role": "root"})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_student_cannot_use_admin_routes(self, client):
        response = await client.get("/api/exam/papers", headers=STUDENT)

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_admin_can_read_grading_queue(self, client):
        response = await client.get("/api/grading/tasks", headers=ADMIN)

        assert response.status_code == 200
        assert response.json()["total"] == 0


class TestErrors:
    @pytest.mark.asyncio
    async def test_not_found_maps_to_404(self, client):
        response = await client.get(f"/api/exam/papers/{uuid4()}", headers=ADMIN)

        assert response.status_code == 404
        assert "not found" in response.json()["detail"]

    @pytest.mark.asyncio
    async def test_bad_request_maps_to_400(self, client):
        response = await client.post("/api/review/daily-tasks/generate?run_date=2026-13-01", headers=ADMIN)

        assert response.status_code == 400


class TestPractice:
    @pytest.mark.asyncio
    async def test_standalone_answer(self, client, seed):
        response = await client.post(
            "/api/practice/answers",
            json={"question_id": str(seed.single.id), "answer": "A", "duration": 12},
            headers=STUDENT,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["outcome"] == "incorrect"
        assert body["is_correct"] is False
        assert body["correct_answer"] == "B"

    @pytest.mark.asyncio
    async def test_session_lifecycle(self, client, seed):
        created = await client.post(
            "/api/practice/sessions",
            json={"mode": "category", "category_id": str(seed.category_id), "question_count": 2},
            headers=STUDENT,
        )
        assert created.status_code == 200
        session_id = created.json()["id"]

        current = await client.get(f"/api/practice/sessions/{session_id}/current", headers=STUDENT)
        assert current.status_code == 200

        completed = await client.post(f"/api/practice/sessions/{session_id}/complete", headers=STUDENT)
        assert completed.status_code == 200
        assert completed.json()["status"] == "completed"

        listing = await client.get("/api/practice/sessions", headers=STUDENT)
        assert listing.json()["total"] == 1

    @pytest.mark.asyncio
    async def test_short_answer_reaches_grading_queue(self, client, seed):
        await client.post(
            "/api/practice/answers",
            json={"question_id": str(seed.short.id), "answer": "right triangles"},
            headers=STUDENT,
        )

        listing = await client.get("/api/grading/tasks", params={"status": "pending"}, headers=GRADER)
        task_id = listing.json()["data"][0]["id"]

        claimed = await client.post(f"/api/grading/tasks/{task_id}/claim", headers=GRADER)
        assert claimed.json()["status"] == "assigned"

        submitted = await client.post(
            f"/api/grading/tasks/{task_id}/submit",
            json={"score": 70, "is_passed": True, "feedback": "fine"},
            headers=GRADER,
        )
        assert submitted.status_code == 200
        assert submitted.json()["practice_record"]["outcome"] == "correct"

        again = await client.post(f"/api/grading/tasks/{task_id}/claim", headers=GRADER)
        assert again.status_code == 409


class TestExamFlow:
    @pytest.mark.asyncio
    async def test_author_take_and_grade(self, client, clock, seed):
        created = await client.post(
            "/api/exam/papers",
            json={
                "title": "Quiz",
                "duration_minutes": 30,
                "items": [
                    {"question_id": str(seed.single.id), "score": 10},
                    {"question_id": str(seed.short.id), "score": 30},
                ],
            },
            headers=ADMIN,
        )
        assert created.status_code == 200
        paper_id = created.json()["id"]
        assert created.json()["total_score"] == 40

        not_yet = await client.post(f"/api/exam/published-papers/{paper_id}/attempts", headers=STUDENT)
        assert not_yet.status_code == 404

        published = await client.post(f"/api/exam/papers/{paper_id}/publish", headers=ADMIN)
        assert published.json()["status"] == "published"

        started = await client.post(f"/api/exam/published-papers/{paper_id}/attempts", headers=STUDENT)
        assert started.status_code == 200
        attempt_id = started.json()["attempt"]["id"]
        first_item = started.json()["current_item"]["id"]

        duplicate = await client.post(f"/api/exam/published-papers/{paper_id}/attempts", headers=STUDENT)
        assert duplicate.status_code == 409

        answered = await client.post(
            f"/api/exam/my-attempts/{attempt_id}/items/{first_item}/submit",
            json={"answer": "B"},
            headers=STUDENT,
        )
        assert answered.json()["is_correct"] is True
        assert answered.json()["score"] == 10
        short_item_id = answered.json()["next_item_id"]

        essay = await client.post(
            f"/api/exam/my-attempts/{attempt_id}/items/{short_item_id}/submit",
            json={"answer": "a^2 + b^2 = c^2"},
            headers=STUDENT,
        )
        assert essay.json()["outcome"] == "pending_manual_review"
        assert essay.json()["is_completed"] is True

        again = await client.post(
            f"/api/exam/my-attempts/{attempt_id}/items/{short_item_id}/submit",
            json={"answer": "changed"},
            headers=STUDENT,
        )
        assert again.status_code == 409

        clock.advance(minutes=10)
        finished = await client.post(f"/api/exam/my-attempts/{attempt_id}/finish", headers=STUDENT)
        assert finished.status_code == 200
        report = finished.json()
        assert report["attempt"]["status"] == "completed"
        assert report["attempt"]["objective_score"] == 10
        assert report["attempt"]["subjective_score"] is None
        assert report["attempt"]["needs_manual_grading"] is True

        short_item = next(item for item in report["items"] if item["question_id"] == str(seed.short.id))
        assert short_item["id"] == short_item_id
        assert short_item["submitted_answer"] == "a^2 + b^2 = c^2"

        graded = await client.post(
            f"/api/exam/attempts/{attempt_id}/items/{short_item['id']}/grade",
            json={"score": 31},
            headers=ADMIN,
        )
        assert graded.status_code == 400

        graded = await client.post(
            f"/api/exam/attempts/{attempt_id}/items/{short_item['id']}/grade",
            json={"score": 25},
            headers=ADMIN,
        )
        assert graded.status_code == 200
        assert graded.json()["attempt"]["total_score"] == 35
        assert graded.json()["attempt"]["needs_manual_grading"] is False

        mine = await client.get("/api/exam/my-attempts", headers=STUDENT)
        assert mine.json()["total"] == 1

        other = await client.get(
            f"/api/exam/my-attempts/{attempt_id}/report",
            headers={"X-User-Id": "student-2", "X-User-Role": "student"},
        )
        assert other.status_code == 404

    @pytest.mark.asyncio
    async def test_timeout_scan_endpoints(self, client):
        scan = await client.post("/api/exam/timeout-scan", headers=ADMIN)
        summary = await client.get("/api/exam/timeout-summary", headers=ADMIN)

        assert scan.status_code == 200
        assert scan.json()["trigger"] == "manual"
        assert summary.json()["active_count"] == 0


class TestReview:
    @pytest.mark.asyncio
    async def test_generate_and_summarize(self, client, seed):
        await client.post(
            "/api/practice/answers",
            json={"question_id": str(seed.single.id), "answer": "A"},
            headers=STUDENT,
        )

        generated = await client.post(
            "/api/review/daily-tasks/generate", params={"run_date": "2026-02-02"}, headers=ADMIN
        )
        summary = await client.get(
            "/api/review/daily-tasks/summary", params={"run_date": "2026-02-02"}, headers=ADMIN
        )

        assert generated.status_code == 200
        assert generated.json()["generated_count"] == 1
        assert generated.json()["run_date"] == "2026-02-02"
        assert summary.json() == {"run_date": "2026-02-02", "total": 1, "pending": 1, "done": 0}

    @pytest.mark.asyncio
    async def test_wrong_book_routes(self, client, clock, seed):
        await client.post(
            "/api/practice/answers",
            json={"question_id": str(seed.single.id), "answer": "A"},
            headers=STUDENT,
        )

        listed = await client.get("/api/review/wrong-book", headers=STUDENT)
        assert listed.status_code == 200
        assert listed.json()["total"] == 1
        entry = listed.json()["data"][0]
        assert entry["question_id"] == str(seed.single.id)
        assert "answer" not in entry["question"]

        assert (await client.get("/api/review/today", headers=STUDENT)).json()["total"] == 0
        clock.advance(days=1)
        assert (await client.get("/api/review/today", headers=STUDENT)).json()["total"] == 1

        toggled = await client.patch(f"/api/review/wrong-book/{entry['id']}/master", headers=STUDENT)
        assert toggled.json()["is_mastered"] is True
        mastered = await client.get("/api/review/wrong-book", params={"is_mastered": "true"}, headers=STUDENT)
        assert mastered.json()["total"] == 1

        other = {"X-User-Id": "student-2", "X-User-Role": "student"}
        assert (await client.delete(f"/api/review/wrong-book/{entry['id']}", headers=other)).status_code == 404
        removed = await client.delete(f"/api/review/wrong-book/{entry['id']}", headers=STUDENT)
        assert removed.status_code == 204
        assert (await client.get("/api/review/wrong-book", headers=STUDENT)).json()["total"] == 0

    @pytest.mark.asyncio
    async def test_review_history_window(self, client, clock, seed):
        await client.post(
            "/api/practice/answers",
            json={"question_id": str(seed.single.id), "answer": "A"},
            headers=STUDENT,
        )
        clock.advance(days=1)
        created = await client.post("/api/practice/sessions", json={"mode": "review"}, headers=STUDENT)
        item_id = created.json()["items"][0]["id"]
        await client.post(f"/api/practice/review-items/{item_id}/submit", json={"answer": "B"}, headers=STUDENT)

        history = await client.get("/api/review/history", headers=STUDENT)
        assert history.status_code == 200
        assert [item["outcome"] for item in history.json()["data"]] == ["correct"]

        later = await client.get(
            "/api/review/history", params={"from": (clock.now().replace(hour=12)).isoformat()}, headers=STUDENT
        )
        assert later.json()["total"] == 0


class TestPracticeAdmin:
    @pytest.mark.asyncio
    async def test_admin_session_routes(self, client, seed):
        created = await client.post(
            "/api/practice/sessions", json={"mode": "random", "question_count": 1}, headers=STUDENT
        )
        session_id = created.json()["id"]

        listed = await client.get("/api/practice/admin/sessions", params={"keyword": "student"}, headers=ADMIN)
        assert listed.status_code == 200
        assert [row["id"] for row in listed.json()["data"]] == [session_id]

        stats = await client.get("/api/practice/admin/sessions/stats", headers=ADMIN)
        assert stats.status_code == 200
        assert stats.json()["total_sessions"] == 1
        assert stats.json()["active_sessions"] == 1
        assert stats.json()["by_mode"] == [{"mode": "random", "count": 1}]

        detail = await client.get(f"/api/practice/admin/sessions/{session_id}", headers=ADMIN)
        assert detail.json()["student_id"] == "student-1"

    @pytest.mark.asyncio
    async def test_students_cannot_use_admin_session_routes(self, client):
        response = await client.get("/api/practice/admin/sessions/stats", headers=STUDENT)

        assert response.status_code == 403
