import json
from typing import List, Tuple
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from app.db.models.repository import RepositoryRef
from app.db.models.try_merge_job import JobStatus, TryMergeJob
from app.dependencies.services import get_job_store, get_orchestrator
from app.main import app
from app.services.github.security import compute_signature

SECRET = "test-secret"


class RecordingOrchestrator:
    """Accepts dispatches without running anything."""

    def __init__(self):
        self.dispatched: List[Tuple[RepositoryRef, int, str]] = []

    def dispatch(self, repository: RepositoryRef, pr_number: int, command: str) -> bool:
        self.dispatched.append((repository, pr_number, command))
        return command in ("try", "try-merge")


@pytest.fixture
def orchestrator() -> RecordingOrchestrator:
    return RecordingOrchestrator()


@pytest.fixture
def job_store() -> AsyncMock:
    store = AsyncMock()
    store.list_jobs.return_value = []
    return store


@pytest.fixture
def client(orchestrator, job_store):
    # No context manager: the lifespan (database, GitHub client) stays off
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    app.dependency_overrides[get_job_store] = lambda: job_store
    yield TestClient(app)
    app.dependency_overrides.clear()


def _comment_payload(body: str = "@bot try", action: str = "created", is_pr: bool = True) -> dict:
    issue = {"number": 42, "title": "Add widget"}
    if is_pr:
        issue["pull_request"] = {"url": "https://api.github.com/repos/acme/widgets/pulls/42"}
    return {
        "action": action,
        "issue": issue,
        "comment": {"id": 1, "body": body, "user": {"login": "octocat"}},
        "repository": {
            "id": 1296269,
            "name": "widgets",
            "full_name": "acme/widgets",
            "owner": {"login": "acme"},
            "default_branch": "develop",
        },
    }


def _post(client: TestClient, event: str, payload=None, raw: bytes = None, signature: str = None):
    body = raw if raw is not None else json.dumps(payload).encode()
    headers = {
        "X-GitHub-Event": event,
        "X-Hub-Signature-256": signature or compute_signature(body, SECRET),
        "Content-Type": "application/json",
    }
    return client.post("/github/webhook", content=body, headers=headers)


def test_invalid_signature_is_rejected(client, orchestrator) -> None:
    response = _post(client, "issue_comment", _comment_payload(), signature="sha256=" + "0" * 64)

    assert response.status_code == 403
    assert orchestrator.dispatched == []


def test_missing_signature_is_rejected(client, orchestrator) -> None:
    body = json.dumps(_comment_payload()).encode()

    response = client.post(
        "/github/webhook", content=body, headers={"X-GitHub-Event": "issue_comment"}
    )

    assert response.status_code == 403
    assert orchestrator.dispatched == []


def test_ping_answers_pong(client) -> None:
    response = _post(client, "ping", {"zen": "Keep it logically awesome."})

    assert response.status_code == 200
    assert response.json() == {"message": "pong"}


def test_try_comment_is_dispatched(client, orchestrator) -> None:
    response = _post(client, "issue_comment", _comment_payload("Looks good. @bot try please"))

    assert response.status_code == 200
    assert response.json() == {"message": "Command accepted", "command": "try"}

    [(repository, pr_number, command)] = orchestrator.dispatched
    assert repository.id == 1296269
    assert repository.full_name == "acme/widgets"
    assert repository.owner == "acme"
    assert repository.default_branch == "develop"
    assert (pr_number, command) == (42, "try")


def test_try_merge_comment_is_dispatched(client, orchestrator) -> None:
    response = _post(client, "issue_comment", _comment_payload("@bot try-merge"))

    assert response.json()["command"] == "try-merge"
    assert orchestrator.dispatched[0][2] == "try-merge"


def test_unknown_command_is_acknowledged_but_ignored(client, orchestrator) -> None:
    response = _post(client, "issue_comment", _comment_payload("@bot deploy"))

    assert response.status_code == 200
    assert response.json() == {"message": "Command ignored", "command": "deploy"}


def test_comment_on_plain_issue_is_ignored(client, orchestrator) -> None:
    response = _post(client, "issue_comment", _comment_payload(is_pr=False))

    assert response.status_code == 200
    assert response.json() == {"message": "Not a pull request comment"}
    assert orchestrator.dispatched == []


def test_edited_comment_is_ignored(client, orchestrator) -> None:
    response = _post(client, "issue_comment", _comment_payload(action="edited"))

    assert response.status_code == 200
    assert response.json()["message"] == "Comment action ignored"
    assert orchestrator.dispatched == []


def test_comment_without_command_is_ignored(client, orchestrator) -> None:
    response = _post(client, "issue_comment", _comment_payload("LGTM"))

    assert response.json() == {"message": "No command found"}
    assert orchestrator.dispatched == []


def test_comment_without_repository_is_bad_request(client, orchestrator) -> None:
    payload = _comment_payload()
    del payload["repository"]

    response = _post(client, "issue_comment", payload)

    assert response.status_code == 400
    assert orchestrator.dispatched == []


def test_invalid_json_is_bad_request(client) -> None:
    response = _post(client, "issue_comment", raw=b"{not json")

    assert response.status_code == 400


def test_pull_request_events_are_acknowledged(client, orchestrator) -> None:
    response = _post(
        client, "pull_request", {"action": "synchronize", "pull_request": {"number": 42}}
    )

    assert response.status_code == 200
    assert response.json() == {"message": "Event ignored", "event": "pull_request"}
    assert orchestrator.dispatched == []


def test_health(client) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_list_jobs_passes_filters(client, job_store) -> None:
    job = TryMergeJob(
        repository_id=1296269,
        pr_number=42,
        branch_name="automation/bot/try/42",
        status=JobStatus.RUNNING.value,
    )
    job_store.list_jobs.return_value = [job]

    response = client.get(
        "/jobs", params={"repository_id": 1296269, "pr_number": 42, "active_only": "true"}
    )

    assert response.status_code == 200
    [body] = response.json()
    assert body["id"] == str(job.id)
    assert body["status"] == "running"
    assert body["branch_name"] == "automation/bot/try/42"
    job_store.list_jobs.assert_awaited_once_with(
        repository_id=1296269, pr_number=42, active_only=True, skip=0, limit=20
    )


def test_list_jobs_rejects_bad_limit(client) -> None:
    assert client.get("/jobs", params={"limit": 0}).status_code == 422
