import asyncio
import json
from unittest.mock import patch

import pytest
import respx
from httpx import AsyncClient, ConnectError, Response

from contact_finder.services.contact_scraper import ContactScraperService


def _page(body: str) -> Response:
    return Response(
        200,
        html=f"<html><body>{body}</body></html>",
        headers={"content-type": "text/html"},
    )


def _mock_acme():
    """acme.com: info email on the contact page, LinkedIn on the homepage."""
    respx.get("https://acme.com/contact/").mock(
        return_value=_page('<a href="mailto:info@acme.com">Mail</a>')
    )
    respx.get("https://acme.com").mock(
        return_value=_page(
            '<a href="https://www.linkedin.com/company/acme-corp/">LinkedIn</a>'
        )
    )


def _mock_empty_site():
    respx.get("https://empty.com/contact/").mock(side_effect=ConnectError("down"))
    respx.get("https://empty.com").mock(return_value=_page("<p>Nothing here</p>"))


async def submit_and_wait(client: AsyncClient, urls, timeout: float = 5.0):
    """POST /api/scrape/jobs → 202, then poll the job until it is finished."""
    resp = await client.post("/api/scrape/jobs", json={"urls": urls})
    assert resp.status_code == 202

    data = resp.json()
    job_id = data["job_id"]
    assert data["status"] == "pending"

    deadline = asyncio.get_event_loop().time() + timeout
    while asyncio.get_event_loop().time() < deadline:
        await asyncio.sleep(0.05)
        status_resp = await client.get(f"/api/scrape/jobs/{job_id}")
        assert status_resp.status_code == 200
        job = status_resp.json()
        if job["status"] in ("completed", "failed", "cancelled"):
            return job

    raise TimeoutError(f"Job {job_id} did not complete within {timeout}s")


# --- Request validation ---


@pytest.mark.parametrize(
    "body",
    [
        {},
        {"urls": []},
        {"urls": "https://acme.com"},
        {"urls": ["  ", ""]},
        {"urls": [42]},
    ],
)
@respx.mock
async def test_invalid_request_rejected_without_fetching(client, body):
    resp = await client.post("/api/scrape", json=body)
    assert resp.status_code == 400
    assert resp.json() == {"detail": "URLs array is required"}
    assert respx.calls.call_count == 0


async def test_missing_body_rejected(client):
    resp = await client.post("/api/scrape")
    assert resp.status_code == 400


async def test_invalid_job_request_rejected(client):
    resp = await client.post("/api/scrape/jobs", json={"urls": []})
    assert resp.status_code == 400


# --- Synchronous batch ---


@respx.mock
async def test_scrape_returns_results(client):
    _mock_acme()
    _mock_empty_site()

    resp = await client.post(
        "/api/scrape", json={"urls": [" https://acme.com ", "https://empty.com"]}
    )
    assert resp.status_code == 200

    results = resp.json()["results"]
    assert results == [
        {
            "url": "https://acme.com",
            "companyName": "Acme",
            "data": {
                "emails": ["info@acme.com"],
                "phones": [],
                "social": {"linkedin": "https://www.linkedin.com/company/acme-corp"},
            },
        }
    ]


async def test_unexpected_failure_reported_as_internal_error(client):
    with patch.object(ContactScraperService, "scrape", side_effect=RuntimeError("boom")):
        resp = await client.post("/api/scrape", json={"urls": ["https://acme.com"]})
    assert resp.status_code == 500
    assert resp.json() == {"detail": "Batch processing error: boom"}


# --- Background jobs ---


@respx.mock
async def test_job_reports_progress_and_results(client):
    _mock_acme()
    _mock_empty_site()

    job = await submit_and_wait(client, ["https://acme.com", "https://empty.com"])

    assert job["status"] == "completed"
    assert job["progress"] == {"total": 2, "processed": 2, "fetched": 1}
    assert [r["url"] for r in job["results"]] == ["https://acme.com"]
    assert job["results"][0]["companyName"] == "Acme"
    assert job["finished_at"] is not None
    assert job["error"] is None


@respx.mock
async def test_download_results_as_json(client):
    _mock_acme()

    job = await submit_and_wait(client, ["https://acme.com"])
    resp = await client.get(f"/api/scrape/jobs/{job['job_id']}/download")

    assert resp.status_code == 200
    assert resp.headers["content-disposition"] == 'attachment; filename="contacts.json"'
    payload = json.loads(resp.content)
    assert payload[0]["url"] == "https://acme.com"
    assert payload[0]["data"]["emails"] == ["info@acme.com"]


async def test_failed_job_records_error(client):
    with patch.object(ContactScraperService, "scrape", side_effect=RuntimeError("boom")):
        job = await submit_and_wait(client, ["https://acme.com"])
    assert job["status"] == "failed"
    assert job["error"] == "boom"


async def test_cancel_finished_job_conflicts(client):
    with patch.object(ContactScraperService, "scrape", return_value=None):
        job = await submit_and_wait(client, ["https://acme.com"])
    assert job["status"] == "completed"

    resp = await client.post(f"/api/scrape/jobs/{job['job_id']}/cancel")
    assert resp.status_code == 409


async def test_cancel_running_job(client):
    release = asyncio.Event()

    async def _slow_scrape(url):
        await release.wait()
        return None

    with patch.object(ContactScraperService, "scrape", side_effect=_slow_scrape):
        urls = [f"https://site{i}.com" for i in range(8)]
        resp = await client.post("/api/scrape/jobs", json={"urls": urls})
        job_id = resp.json()["job_id"]
        await asyncio.sleep(0.05)

        cancel_resp = await client.post(f"/api/scrape/jobs/{job_id}/cancel")
        assert cancel_resp.status_code == 200
        assert cancel_resp.json()["message"] == "Cancellation requested"

        release.set()
        for _ in range(100):
            await asyncio.sleep(0.02)
            job = (await client.get(f"/api/scrape/jobs/{job_id}")).json()
            if job["status"] != "running":
                break

    assert job["status"] == "cancelled"
    assert job["progress"]["processed"] == 5
    assert job["progress"]["total"] == 8


async def test_unknown_job_returns_404(client):
    assert (await client.get("/api/scrape/jobs/nope")).status_code == 404
    assert (await client.post("/api/scrape/jobs/nope/cancel")).status_code == 404
    assert (await client.get("/api/scrape/jobs/nope/download")).status_code == 404


async def test_health(client):
    resp = await client.get("/health")
    assert resp.json() == {"status": "ok"}
