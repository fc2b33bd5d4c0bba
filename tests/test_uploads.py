# tests/test_uploads.py
import pytest

from app.core.config import settings


async def _submitted(register, post_job, apply):
    employer = await register("employer")
    candidate = await register("candidate")
    job = await post_job(employer)
    r = await apply(candidate, job["id"], files=[
        ("resume", ("cv.pdf", b"%PDF-1.4 resume body", "application/pdf")),
        ("portfolio", ("shots.png", b"\x89PNG...", "image/png")),
    ])
    assert r.status_code == 201, r.text
    return employer, candidate, r.json()["data"]["application"]


@pytest.mark.asyncio
async def test_applicant_and_employer_can_download(client, register, post_job, apply):
    employer, candidate, application = await _submitted(register, post_job, apply)
    url = application["resume"]["url"]
    assert url.startswith("/uploads/resumes/resume-")

    r = await client.get(url, headers=candidate["headers"])
    assert r.status_code == 200
    assert r.content == b"%PDF-1.4 resume body"

    r = await client.get(url, headers=employer["headers"])
    assert r.status_code == 200

    [portfolio] = application["additionalDocuments"]
    assert portfolio["type"] == "portfolio"
    r = await client.get(portfolio["url"], headers=candidate["headers"])
    assert r.content == b"\x89PNG..."


@pytest.mark.asyncio
async def test_others_cannot_download(client, register, post_job, apply):
    _, _, application = await _submitted(register, post_job, apply)
    url = application["resume"]["url"]
    stranger = await register("employer")
    other_candidate = await register("candidate")

    assert (await client.get(url)).status_code == 401
    assert (await client.get(url, headers=stranger["headers"])).status_code == 403
    assert (await client.get(url, headers=other_candidate["headers"])).status_code == 403


@pytest.mark.asyncio
async def test_rejected_paths(client, register, post_job, apply):
    _, candidate, _ = await _submitted(register, post_job, apply)
    h = candidate["headers"]
    assert (await client.get("/uploads/secrets/resume-1.pdf", headers=h)).status_code == 404
    assert (await client.get("/uploads/resumes/.env.pdf", headers=h)).status_code == 400
    assert (await client.get("/uploads/resumes/notes.txt", headers=h)).status_code == 403
    r = await client.get("/uploads/resumes/resume-0-0.pdf", headers=h)
    assert r.status_code == 404
    assert r.json()["message"] == "File not found"


@pytest.mark.asyncio
async def test_missing_file_on_disk(client, register, post_job, apply, local_storage):
    _, candidate, application = await _submitted(register, post_job, apply)
    filename = application["resume"]["filename"]
    (local_storage / "resumes" / filename).unlink()
    r = await client.get(application["resume"]["url"], headers=candidate["headers"])
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_s3_downloads_redirect_to_presigned_url(client, register, post_job, apply, monkeypatch):
    _, candidate, application = await _submitted(register, post_job, apply)

    class Presigner:
        def generate_presigned_url(self, ClientMethod, Params, ExpiresIn):
            return f"https://fake.s3/{Params['Bucket']}/{Params['Key']}"

    monkeypatch.setattr(settings, "S3_BUCKET", "bucket")
    monkeypatch.setattr(settings, "S3_ENDPOINT", "https://s3.example.test")
    monkeypatch.setattr(settings, "S3_ACCESS_KEY", "key")
    monkeypatch.setattr(settings, "S3_SECRET_KEY", "secret")
    monkeypatch.setattr("app.services.storage.boto3.client", lambda *args, **kwargs: Presigner())

    r = await client.get(application["resume"]["url"], headers=candidate["headers"])
    assert r.status_code == 307
    assert r.headers["location"] == f"https://fake.s3/bucket/resumes/{application['resume']['filename']}"
