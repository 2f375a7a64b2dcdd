"""
API tests for the loops endpoints.
Run with: pytest -v
"""
from io import BytesIO

import pytest
from httpx import AsyncClient, ASGITransport


@pytest.fixture
async def client():
    from loopscope.main import app

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def stub_tempo(monkeypatch):
    """Fixed 120 BPM so the tests don't depend on librosa's beat tracker."""
    from loopscope.core import analysis
    monkeypatch.setattr(analysis, "estimate_tempo", lambda waveform: 120.0)


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert "version" in data


async def test_root(client):
    response = await client.get("/")
    assert response.status_code == 200
    assert "docs" in response.json()


async def test_upload_invalid_format(client):
    response = await client.post(
        "/api/v1/loops/analyze",
        files={"file": ("test.txt", BytesIO(b"not audio"), "text/plain")},
    )
    assert response.status_code == 400
    assert "Format not allowed" in response.json()["detail"]


async def test_upload_too_large(client, monkeypatch):
    from loopscope.config import settings
    monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE_MB", 0)

    response = await client.post(
        "/api/v1/loops/analyze",
        files={"file": ("loop.wav", BytesIO(b"RIFF0000"), "audio/wav")},
    )
    assert response.status_code == 413
    assert "limit" in response.json()["detail"]


async def test_upload_corrupt_audio(client):
    response = await client.post(
        "/api/v1/loops/analyze",
        files={"file": ("loop.wav", BytesIO(b"garbage" * 100), "audio/wav")},
    )
    assert response.status_code == 422
    assert "Failed to decode audio file" in response.json()["detail"]


async def test_analyze_sine_loop(client, stub_tempo, make_sine, make_wav):
    wav = make_wav(make_sine(freq=440.0, seconds=2.0))
    response = await client.post(
        "/api/v1/loops/analyze",
        files={"file": ("a440.wav", BytesIO(wav), "audio/wav")},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["key"] == "A"
    assert data["scale"] in ("major", "minor")
    assert data["bpm"] == 120
    assert 0.0 < data["confidence"] <= 1.0
    assert data["short_label"] in ("A", "Am")
    assert data["channels"] == 1
    assert data["sample_rate"] == 44100
    assert data["duration_sec"] == pytest.approx(2.0)


async def test_analyze_tempo_failure_is_500(client, monkeypatch, make_sine, make_wav):
    from loopscope.core import analysis

    def broken(waveform):
        raise RuntimeError("beat tracker crashed")

    monkeypatch.setattr(analysis, "estimate_tempo", broken)
    response = await client.post(
        "/api/v1/loops/analyze",
        files={"file": ("loop.wav", BytesIO(make_wav(make_sine())), "audio/wav")},
    )
    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to analyze audio file"


async def test_waveform_endpoint(client, make_sine, make_wav):
    wav = make_wav(make_sine(freq=110.0, seconds=1.0))
    response = await client.post(
        "/api/v1/loops/waveform?bins=100",
        files={"file": ("loop.wav", BytesIO(wav), "audio/wav")},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["bins"] == 100
    assert len(data["peaks"]) == 100
    assert all(0.0 <= p <= 1.0 for p in data["peaks"])
    assert max(data["peaks"]) == pytest.approx(1.0)


async def test_waveform_default_bins(client, make_sine, make_wav):
    response = await client.post(
        "/api/v1/loops/waveform",
        files={"file": ("loop.wav", BytesIO(make_wav(make_sine(seconds=0.5))), "audio/wav")},
    )
    assert response.status_code == 200
    assert len(response.json()["peaks"]) == 800


async def test_waveform_rejects_bad_bins(client, make_sine, make_wav):
    response = await client.post(
        "/api/v1/loops/waveform?bins=0",
        files={"file": ("loop.wav", BytesIO(make_wav(make_sine(seconds=0.1))), "audio/wav")},
    )
    assert response.status_code == 422


async def test_upload_wrong_content_type(client, make_sine, make_wav):
    """A .wav name is not enough; the declared MIME type must be audio."""
    response = await client.post(
        "/api/v1/loops/waveform",
        files={"file": ("x.wav", BytesIO(make_wav(make_sine(seconds=0.1))), "application/x-msdownload")},
    )
    assert response.status_code == 400
    assert "Content type not allowed" in response.json()["detail"]


async def test_upload_content_type_with_parameters(client, make_sine, make_wav):
    response = await client.post(
        "/api/v1/loops/waveform?bins=10",
        files={"file": ("loop.wav", BytesIO(make_wav(make_sine(seconds=0.1))), "audio/wav; codecs=1")},
    )
    assert response.status_code == 200


def test_run_uses_configured_host_and_port(monkeypatch):
    import uvicorn
    from loopscope import main
    from loopscope.config import settings

    calls = {}
    monkeypatch.setattr(uvicorn, "run", lambda app, **kw: calls.update(app=app, **kw))
    monkeypatch.setattr(settings, "API_HOST", "127.0.0.1")
    monkeypatch.setattr(settings, "API_PORT", 9123)

    main.run()
    assert calls == {"app": main.app, "host": "127.0.0.1", "port": 9123}
