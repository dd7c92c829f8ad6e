import io

import numpy as np
import pytest
import soundfile as sf
from fastapi.testclient import TestClient

from app import create_app
from conftest import random_pcm
from songprint.config import CHUNK_SIZE, SAMPLE_RATE
from songprint.recognizer import SongRecognizer


def _wav_bytes(samples):
    buf = io.BytesIO()
    sf.write(buf, samples.astype(np.float64) / 128, SAMPLE_RATE, subtype="PCM_16", format="WAV")
    return buf.getvalue()


@pytest.fixture
def client(tmp_path):
    with SongRecognizer(str(tmp_path / "fingerprints.db")) as recognizer:
        with TestClient(create_app(recognizer)) as c:
            yield c


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_add_list_and_recognize(client):
    song = random_pcm(20, seed=3)
    resp = client.post("/songs", data={"name": "Track"},
                       files={"file": ("track.wav", _wav_bytes(song), "audio/wav")})
    assert resp.status_code == 201
    song_id = resp.json()["id"]
    assert client.get("/songs").json() == [{"id": song_id, "name": "Track"}]

    dup = client.post("/songs", data={"name": "Track"},
                      files={"file": ("track.wav", _wav_bytes(song), "audio/wav")})
    assert dup.status_code == 409

    query = _wav_bytes(song[3 * CHUNK_SIZE:10 * CHUNK_SIZE])
    body = client.post("/recognize", files={"file": ("q.wav", query, "audio/wav")}).json()
    assert body["matched"] is True
    assert body["song_id"] == song_id
    assert body["title"] == "Track"
    assert body["offset"] == 3
    assert body["confidence"] >= 7
    assert body["offset_seconds"] == pytest.approx(3 * CHUNK_SIZE / SAMPLE_RATE, abs=1e-3)


def test_recognize_without_match(client):
    body = client.post("/recognize",
                       files={"file": ("q.wav", _wav_bytes(random_pcm(5)), "audio/wav")}).json()
    assert body == {"matched": False, "song_id": None, "title": "", "confidence": 0,
                    "offset": 0, "offset_seconds": 0.0}


def test_bad_uploads(client):
    empty = client.post("/recognize", files={"file": ("q.wav", b"", "audio/wav")})
    assert empty.status_code == 400
    garbage = client.post("/recognize", files={"file": ("q.wav", b"garbage", "audio/wav")})
    assert garbage.status_code == 400


def test_store_failure_is_503(client):
    client.app.state.recognizer.store.close()
    assert client.get("/songs").status_code == 503
