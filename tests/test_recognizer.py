import sqlite3
import threading

import numpy as np
import pytest

from conftest import random_pcm
from songprint.audio import cut_audio
from songprint.config import CHUNK_SIZE
from songprint.errors import AudioDecodeError, StoreUnavailableError
from songprint.matcher import Matched, NoMatch
from songprint.recognizer import SongRecognizer


@pytest.fixture
def recognizer(tmp_path):
    with SongRecognizer(str(tmp_path / "fingerprints.db")) as r:
        r.load()
        yield r


def test_identify_excerpt_recovers_song_and_offset(recognizer):
    first = recognizer.index_samples("First", random_pcm(40, seed=1))
    second = recognizer.index_samples("Second", random_pcm(40, seed=2))
    song = random_pcm(40, seed=2)

    result = recognizer.identify_samples(song[10 * CHUNK_SIZE:25 * CHUNK_SIZE])

    assert isinstance(result, Matched)
    assert result.song_id == second != first
    assert result.song_name == "Second"
    assert result.offset == 10
    assert result.confidence >= 15


def test_unknown_audio_and_short_query_do_not_match(recognizer):
    recognizer.index_samples("First", random_pcm(20, seed=1))
    assert recognizer.identify_samples(random_pcm(20, seed=99)) == NoMatch()
    assert recognizer.identify_samples(b"\x00" * 100) == NoMatch()


def test_index_song_and_recognize_files(recognizer, write_wav):
    song = random_pcm(30, seed=4)
    song_path = write_wav("Some Song.wav", song)
    song_id = recognizer.index_song(song_path)
    assert recognizer.list_songs() == [(song_id, "Some Song")]
    # same name again is skipped
    assert recognizer.index_song(song_path) is None
    assert recognizer.num_indexed_songs == 1

    query = write_wav("query.wav", song[5 * CHUNK_SIZE:12 * CHUNK_SIZE])
    result = recognizer.recognize(query)
    assert result.matched
    assert result.song_name == "Some Song"
    assert result.offset == 5


def test_recognize_random_clip_recovers_its_offset(recognizer, write_wav):
    song = random_pcm(30, seed=4)
    recognizer.index_samples("Song", song)
    path = write_wav("song.wav", song)

    # same seed as recognize uses, so this is the clip it will query with
    clip = cut_audio(song, 1.0, align=CHUNK_SIZE)
    start = next(k for k in range(30)
                 if np.array_equal(song[k * CHUNK_SIZE:k * CHUNK_SIZE + len(clip)], clip))

    result = recognizer.recognize(path, clip_length_sec=1.0)
    assert result.matched
    assert result.song_name == "Song"
    assert result.offset == start
    # one second holds 10 whole frames
    assert result.confidence >= 10


def test_recognize_with_light_noise(recognizer, write_wav):
    song = random_pcm(30, seed=4)
    recognizer.index_samples("Song", song)
    path = write_wav("song.wav", song)

    result = recognizer.recognize(path, snr_db=40)
    assert result.matched
    assert result.song_name == "Song"
    assert result.offset == 0
    assert result.confidence >= 15


def test_index_folder_skips_bad_files(recognizer, write_wav, tmp_path):
    write_wav("a.wav", random_pcm(3, seed=1))
    write_wav("b.wav", random_pcm(3, seed=2))
    (tmp_path / "broken.wav").write_bytes(b"garbage")

    assert recognizer.index_folder(tmp_path, "*.wav") == 2
    assert [name for _, name in recognizer.list_songs()] == ["a", "b"]
    assert recognizer.index_folder(tmp_path, "*.wav") == 0


def test_catalog_survives_restart(tmp_path):
    db = str(tmp_path / "fingerprints.db")
    song = random_pcm(20, seed=8)
    with SongRecognizer(db) as r:
        r.index_samples("Persisted", song)

    with SongRecognizer(db) as r:
        r.load()
        r.load()  # second call is a no-op
        assert r.index.num_occurrences == 20
        result = r.identify_samples(song[4 * CHUNK_SIZE:])
        assert result.song_name == "Persisted"
        assert result.offset == 4


def test_query_before_explicit_load_sees_catalog(tmp_path):
    db = str(tmp_path / "fingerprints.db")
    song = random_pcm(10, seed=8)
    with SongRecognizer(db) as r:
        r.index_samples("Song", song)
    with SongRecognizer(db) as r:
        assert r.identify_samples(song).matched
        r.index_samples("Other", random_pcm(10, seed=9))
        assert r.index.num_occurrences == 20


def test_missing_or_undecodable_query(recognizer, tmp_path):
    with pytest.raises(FileNotFoundError):
        recognizer.recognize(tmp_path / "nope.wav")
    bad = tmp_path / "bad.wav"
    bad.write_bytes(b"garbage")
    with pytest.raises(AudioDecodeError):
        recognizer.recognize(bad)


def test_failed_store_write_can_be_retried(recognizer, write_wav, monkeypatch):
    song = random_pcm(20, seed=5)
    path = write_wav("Flaky.wav", song)
    store = recognizer.store
    insert_fingerprints = store._insert_fingerprints
    failures = []

    def fail_once(song_id, codes):
        if not failures:
            failures.append(song_id)
            raise sqlite3.OperationalError("disk I/O error")
        insert_fingerprints(song_id, codes)

    monkeypatch.setattr(store, "_insert_fingerprints", fail_once)

    with pytest.raises(StoreUnavailableError):
        recognizer.index_song(path)
    assert recognizer.list_songs() == []
    assert recognizer.index.num_occurrences == 0

    song_id = recognizer.index_song(path)
    assert song_id is not None
    assert recognizer.list_songs() == [(song_id, "Flaky")]

    result = recognizer.identify_samples(song[3 * CHUNK_SIZE:])
    assert result.matched
    assert result.song_id == song_id
    assert result.offset == 3


def test_concurrent_adds_of_one_name_keep_a_single_entry(recognizer):
    song = random_pcm(10, seed=6)
    barrier = threading.Barrier(4)
    ids = []

    def add():
        barrier.wait()
        ids.append(recognizer.index_samples("Same", song))

    threads = [threading.Thread(target=add) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    added = [song_id for song_id in ids if song_id is not None]
    assert len(added) == 1
    assert recognizer.list_songs() == [(added[0], "Same")]
    assert recognizer.index.num_occurrences == 10
