import pytest

from field_inspection.domain.models import RawSegment, RawTranscript
from field_inspection.domain.transcription_stage import (
    TranscriptionStage,
    normalize_transcript,
)
from field_inspection.exceptions import TranscriptionFailedError

AUDIO_REFERENCE = "http://minio.test/inspection-files/insp-1/audio/a.m4a"


@pytest.fixture
def uploaded_audio(storage):
    storage.objects["insp-1/audio/a.m4a"] = b"audio-bytes"
    return AUDIO_REFERENCE


def test_normalize_converts_seconds_and_defaults_confidence():
    raw = RawTranscript(
        text="b a",
        segments=[
            RawSegment(start=5.0, end=7.25, text="b", confidence=0.9),
            RawSegment(start=0.0, end=2.0, text="a"),
        ],
        time_unit_ms=1000.0,
    )

    result = normalize_transcript(raw)

    assert [(s.start_ms, s.end_ms, s.text) for s in result.segments] == [
        (0, 2000, "a"),
        (5000, 7250, "b"),
    ]
    assert [s.confidence for s in result.segments] == [0.8, 0.9]
    assert result.confidence == 0.8


def test_normalize_keeps_millisecond_segments():
    raw = RawTranscript(
        text="a", segments=[RawSegment(start=1200, end=3400, text="a")]
    )

    [segment] = normalize_transcript(raw).segments

    assert (segment.start_ms, segment.end_ms) == (1200, 3400)


def test_transcribe_downloads_and_normalizes(transcription_stage, uploaded_audio):
    result = transcription_stage.transcribe(uploaded_audio)

    assert result.full_text == "roof shingles missing water stain in attic"
    assert [(s.start_ms, s.end_ms) for s in result.segments] == [
        (0, 2000),
        (9000, 11000),
    ]
    assert [s.confidence for s in result.segments] == [0.8, 0.95]


def test_service_failure_becomes_transcription_failed(
    transcription_stage, transcription_service, uploaded_audio
):
    transcription_service.fail = True

    with pytest.raises(TranscriptionFailedError) as exc_info:
        transcription_stage.transcribe(uploaded_audio)

    assert exc_info.value.audio_reference == uploaded_audio


def test_missing_audio_becomes_transcription_failed(transcription_stage):
    with pytest.raises(TranscriptionFailedError):
        transcription_stage.transcribe(AUDIO_REFERENCE)


def test_transcript_is_cached_per_inspection(
    transcription_stage, transcription_service, cache, uploaded_audio
):
    first = transcription_stage.transcribe_inspection("insp-1", uploaded_audio)
    second = transcription_stage.transcribe_inspection("insp-1", uploaded_audio)

    assert first == second
    assert transcription_service.calls == 1
    assert cache.values["insp-1"] == first


def test_cache_outage_is_bypassed(
    transcription_stage, transcription_service, cache, uploaded_audio
):
    cache.available = False

    result = transcription_stage.transcribe_inspection("insp-1", uploaded_audio)

    assert len(result.segments) == 2
    assert transcription_service.calls == 1


def test_stage_without_cache(storage, transcription_service, uploaded_audio):
    stage = TranscriptionStage(storage, transcription_service)

    stage.transcribe_inspection("insp-1", uploaded_audio)
    stage.transcribe_inspection("insp-1", uploaded_audio)

    assert transcription_service.calls == 2


def test_cached_transcript_skips_download(
    transcription_stage, transcription_service, cache, uploaded_audio
):
    cached = transcription_stage.transcribe(uploaded_audio)
    cache.values["insp-1"] = cached
    transcription_service.calls = 0

    result = transcription_stage.transcribe_inspection("insp-1", "http://gone/a.m4a")

    assert result == cached
    assert transcription_service.calls == 0
