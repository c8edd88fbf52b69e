from field_inspection.domain.models import NewPhoto


def _add_photo(store, photo_id: str, audio_timestamp: int) -> None:
    store.add_photo(
        NewPhoto(
            id=photo_id,
            inspection_id="insp-1",
            photo_uri=f"/media/{photo_id}.jpg",
            timestamp=1_700_000_000_000,
            audio_timestamp=audio_timestamp,
        )
    )


def test_list_inspections_most_recent_first(client, make_inspection, clock):
    make_inspection("older")
    clock.advance(1000)
    make_inspection("newer")

    response = client.get("/inspections")

    assert response.status_code == 200
    body = response.json()
    assert [i["id"] for i in body] == ["newer", "older"]
    assert body[0]["status"] == "DRAFT"
    assert body[0]["has_audio"] is False


def test_get_inspection_with_photos_in_recording_order(
    client, store, make_inspection
):
    make_inspection("insp-1")
    _add_photo(store, "late", 9000)
    _add_photo(store, "early", 1000)
    store.update_audio_location("insp-1", "/media/insp-1/audio/a.m4a")

    response = client.get("/inspections/insp-1")

    assert response.status_code == 200
    body = response.json()
    assert body["claim_number"] == "CLM-001"
    assert body["has_audio"] is True
    assert body["remote_audio_url"] is None
    assert [p["id"] for p in body["photos"]] == ["early", "late"]
    assert body["photos"][0]["caption"] is None


def test_get_unknown_inspection(client):
    response = client.get("/inspections/missing")

    assert response.status_code == 404
    assert response.json()["detail"] == "Inspection not found"


def test_request_analysis_publishes_event(client, publisher, make_inspection):
    make_inspection("insp-1")

    response = client.post("/inspections/insp-1/analysis")

    assert response.status_code == 202
    assert response.json()["inspection_id"] == "insp-1"
    assert publisher.published == [
        (
            "inspection.analysis.requested",
            {"inspection_id": "insp-1", "photo_id": None},
        )
    ]


def test_request_analysis_for_unknown_inspection(client, publisher):
    response = client.post("/inspections/missing/analysis")

    assert response.status_code == 404
    assert publisher.published == []


def test_request_caption_retry(client, store, publisher, make_inspection):
    make_inspection("insp-1")
    _add_photo(store, "p1", 1000)

    response = client.post("/photos/p1/caption")

    assert response.status_code == 202
    assert response.json()["photo_id"] == "p1"
    assert publisher.published == [
        (
            "inspection.analysis.requested",
            {"inspection_id": "insp-1", "photo_id": "p1"},
        )
    ]


def test_caption_retry_for_unknown_photo(client):
    assert client.post("/photos/missing/caption").status_code == 404


def test_publish_failure_is_a_server_error(client, publisher, make_inspection):
    make_inspection("insp-1")
    publisher.fail = True

    response = client.post("/inspections/insp-1/analysis")

    assert response.status_code == 500
    assert response.json()["detail"] == "Event publish failed"
