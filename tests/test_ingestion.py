import anyio
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from anpr_server.app import create_app
from anpr_server.event.repository import EventRepository

PARAMS = {
    "channelID": "CH1",
    "dateTime": "2024-01-01T10:00:00Z",
    "eventType": "ANPR",
    "licensePlate": "ABC123",
}


def image_part(field: str, data: bytes, content_type: str = "image/jpeg"):
    return (field, data, content_type)


def get_total_events(client: TestClient) -> int:
    response = client.get("/api/v1/events/")
    assert response.status_code == 200
    return response.json()["stats"]["totalEvents"]


def test_single_license_plate_image(client, upload_dir, jpeg):
    response = client.post(
        "/",
        params=PARAMS,
        files={
            "licensePlatePicture.jpg": image_part("licensePlatePicture.jpg", jpeg)
        },
    )

    assert response.status_code == 200
    json = response.json()
    assert json["status"] == "success"
    assert json["message"] == "Vehicle detection event processed successfully"

    event = json["event"]
    assert event["licensePlate"] == "ABC123"
    assert event["channelID"] == "CH1"
    assert event["dateTime"] == "2024-01-01T10:00:00Z"
    assert event["eventType"] == "ANPR"
    assert event["country"] is None
    assert event["licensePlateImage"] is not None
    assert event["vehicleImage"] is None
    assert event["detectionImage"] is None
    assert event["imageFile"] == event["licensePlateImage"]
    assert isinstance(event["id"], int)
    assert event["createdAt"]

    assert (upload_dir / event["licensePlateImage"]).read_bytes() == jpeg
    stored = client.get(f"/uploads/{event['licensePlateImage']}")
    assert stored.status_code == 200
    assert stored.content == jpeg


def test_all_images(client, jpeg):
    images = {
        "licensePlatePicture.jpg": jpeg + b"plate",
        "vehiclePicture.jpg": jpeg + b"vehicle",
        "detectionPicture.jpg": jpeg + b"detection",
    }
    response = client.post(
        "/",
        params=PARAMS,
        files={name: image_part(name, data) for name, data in images.items()},
    )

    assert response.status_code == 200
    event = response.json()["event"]
    references = {
        "licensePlatePicture.jpg": event["licensePlateImage"],
        "vehiclePicture.jpg": event["vehicleImage"],
        "detectionPicture.jpg": event["detectionImage"],
    }
    assert len(set(references.values())) == 3
    assert event["imageFile"] == event["licensePlateImage"]

    for name, reference in references.items():
        assert client.get(f"/uploads/{reference}").content == images[name]


def test_first_stored_image_is_legacy_image_file(client, jpeg):
    response = client.post(
        "/",
        params=PARAMS,
        files={
            "detectionPicture.jpg": image_part("detectionPicture.jpg", jpeg),
            "vehiclePicture.jpg": image_part("vehiclePicture.jpg", jpeg),
        },
    )

    event = response.json()["event"]
    assert event["licensePlateImage"] is None
    assert event["imageFile"] == event["vehicleImage"]


def test_no_images(client, upload_dir):
    response = client.post("/", params=PARAMS)

    assert response.status_code == 200
    event = response.json()["event"]
    assert event["licensePlateImage"] is None
    assert event["vehicleImage"] is None
    assert event["detectionImage"] is None
    assert event["imageFile"] is None
    assert list(upload_dir.iterdir()) == []


def test_empty_image_part_is_ignored(client):
    response = client.post(
        "/",
        params=PARAMS,
        files={"vehiclePicture.jpg": image_part("vehiclePicture.jpg", b"")},
    )

    assert response.status_code == 200
    assert response.json()["event"]["vehicleImage"] is None


def test_hik_path(client, jpeg):
    response = client.post(
        "/hik",
        params=PARAMS,
        files={"vehiclePicture.jpg": image_part("vehiclePicture.jpg", jpeg)},
    )

    assert response.status_code == 200
    assert response.json()["event"]["vehicleImage"] is not None


def test_metadata_from_form_fields(client, jpeg):
    response = client.post(
        "/",
        data={**PARAMS, "lane": "2"},
        files={
            "licensePlatePicture.jpg": image_part("licensePlatePicture.jpg", jpeg)
        },
    )

    assert response.status_code == 200
    event = response.json()["event"]
    assert event["licensePlate"] == "ABC123"
    assert event["lane"] == "2"


def test_query_parameters_take_precedence(client):
    response = client.post(
        "/",
        params=PARAMS,
        data={"licensePlate": "FORM01", "country": "NL"},
    )

    event = response.json()["event"]
    assert event["licensePlate"] == "ABC123"
    assert event["country"] == "NL"


def test_optional_fields_are_echoed(client):
    params = {
        **PARAMS,
        "country": "NLD",
        "lane": "1",
        "direction": "forward",
        "confidenceLevel": "97",
        "macAddress": "44:19:b6:00:00:01",
    }

    response = client.post("/", params=params)

    event = response.json()["event"]
    assert event["country"] == "NLD"
    assert event["lane"] == "1"
    assert event["direction"] == "forward"
    assert event["confidenceLevel"] == "97"
    assert event["macAddress"] == "44:19:b6:00:00:01"


@pytest.mark.parametrize(
    "missing", ["channelID", "dateTime", "eventType", "licensePlate"]
)
def test_missing_required_field(client, upload_dir, jpeg, missing):
    params = {k: v for k, v in PARAMS.items() if k != missing}

    response = client.post(
        "/",
        params=params,
        files={
            "licensePlatePicture.jpg": image_part("licensePlatePicture.jpg", jpeg)
        },
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Missing required parameters", "field": missing}
    assert get_total_events(client) == 0
    assert list(upload_dir.iterdir()) == []


def test_unsupported_media_type(client, upload_dir, jpeg):
    response = client.post(
        "/",
        params=PARAMS,
        files={
            "licensePlatePicture.jpg": image_part("licensePlatePicture.jpg", jpeg),
            "vehiclePicture.jpg": image_part("vehicle.png", jpeg, "image/png"),
        },
    )

    assert response.status_code == 415
    assert response.json()["error"] == "Unsupported media type"
    assert get_total_events(client) == 0
    assert list(upload_dir.iterdir()) == []


def test_media_type_checked_before_required_fields(client, jpeg):
    response = client.post(
        "/",
        params={"channelID": "CH1"},
        files={"vehiclePicture.jpg": image_part("vehicle.gif", jpeg, "image/gif")},
    )

    assert response.status_code == 415


def test_payload_too_large(settings, jpeg):
    settings.ATTACHMENT_MAX_SIZE = len(jpeg) - 1

    with TestClient(create_app(settings)) as client:
        response = client.post(
            "/",
            params=PARAMS,
            files={"vehiclePicture.jpg": image_part("vehiclePicture.jpg", jpeg)},
        )

        assert response.status_code == 413
        assert response.json()["error"] == "Payload too large"
        assert get_total_events(client) == 0


def test_storage_failure_keeps_files(client, upload_dir, jpeg, monkeypatch):
    async def create(self, object, *, flush=False):
        raise OperationalError("INSERT INTO events", {}, Exception("disk I/O error"))

    monkeypatch.setattr(EventRepository, "create", create)

    response = client.post(
        "/",
        params=PARAMS,
        files={
            "licensePlatePicture.jpg": image_part("licensePlatePicture.jpg", jpeg)
        },
    )

    assert response.status_code == 500
    assert response.json() == {
        "error": "Internal server error",
        "message": "Event storage failed during insert",
    }
    # Files are written before the row and are not cleaned up
    assert len(list(upload_dir.iterdir())) == 1

    monkeypatch.undo()
    assert get_total_events(client) == 0


def test_attachment_write_failure_stores_no_event(
    client, upload_dir, jpeg, monkeypatch
):
    write_bytes = anyio.Path.write_bytes
    writes = []

    async def fail_second_write(self, data):
        writes.append(self)
        if len(writes) == 2:
            raise OSError(28, "No space left on device")
        return await write_bytes(self, data)

    monkeypatch.setattr(anyio.Path, "write_bytes", fail_second_write)

    response = client.post(
        "/",
        params=PARAMS,
        files={
            "licensePlatePicture.jpg": image_part("licensePlatePicture.jpg", jpeg),
            "vehiclePicture.jpg": image_part("vehiclePicture.jpg", jpeg),
        },
    )

    assert response.status_code == 500
    json = response.json()
    assert json["error"] == "Internal server error"
    assert json["message"].startswith("Could not write ")
    assert len(writes) == 2
    assert len(list(upload_dir.iterdir())) == 1
    assert get_total_events(client) == 0


def test_original_name_shared_by_two_images(settings, jpeg):
    settings.ATTACHMENT_FILENAME_POLICY = "original"

    with TestClient(create_app(settings)) as client:
        response = client.post(
            "/",
            params=PARAMS,
            files={
                "licensePlatePicture.jpg": image_part("capture.jpg", jpeg + b"plate"),
                "vehiclePicture.jpg": image_part("capture.jpg", jpeg + b"vehicle"),
            },
        )

        assert response.status_code == 200
        event = response.json()["event"]
        assert event["licensePlateImage"] == "capture.jpg"
        assert event["vehicleImage"].startswith("ABC123_")
        assert event["vehicleImage"].endswith("_vehicle.jpg")

        plate = client.get(f"/uploads/{event['licensePlateImage']}")
        vehicle = client.get(f"/uploads/{event['vehicleImage']}")
        assert plate.content == jpeg + b"plate"
        assert vehicle.content == jpeg + b"vehicle"


def test_unhandled_error(app, monkeypatch):
    def normalize(params):
        raise RuntimeError("boom")

    monkeypatch.setattr("anpr_server.event.ingestion.normalize", normalize)

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.post("/", params=PARAMS)

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error", "message": "boom"}


def test_ids_are_increasing(client):
    first = client.post("/", params=PARAMS).json()["event"]["id"]
    second = client.post("/", params=PARAMS).json()["event"]["id"]

    assert second > first
