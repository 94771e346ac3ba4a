from datetime import datetime
from typing import Annotated, Literal

from fastapi import Path
from pydantic import Field

from anpr_server.kit.schemas import IDSchema, Schema


class EventCreate(Schema):
    """A detection as reported by the camera unit, before it is stored."""

    channel_id: str = Field(alias="channelID", description="Camera or lane identifier.")
    date_time: str = Field(
        alias="dateTime", description="Detection time as reported by the device."
    )
    event_type: str = Field(alias="eventType", description="The type of the event.")
    license_plate: str = Field(alias="licensePlate", description="The plate read.")
    country: str | None = Field(default=None)
    lane: str | None = Field(default=None)
    direction: str | None = Field(default=None)
    confidence_level: str | None = Field(default=None, alias="confidenceLevel")
    mac_address: str | None = Field(default=None, alias="macAddress")


class EventAttachments(Schema):
    license_plate_image: str | None = Field(
        default=None,
        alias="licensePlateImage",
        description="Stored file name of the license plate crop.",
    )
    vehicle_image: str | None = Field(
        default=None,
        alias="vehicleImage",
        description="Stored file name of the full vehicle picture.",
    )
    detection_image: str | None = Field(
        default=None,
        alias="detectionImage",
        description="Stored file name of the detection frame.",
    )

    def first(self) -> str | None:
        for reference in (
            self.license_plate_image,
            self.vehicle_image,
            self.detection_image,
        ):
            if reference is not None:
                return reference
        return None


class Event(IDSchema, EventAttachments, EventCreate):
    created_at: datetime = Field(
        alias="createdAt", description="When the server stored the event."
    )


class IngestedEvent(Event):
    image_file: str | None = Field(
        default=None,
        alias="imageFile",
        description="First stored image, for consumers that expect a single one.",
    )


class IngestionResponse(Schema):
    status: Literal["success"] = "success"
    message: str = "Vehicle detection event processed successfully"
    event: IngestedEvent


class EventFilter(Schema):
    license_plate_contains: str | None = None
    date_from: str | None = None
    date_to: str | None = None
    limit: int | None = None


class EventStats(Schema):
    total_events: int = Field(alias="totalEvents")
    unique_vehicles: int = Field(alias="uniqueVehicles")
    active_channels: int = Field(alias="activeChannels")
    last_detection: str | None = Field(alias="lastDetection")


class EventList(Schema):
    events: list[Event]
    stats: EventStats


EventID = Annotated[int, Path(description="The event ID.")]
