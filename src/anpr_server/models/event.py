from datetime import datetime

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from anpr_server.kit.db.sqlite import UTCTimestamp
from anpr_server.kit.utils import utc_now
from anpr_server.models.base import Base


class Event(Base):
    """A vehicle detection reported by a camera unit. Rows are never updated."""

    __tablename__ = "events"
    # Ids are never handed out twice, even after the highest row disappears
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    channel_id: Mapped[str] = mapped_column("channelID", String, nullable=False)
    date_time: Mapped[str] = mapped_column(
        "dateTime", String, nullable=False, index=True
    )
    event_type: Mapped[str] = mapped_column("eventType", String, nullable=False)
    country: Mapped[str | None] = mapped_column(String, nullable=True)
    license_plate: Mapped[str] = mapped_column(
        "licensePlate", String, nullable=False, index=True
    )
    lane: Mapped[str | None] = mapped_column(String, nullable=True)
    direction: Mapped[str | None] = mapped_column(String, nullable=True)
    confidence_level: Mapped[str | None] = mapped_column(
        "confidenceLevel", String, nullable=True
    )
    mac_address: Mapped[str | None] = mapped_column(
        "macAddress", String, nullable=True
    )

    license_plate_image: Mapped[str | None] = mapped_column(
        "licensePlateImage", String, nullable=True
    )
    vehicle_image: Mapped[str | None] = mapped_column(
        "vehicleImage", String, nullable=True
    )
    detection_image: Mapped[str | None] = mapped_column(
        "detectionImage", String, nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        UTCTimestamp, nullable=False, default=utc_now
    )
