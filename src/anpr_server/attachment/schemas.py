from enum import StrEnum
from typing import Literal, TypeAlias

FilenamePolicy: TypeAlias = Literal["synthesized", "original"]


class AttachmentKind(StrEnum):
    """Images a camera unit may attach to a detection, in storage order."""

    license_plate = "licensePlate"
    vehicle = "vehicle"
    detection = "detection"

    @property
    def field_name(self) -> str:
        """Multipart part name used by the camera units."""
        return f"{self.value}Picture.jpg"

    @property
    def reference_attribute(self) -> str:
        return f"{self.name}_image"
