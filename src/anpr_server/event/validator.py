from collections.abc import Mapping

from anpr_server.event.schemas import EventCreate
from anpr_server.exceptions import MissingRequiredField

REQUIRED_FIELDS = ("channelID", "dateTime", "eventType", "licensePlate")
OPTIONAL_FIELDS = ("country", "lane", "direction", "confidenceLevel", "macAddress")


def normalize(params: Mapping[str, str]) -> EventCreate:
    """
    Turn raw request parameters into an `EventCreate`.

    Required fields are checked in a fixed order and the first missing or empty
    one is reported. Everything else is passed through untouched: the device's
    timestamp, confidence and MAC address are not interpreted.
    """
    for field in REQUIRED_FIELDS:
        if not params.get(field):
            raise MissingRequiredField(field)

    values = {field: params[field] for field in REQUIRED_FIELDS}
    values.update({field: params.get(field) for field in OPTIONAL_FIELDS})
    return EventCreate.model_validate(values)
