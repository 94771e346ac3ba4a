from anpr_server.models.base import Base
from anpr_server.models.event import Event

__all__ = ["Base", "Event"]
