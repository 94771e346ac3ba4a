from anpr_server.kit.schemas import Schema


class ReadinessSchema(Schema):
    database: bool
    uploads: bool
