from pydantic import BaseModel, ConfigDict, Field


class Schema(BaseModel):
    # Camera units speak camelCase, Python code uses the field names
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class IDSchema(Schema):
    id: int = Field(..., description="The ID of the object.")

    model_config = ConfigDict(
        # IMPORTANT: this ensures FastAPI doesn't generate `-Input` for output schemas
        json_schema_mode_override="serialization",
    )
