"""Pipeline Schemas — wire-shaped request and response models for an export run.

Invariants:
    - Wire field names (TemplateAppId, Changes, ChangeType, ...) accepted as aliases;
      Python field names accepted too (populate_by_name)
    - Change order is preserved exactly as received
    - ChangeType / Format are kept as raw strings and parsed into closed enums on
      access, so unknown values survive validation and reach the dispatcher;
      a null ChangeType is treated like a missing one
    - Per-type required fields are NOT enforced here (see core/validate_changes.py)
      so a bad change is reported with its index instead of as a schema error
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from appwizard.core.domain_types import ChangeType, ImageFormat


class ChangeDescriptor(BaseModel):
    """One declarative change to apply to the working copy."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    raw_change_type: str = Field("", alias="ChangeType")
    location: str = Field("", alias="Location")
    item_name: str = Field("", alias="ItemName")
    new_value: str = Field("", alias="NewValue")
    object_name: str = Field("", alias="ObjectName")
    raw_format: str | None = Field(None, alias="Format")

    @field_validator("raw_change_type", mode="before")
    @classmethod
    def null_change_type_is_unsupported(cls, v):
        return "" if v is None else v

    @property
    def change_type(self) -> ChangeType:
        return ChangeType.parse(self.raw_change_type)

    @property
    def image_format(self) -> ImageFormat:
        return ImageFormat.parse(self.raw_format)

    def summary(self) -> str:
        """Identifiers used in log lines and failure messages."""
        return f"{self.raw_change_type or '<none>'} {self.location}/{self.item_name}"


class PipelineRequest(BaseModel):
    """Export request — source app, target artifact key and ordered changes."""

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        json_schema_extra={
            "example": {
                "TemplateAppId": "5c3f1e0e-0000-4000-8000-000000000001",
                "MpkObjectName": "exports/customer-a.mpk",
                "Bucket": "appwizard-artifacts",
                "RequestId": "req-42",
                "version": "1",
                "Changes": [
                    {
                        "ChangeType": "CSS_Variable_Change",
                        "Location": "theme/web/custom-variables.scss",
                        "ItemName": "brand-primary",
                        "NewValue": "#0a5fff",
                    },
                    {
                        "ChangeType": "ImageCollection_Image_Change",
                        "Location": "Atlas_Core.Images",
                        "ItemName": "logo",
                        "ObjectName": "uploads/logo2.png",
                        "Format": "PNG",
                    },
                ],
            }
        },
    )

    source_app_id: str = Field(alias="TemplateAppId", min_length=1)
    target_object_key: str = Field(alias="MpkObjectName", min_length=1)
    storage_container: str = Field(alias="Bucket", min_length=1)
    request_id: str | None = Field(None, alias="RequestId")
    version: str | None = None
    changes: list[ChangeDescriptor] = Field(default_factory=list, alias="Changes")


class PipelineResponse(BaseModel):
    """Response envelope: 200 with the uploaded key, or 500 with a message."""

    model_config = ConfigDict(populate_by_name=True)

    status_code: int = Field(alias="statusCode")
    body: str

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)
