"""Pydantic models for request payloads."""

from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class CreateSessionRequest(BaseModel):
    """Payload for starting a session."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(validation_alias=AliasChoices("name", "sessionName"))


class DeleteSessionsRequest(BaseModel):
    """Payload for deleting several sessions."""

    ids: list[UUID]


class StudentLoginRequest(BaseModel):
    """Payload binding a submitter's device."""

    model_config = ConfigDict(populate_by_name=True)

    email: str
    device_id: str = Field(validation_alias=AliasChoices("device_id", "deviceId"))


class StudentSubmitRequest(BaseModel):
    """Payload for an attendance submission."""

    model_config = ConfigDict(populate_by_name=True)

    email: str
    device_id: str = Field(validation_alias=AliasChoices("device_id", "deviceId"))
    session_code: str = Field(
        validation_alias=AliasChoices("session_code", "sessionCode")
    )
