# app/api/models/pinning.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Optional


class PinFileRequest(BaseModel):
    """Request body for pinning a file given as a base64 data URI."""
    model_config = ConfigDict(extra="ignore")

    # Left untyped so a non-string value reaches the data URI validator
    uri: Optional[Any] = Field(
        default=None,
        description="Base64 data URI of the file to pin",
        examples=["data:text/plain;base64,SGVsbG8sIElQRlMh"]
    )


class PinJsonRequest(BaseModel):
    """Request body for pinning an arbitrary JSON value."""
    model_config = ConfigDict(extra="ignore")

    value: Optional[Any] = Field(
        default=None,
        alias="json",
        description="Any non-null JSON value",
        examples=[{"name": "Test Document"}]
    )


class PinResponse(BaseModel):
    """Response body for a successful pin."""
    uri: str = Field(..., description="Content-addressed URI (ipfs://<cid>)")
