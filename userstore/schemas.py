"""
Users API Schemas - request/response models for the users router.

The id is the resource key (path or create response), never part of the
user body.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class UserIn(BaseModel):
    """Writable user fields for create/update."""

    display_name: str = Field(..., description="Name shown for the user")
    email: str = Field(..., description="Contact e-mail")


class UserOut(BaseModel):
    created_at: datetime = Field(..., description="Creation time (RFC 3339)")
    display_name: str
    email: str


class UserCreated(BaseModel):
    id: int = Field(..., description="Server-assigned user id")
