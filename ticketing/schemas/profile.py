"""
Pydantic schemas for user profiles.
"""

from typing import Optional
from pydantic import BaseModel, Field


class ProfileResponse(BaseModel):
    id: str
    role: str
    first_name: Optional[str]
    last_name: Optional[str]
    phone: Optional[str]

    model_config = {"from_attributes": True}


class ProfileUpdate(BaseModel):
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=32, pattern=r"^[0-9+\-() ]*$")
