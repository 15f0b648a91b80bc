"""
Request and Response Schemas

Pydantic models describing the JSON bodies of the API.

Request models only fix the shape of a body. Value rules (password
policy, title length, ...) are checked by app.utils.validators inside the
services, so they apply no matter how a service is called.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SignupRequest(BaseModel):
    name: str
    email: str
    password: str


class LoginRequest(BaseModel):
    email: str
    password: str


class UserUpdate(BaseModel):
    # Unknown keys are rejected ("Invalid updates!")
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str


class AuthResponse(BaseModel):
    user: UserRead
    token: str


class MessageResponse(BaseModel):
    msg: str


class PostCreate(BaseModel):
    title: str
    description: str
    body: str


class PostUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = None
    description: Optional[str] = None
    body: Optional[str] = None


class PostRead(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    description: str
    body: str
    likes: int
    liked_by: list[str] = Field(default_factory=list, alias="likedBy")
    author: str
