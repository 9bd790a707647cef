"""Authentication schema definitions."""

from pydantic import BaseModel, Field

from schemas.access_code import Actor


class LoginRequest(BaseModel):
    code: str = Field(description="Access code, case-insensitive.")


class CurrentActorResponse(BaseModel):
    actor: Actor
    home_path: str = Field(description="Landing page for the actor's profile.")
    badge: str


class LoginResponse(CurrentActorResponse):
    access_token: str
    token_type: str = "bearer"
