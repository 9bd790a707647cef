"""Access code and actor schema definitions.

This module defines the Profile tagged union, the Actor identity that is
passed explicitly to every engine call, and the access code API models.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, Field


class Profile(str, Enum):
    """The four kinds of access code holder."""

    ADMIN = "admin"
    TEACHER = "teacher"
    PARENT = "parent"
    PARTNER = "partner"


# Partners share the teacher screen (meeting polls)
HOME_PATHS: Dict[Profile, str] = {
    Profile.ADMIN: "/admin",
    Profile.TEACHER: "/teacher",
    Profile.PARTNER: "/teacher",
    Profile.PARENT: "/parent",
}

BADGE_FALLBACKS: Dict[Profile, str] = {
    Profile.ADMIN: "Admin",
    Profile.TEACHER: "Teacher",
    Profile.PARTNER: "Partner",
    Profile.PARENT: "Parent",
}


class Actor(BaseModel):
    """The identity on whose behalf an engine operation runs."""

    code_id: str = Field(description="ID of the access code record.")
    code: str = Field(description="The upper-case access code.")
    profile: Profile = Field(description="Profile of the code holder.")
    display_name: Optional[str] = Field(default=None)
    class_name: Optional[str] = Field(
        default=None, description="Class affiliation, meaningful for teachers and parents."
    )

    @property
    def home_path(self) -> str:
        return HOME_PATHS[self.profile]

    @property
    def badge(self) -> str:
        """Short label identifying the holder in page headers."""
        if self.profile == Profile.ADMIN:
            return BADGE_FALLBACKS[Profile.ADMIN]
        if self.profile == Profile.PARENT:
            return self.class_name or BADGE_FALLBACKS[Profile.PARENT]
        return self.display_name or BADGE_FALLBACKS[self.profile]


class AccessCodeInfo(BaseModel):
    id: str
    code: str
    profile: Profile
    display_name: Optional[str] = None
    class_name: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None


class CreateAccessCodeRequest(BaseModel):
    code: str = Field(description="Access code; stored upper-case.")
    profile: Profile = Field(default=Profile.TEACHER)
    display_name: Optional[str] = None
    class_name: Optional[str] = None


class UpdateAccessCodeRequest(BaseModel):
    is_active: bool


class DirectoryStats(BaseModel):
    """Counts shown on the admin dashboard."""

    teachers: int = 0
    partners: int = 0
    parents: int = 0
    appointments_booked: int = 0
    appointments_available: int = 0
    meetings_pending: int = 0
