"""
Profile feature: Schemas for student profiles (camelCase on the wire).
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

ProfileStatus = Literal["active", "archived", "draft"]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )


class StudentProfile(CamelModel):
    """Answers collected by the questionnaire."""
    name: str = ""
    grade_level: str = ""
    intended_major: str = ""
    current_activities: str = ""
    interested_activities: str = ""
    sat_score: str = ""
    additional_info: str = ""


class ProfileProgress(CamelModel):
    current_step: int
    last_interaction: str


class StoredProfile(StudentProfile):
    """A questionnaire profile plus bookkeeping metadata."""
    id: str
    user_id: str | None = None
    counselor_id: str | None = None
    created_at: str
    updated_at: str
    status: ProfileStatus = "active"
    completed_at: str | None = None
    profile_version: int = 1
    progress: ProfileProgress | None = None


class ProfileSaveRequest(CamelModel):
    """Body of POST /api/profile."""
    profile: StudentProfile | None = None
    user_id: str | None = None
    counselor_id: str | None = None
    status: ProfileStatus | None = None
    current_step: int | None = None


class DraftSaveRequest(CamelModel):
    """Body of PUT /api/profile (partial questionnaire answers)."""
    partial_profile: dict | None = None
    current_step: int | None = None
    user_id: str | None = None
