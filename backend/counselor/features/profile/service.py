"""
Profile feature: In-memory student profile store.

Profiles live only for the lifetime of the process. Saving for a known user_id
updates that user's profile in place; every save bumps `profileVersion`.
"""

import json
import logging
import threading
import time
from datetime import datetime, timezone

from counselor.features.profile.schemas import (
    ProfileProgress,
    ProfileStatus,
    StoredProfile,
    StudentProfile,
)

logger = logging.getLogger(__name__)

PROFILE_FIELDS = set(StudentProfile.model_fields)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ProfileStore:
    """Process-local profile storage, insertion ordered."""

    def __init__(self):
        self._profiles: dict[str, StoredProfile] = {}
        self._lock = threading.Lock()

    def _new_id(self) -> str:
        millis = int(time.time() * 1000)
        while f"profile_{millis}" in self._profiles:
            millis += 1
        return f"profile_{millis}"

    def save(
        self,
        profile: StudentProfile,
        user_id: str | None = None,
        counselor_id: str | None = None,
        status: ProfileStatus | None = None,
        current_step: int | None = None,
        profile_id: str | None = None,
    ) -> StoredProfile:
        """Create or update a profile.

        The existing record is found by `profile_id` when given, else by
        `user_id`. Its id, createdAt, owner fields, status, progress and any
        answer the caller left unset are kept. `completedAt` is stamped the
        first time a save marks the profile active.
        """
        now = _timestamp()

        with self._lock:
            existing = None
            if profile_id:
                existing = self._profiles.get(profile_id)
            elif user_id:
                existing = next((p for p in self._profiles.values() if p.user_id == user_id), None)

            if current_step is not None:
                progress = ProfileProgress(current_step=current_step, last_interaction=now)
            else:
                progress = existing.progress if existing else None

            answers = existing.model_dump(include=PROFILE_FIELDS) if existing else {}
            answers.update(profile.model_dump(include=PROFILE_FIELDS, exclude_unset=True))

            stored = StoredProfile(
                **answers,
                id=existing.id if existing else self._new_id(),
                user_id=user_id or (existing.user_id if existing else None),
                counselor_id=counselor_id or (existing.counselor_id if existing else None),
                created_at=existing.created_at if existing else now,
                updated_at=now,
                status=status or (existing.status if existing else "active"),
                completed_at=existing.completed_at if existing else None,
                profile_version=(existing.profile_version if existing else 0) + 1,
                progress=progress,
            )

            if status == "active" and not stored.completed_at:
                stored.completed_at = now

            self._profiles[stored.id] = stored

        logger.info(f"👤 Profile {'updated' if existing else 'created'}: {stored.id} (v{stored.profile_version})")
        return stored

    def get(self, profile_id: str | None = None, user_id: str | None = None) -> StoredProfile | None:
        """Find a profile by id or user_id.

        Raises:
            ValueError: If neither identifier is given.
        """
        if not profile_id and not user_id:
            raise ValueError("Either id or userId must be provided")

        with self._lock:
            for profile in self._profiles.values():
                if (profile_id and profile.id == profile_id) or (user_id and profile.user_id == user_id):
                    return profile
        return None

    def list(self, counselor_id: str | None = None, status: ProfileStatus | None = None) -> list[StoredProfile]:
        with self._lock:
            profiles = list(self._profiles.values())
        if counselor_id:
            profiles = [p for p in profiles if p.counselor_id == counselor_id]
        if status:
            profiles = [p for p in profiles if p.status == status]
        return profiles

    def save_draft(self, partial_profile: dict, current_step: int, user_id: str | None = None) -> StoredProfile:
        """Save an unfinished questionnaire; unanswered fields become ""."""
        profile = StudentProfile.model_validate(partial_profile)
        return self.save(profile, user_id=user_id, status="draft", current_step=current_step)

    def archive(self, profile_id: str) -> StoredProfile | None:
        existing = self._profiles.get(profile_id)
        if existing is None:
            return None
        return self.save(
            existing,
            user_id=existing.user_id,
            counselor_id=existing.counselor_id,
            status="archived",
            profile_id=existing.id,
        )

    def __len__(self) -> int:
        return len(self._profiles)


def to_context(profile: StudentProfile) -> str:
    """Render the questionnaire answers as the chat route's `profileContext`."""
    answers = profile.model_dump(by_alias=True, include=PROFILE_FIELDS)
    return "Student Profile: " + json.dumps(answers, separators=(",", ":"))


profile_store = ProfileStore()
