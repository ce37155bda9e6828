"""Read-only lookups against the profile and project tables."""
from __future__ import annotations

from typing import Dict, Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from .models import Profile, Project


class ProfileNotFound(LookupError):
    """Raised when a public slug does not resolve to a profile."""


class ProfileDirectory:
    def __init__(self, db: Session) -> None:
        self._db = db

    def resolve_slug(self, slug: str) -> str:
        profile_id = self._db.execute(
            select(Profile.id).where(Profile.slug == slug)
        ).scalar_one_or_none()
        if profile_id is None:
            raise ProfileNotFound(f"No profile with slug {slug!r}")
        return profile_id

    def project_titles(self, profile_id: str, project_ids: Iterable[str]) -> Dict[str, str]:
        ids = list(project_ids)
        if not ids:
            return {}
        rows = self._db.execute(
            select(Project.id, Project.title).where(Project.profile_id == profile_id, Project.id.in_(ids))
        )
        return {project_id: title for project_id, title in rows}
