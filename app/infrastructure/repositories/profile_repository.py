"""Persistence layer for profile data."""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.entities import Profile
from app.infrastructure.models import ProfileModel

from .errors import persistence_error


class ProfileRepository:
    """Read access to profiles, plus creation for seeding."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, profile_id: int) -> Profile | None:
        model = self.session.get(ProfileModel, profile_id)
        return self._to_entity(model) if model else None

    def get_map_by_ids(self, profile_ids: Iterable[int]) -> dict[int, Profile]:
        ids = {profile_id for profile_id in profile_ids if profile_id}
        if not ids:
            return {}
        query = self.session.query(ProfileModel).filter(ProfileModel.id.in_(ids))
        return {model.id: self._to_entity(model) for model in query.all()}

    def create(self, profile: Profile) -> Profile:
        model = ProfileModel(
            full_name=profile.full_name,
            email=profile.email,
            avatar_url=profile.avatar_url,
        )
        if profile.id is not None:
            model.id = profile.id
        self.session.add(model)
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            raise persistence_error(self.session, exc, "create profile") from exc
        self.session.refresh(model)
        return self._to_entity(model)

    @staticmethod
    def _to_entity(model: ProfileModel) -> Profile:
        return Profile(
            id=model.id,
            full_name=model.full_name,
            email=model.email,
            avatar_url=model.avatar_url,
        )


__all__ = ["ProfileRepository"]
