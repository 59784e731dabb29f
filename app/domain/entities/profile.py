"""Domain entity representing a user profile."""

from dataclasses import dataclass


@dataclass
class Profile:
    """Public identity of a StudyBuddy user."""

    id: int | None
    full_name: str
    email: str | None = None
    avatar_url: str | None = None

    @property
    def display_name(self) -> str:
        return self.full_name or "Someone"
