from __future__ import annotations

from datetime import datetime

from packages.clock import ensure_utc
from packages.db.models import UserProfile

STYLE_NORMAL = "normal"
STYLE_STEALTH = "stealth"
STYLE_OFF = "off"
NOTIFICATION_STYLES = (STYLE_NORMAL, STYLE_STEALTH, STYLE_OFF)


class ProfileStore:
    def __init__(self, session) -> None:
        self.session = session

    def get(self) -> UserProfile | None:
        return self.session.query(UserProfile).order_by(UserProfile.id.asc()).first()

    def get_or_create(self, created_at: datetime | None = None) -> UserProfile:
        profile = self.get()
        if profile:
            return profile
        profile = UserProfile(locale="en", notification_style=STYLE_NORMAL)
        if created_at is not None:
            profile.created_at = ensure_utc(created_at)
        self.session.add(profile)
        self.session.flush()
        return profile

    def set_notification_style(self, style: str) -> UserProfile:
        if style not in NOTIFICATION_STYLES:
            raise ValueError(f"Unknown notification style {style}")
        profile = self.get_or_create()
        profile.notification_style = style
        self.session.flush()
        return profile

    def mark_opened(self, date_local: str) -> UserProfile:
        profile = self.get_or_create()
        profile.last_opened_on = date_local
        self.session.flush()
        return profile
