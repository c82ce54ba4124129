from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from packages.db.database import Base


class UrgeEvent(Base):
    __tablename__ = "urge_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    date_local: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    from_screen: Mapped[str] = mapped_column(Text, nullable=False, default="panic")
    urge_level: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    protocol_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    urge_kind: Mapped[str] = mapped_column(Text, nullable=False)
    action_type: Mapped[str] = mapped_column(Text, nullable=False, default="general")
    action_id: Mapped[str] = mapped_column(Text, nullable=False, default="")
    outcome: Mapped[str] = mapped_column(Text, nullable=False)
    trigger_tag: Mapped[str | None] = mapped_column(Text, nullable=True)
    spend_category: Mapped[str | None] = mapped_column(Text, nullable=True)
    spend_item_type: Mapped[str | None] = mapped_column(Text, nullable=True)


class Progress(Base):
    __tablename__ = "progress"

    date_local: Mapped[str] = mapped_column(Text, primary_key=True)
    streak_current: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    meditation_count_total: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    meditation_rank: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    last_success_date: Mapped[str | None] = mapped_column(Text, nullable=True)
    spend_avoided_count_total: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class SubscriptionState(Base):
    __tablename__ = "subscription_state"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="none")
    product_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    period: Mapped[str | None] = mapped_column(Text, nullable=True)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    trial_started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    trial_ends_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_premium: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class UserProfile(Base):
    __tablename__ = "user_profile"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    locale: Mapped[str] = mapped_column(Text, nullable=False, default="en")
    notification_style: Mapped[str] = mapped_column(Text, nullable=False, default="normal")
    goal_type: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_opened_on: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class ContentItem(Base):
    __tablename__ = "content"

    content_id: Mapped[str] = mapped_column(Text, primary_key=True)
    day_index: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    action_text: Mapped[str] = mapped_column(Text, nullable=False)
    est_minutes: Mapped[int] = mapped_column(Integer, nullable=False)


class ContentCompletion(Base):
    __tablename__ = "content_progress"

    content_id: Mapped[str] = mapped_column(Text, primary_key=True)
    completed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    date_local: Mapped[str] = mapped_column(Text, nullable=False, index=True)


class DailyCheckin(Base):
    __tablename__ = "daily_checkin"

    date_local: Mapped[str] = mapped_column(Text, primary_key=True)
    mood: Mapped[int] = mapped_column(Integer, nullable=False)
    fatigue: Mapped[int] = mapped_column(Integer, nullable=False)
    urge: Mapped[int] = mapped_column(Integer, nullable=False)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    opened_at_night: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    spent_today: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    # Integer cents.
    spent_amount: Mapped[int | None] = mapped_column(Integer, nullable=True)
