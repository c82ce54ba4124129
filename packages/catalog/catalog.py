from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

SEED_DIR = Path(__file__).resolve().parent / "seed"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class CatalogTrigger(_Frozen):
    id: str
    label: str


class CatalogAction(_Frozen):
    id: str
    title: str
    minutes: int
    steps: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()

    @property
    def action_type(self) -> str:
        return self.tags[0] if self.tags else "general"


class CatalogOption(_Frozen):
    id: str
    label: str


class SpendDelayCard(_Frozen):
    id: str
    title: str
    body: str
    action_id: str = Field(alias="ctaActionId")


class Catalog(_Frozen):
    version: str
    triggers: tuple[CatalogTrigger, ...]
    actions: tuple[CatalogAction, ...]
    urge_kinds: tuple[CatalogOption, ...] = Field(alias="urgeKinds")
    spend_categories: tuple[CatalogOption, ...] = Field(alias="spendCategories")
    spend_item_types: tuple[CatalogOption, ...] = Field(alias="spendItemTypes")
    spend_delay_cards: tuple[SpendDelayCard, ...] = Field(alias="spendDelayCards", default=())

    @field_validator("actions")
    @classmethod
    def validate_actions(cls, value: tuple[CatalogAction, ...]) -> tuple[CatalogAction, ...]:
        ids = [action.id for action in value]
        if len(ids) != len(set(ids)):
            raise ValueError("Duplicate action id")
        return value

    def find_action(self, action_id: str | None) -> CatalogAction | None:
        if not action_id:
            return None
        for action in self.actions:
            if action.id == action_id:
                return action
        return None

    def has_trigger(self, trigger_id: str) -> bool:
        return any(trigger.id == trigger_id for trigger in self.triggers)


class StarterDay(_Frozen):
    content_id: str = Field(alias="contentId")
    day_index: int = Field(alias="dayIndex")
    title: str
    body: str
    action_text: str = Field(alias="actionText")
    est_minutes: int = Field(alias="estMinutes")
    recommended_action_ids: tuple[str, ...] = Field(alias="recommendedActionIds", default=())


class StarterCourse(_Frozen):
    course_id: str = Field(alias="courseId")
    days: tuple[StarterDay, ...]


def load_catalog(path: Path | None = None) -> Catalog:
    source = path or SEED_DIR / "catalog.json"
    return Catalog.model_validate(json.loads(source.read_text(encoding="utf-8")))


def load_starter_course(path: Path | None = None) -> StarterCourse:
    source = path or SEED_DIR / "starter_7d.json"
    return StarterCourse.model_validate(json.loads(source.read_text(encoding="utf-8")))
