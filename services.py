"""
Schedule and budget services plus the read-only dashboard aggregates.

Services receive the request-scoped SQLAlchemy session; they never open or
close it themselves.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel
from sqlalchemy import func
from sqlalchemy.orm import Session

from database import Budget, Schedule
from errors import NotFound
from schemas import ScheduleStatus

logger = logging.getLogger(__name__)

UPCOMING_LIMIT = 5


class PatchOp(Enum):
    KEEP = "keep"
    SET = "set"
    CLEAR = "clear"


@dataclass(frozen=True)
class FieldPatch:
    op: PatchOp
    value: Any = None

    def apply(self, current):
        if self.op is PatchOp.KEEP:
            return current
        if self.op is PatchOp.CLEAR:
            return None
        return self.value


KEEP = FieldPatch(PatchOp.KEEP)
CLEAR = FieldPatch(PatchOp.CLEAR)


def set_to(value) -> FieldPatch:
    return FieldPatch(PatchOp.SET, value)


def build_patch(body: BaseModel, nullable: frozenset) -> dict[str, FieldPatch]:
    """Turn a partial update body into one directive per model field.

    Fields absent from the body are kept. An explicit null clears a nullable
    field and is ignored for the others.
    """
    patch = {}
    for name in type(body).model_fields:
        if name not in body.model_fields_set:
            patch[name] = KEEP
            continue
        value = getattr(body, name)
        if value is None:
            patch[name] = CLEAR if name in nullable else KEEP
        else:
            patch[name] = set_to(value.value if isinstance(value, Enum) else value)
    return patch


def apply_patch(row, patch: dict[str, FieldPatch]):
    for name, directive in patch.items():
        setattr(row, name, directive.apply(getattr(row, name)))
    return row


class ScheduleService:
    NULLABLE = frozenset({"due_date", "notes"})

    def __init__(self, db: Session):
        self.db = db

    def list(self):
        return (
            self.db.query(Schedule)
            .order_by(
                Schedule.due_date.asc().nulls_last(),
                Schedule.created_at.desc(),
                Schedule.id.desc(),
            )
            .all()
        )

    def get(self, schedule_id: int) -> Schedule:
        schedule = self.db.get(Schedule, schedule_id)
        if schedule is None:
            raise NotFound("Schedule not found")
        return schedule

    def create(self, user_id: int, body) -> Schedule:
        status = body.status or ScheduleStatus.PENDING
        schedule = Schedule(
            user_id=user_id,
            title=body.title,
            category=body.category.value,
            status=status.value,
            due_date=body.due_date,
            notes=body.notes or None,
        )
        self.db.add(schedule)
        self.db.commit()
        self.db.refresh(schedule)
        logger.info("Schedule %s created by user %s", schedule.id, user_id)
        return schedule

    def update(self, schedule_id: int, patch: dict[str, FieldPatch]) -> Schedule:
        schedule = apply_patch(self.get(schedule_id), patch)
        self.db.commit()
        self.db.refresh(schedule)
        return schedule

    def delete(self, schedule_id: int):
        self.db.delete(self.get(schedule_id))
        self.db.commit()
        logger.info("Schedule %s deleted", schedule_id)

    def progress(self) -> dict:
        counts = dict(
            self.db.query(Schedule.status, func.count(Schedule.id))
            .group_by(Schedule.status)
            .all()
        )
        total = sum(counts.values())
        completed = counts.get(ScheduleStatus.COMPLETED.value, 0)
        upcoming = (
            self.db.query(Schedule)
            .filter(
                Schedule.status != ScheduleStatus.COMPLETED.value,
                Schedule.due_date.isnot(None),
            )
            .order_by(
                Schedule.due_date.asc(),
                Schedule.created_at.desc(),
                Schedule.id.desc(),
            )
            .limit(UPCOMING_LIMIT)
            .all()
        )
        return {
            "total": total,
            "pending": counts.get(ScheduleStatus.PENDING.value, 0),
            "in_progress": counts.get(ScheduleStatus.IN_PROGRESS.value, 0),
            "completed": completed,
            "completion_rate": round(completed * 100 / total) if total else 0,
            "upcoming": upcoming,
        }


class BudgetService:
    NULLABLE = frozenset({"notes"})

    def __init__(self, db: Session):
        self.db = db

    def list(self):
        return (
            self.db.query(Budget)
            .order_by(Budget.category.asc(), Budget.created_at.desc(), Budget.id.desc())
            .all()
        )

    def get(self, budget_id: int) -> Budget:
        budget = self.db.get(Budget, budget_id)
        if budget is None:
            raise NotFound("Budget not found")
        return budget

    def create(self, user_id: int, body) -> Budget:
        budget = Budget(
            user_id=user_id,
            category=body.category,
            item_name=body.item_name,
            budget_amount=body.budget_amount or 0,
            actual_amount=body.actual_amount or 0,
            is_paid=bool(body.is_paid),
            notes=body.notes or None,
        )
        self.db.add(budget)
        self.db.commit()
        self.db.refresh(budget)
        logger.info("Budget item %s created by user %s", budget.id, user_id)
        return budget

    def update(self, budget_id: int, patch: dict[str, FieldPatch]) -> Budget:
        budget = apply_patch(self.get(budget_id), patch)
        self.db.commit()
        self.db.refresh(budget)
        return budget

    def delete(self, budget_id: int):
        self.db.delete(self.get(budget_id))
        self.db.commit()
        logger.info("Budget item %s deleted", budget_id)

    def summarize(self) -> dict:
        # Recomputed on every call; categories without rows never show up.
        rows = (
            self.db.query(
                Budget.category,
                func.sum(Budget.budget_amount).label("budget"),
                func.sum(Budget.actual_amount).label("actual"),
            )
            .group_by(Budget.category)
            .order_by(func.min(Budget.id))
            .all()
        )
        total_budget, total_actual = self.db.query(
            func.coalesce(func.sum(Budget.budget_amount), 0),
            func.coalesce(func.sum(Budget.actual_amount), 0),
        ).one()
        return {
            "total_budget": int(total_budget),
            "total_actual": int(total_actual),
            "by_category": [
                {"category": row.category, "budget": int(row.budget), "actual": int(row.actual)}
                for row in rows
            ],
        }
