from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, constr
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    # Rows are snake_case, the JSON API is camelCase. Both spellings are accepted on input.
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


class ScheduleCategory(str, Enum):
    VENUE = "venue"
    PHOTO = "photo"
    DRESS = "dress"
    HONEYMOON = "honeymoon"
    INVITATION = "invitation"
    OTHER = "other"


class ScheduleStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


# Lengths match the column sizes in database.py.
ShortText = constr(strip_whitespace=True, min_length=1, max_length=50)
Name = constr(strip_whitespace=True, min_length=1, max_length=100)
NonBlank = constr(strip_whitespace=True, min_length=1, max_length=255)


class UserCreate(CamelModel):
    email: NonBlank
    password: constr(min_length=1)
    name: Name
    wedding_date: Optional[date] = None


class UserLogin(CamelModel):
    email: NonBlank
    password: constr(min_length=1)


class UserOut(CamelModel):
    id: int
    email: str
    name: str
    wedding_date: Optional[date] = None
    created_at: datetime


class AuthResponse(CamelModel):
    token: str
    user: UserOut


class ScheduleCreate(CamelModel):
    title: NonBlank
    category: ScheduleCategory
    status: Optional[ScheduleStatus] = None
    due_date: Optional[date] = None
    notes: Optional[str] = None


class ScheduleUpdate(CamelModel):
    title: Optional[NonBlank] = None
    category: Optional[ScheduleCategory] = None
    status: Optional[ScheduleStatus] = None
    due_date: Optional[date] = None
    notes: Optional[str] = None


class ScheduleOut(CamelModel):
    id: int
    user_id: int
    title: str
    category: str
    status: str
    due_date: Optional[date] = None
    notes: Optional[str] = None
    created_at: datetime


class ScheduleProgress(CamelModel):
    total: int
    pending: int
    in_progress: int
    completed: int
    completion_rate: int
    upcoming: list[ScheduleOut]


class BudgetCreate(CamelModel):
    category: ShortText
    item_name: NonBlank
    budget_amount: Optional[int] = Field(default=0, ge=0)
    actual_amount: Optional[int] = Field(default=0, ge=0)
    is_paid: Optional[bool] = False
    notes: Optional[str] = None


class BudgetUpdate(CamelModel):
    category: Optional[ShortText] = None
    item_name: Optional[NonBlank] = None
    budget_amount: Optional[int] = Field(default=None, ge=0)
    actual_amount: Optional[int] = Field(default=None, ge=0)
    is_paid: Optional[bool] = None
    notes: Optional[str] = None


class BudgetOut(CamelModel):
    id: int
    user_id: int
    category: str
    item_name: str
    budget_amount: int
    actual_amount: int
    is_paid: bool
    notes: Optional[str] = None
    created_at: datetime


class CategoryTotal(CamelModel):
    category: str
    budget: int
    actual: int


class BudgetSummary(CamelModel):
    total_budget: int
    total_actual: int
    by_category: list[CategoryTotal]


class Message(BaseModel):
    message: str
