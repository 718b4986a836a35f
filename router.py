from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from auth import get_current_user_id
from database import get_db
from schemas import (
    BudgetCreate,
    BudgetOut,
    BudgetSummary,
    BudgetUpdate,
    Message,
    ScheduleCreate,
    ScheduleOut,
    ScheduleProgress,
    ScheduleUpdate,
)
from services import BudgetService, ScheduleService, build_patch

# Reads are not scoped to the caller: every authenticated user sees every row.
router = APIRouter(dependencies=[Depends(get_current_user_id)])


def get_schedule_service(db: Session = Depends(get_db)) -> ScheduleService:
    return ScheduleService(db)


def get_budget_service(db: Session = Depends(get_db)) -> BudgetService:
    return BudgetService(db)


@router.get("/schedules", response_model=list[ScheduleOut], tags=["schedules"])
def list_schedules(service: ScheduleService = Depends(get_schedule_service)):
    return service.list()


@router.get("/schedules/progress", response_model=ScheduleProgress, tags=["schedules"])
def schedule_progress(service: ScheduleService = Depends(get_schedule_service)):
    return service.progress()


@router.post(
    "/schedules",
    response_model=ScheduleOut,
    status_code=status.HTTP_201_CREATED,
    tags=["schedules"],
)
def create_schedule(
    body: ScheduleCreate,
    user_id: int = Depends(get_current_user_id),
    service: ScheduleService = Depends(get_schedule_service),
):
    return service.create(user_id, body)


@router.put("/schedules/{schedule_id}", response_model=ScheduleOut, tags=["schedules"])
def update_schedule(
    schedule_id: int,
    body: ScheduleUpdate,
    service: ScheduleService = Depends(get_schedule_service),
):
    return service.update(schedule_id, build_patch(body, ScheduleService.NULLABLE))


@router.delete("/schedules/{schedule_id}", response_model=Message, tags=["schedules"])
def delete_schedule(
    schedule_id: int, service: ScheduleService = Depends(get_schedule_service)
):
    service.delete(schedule_id)
    return {"message": "Schedule deleted"}


@router.get("/budgets", response_model=list[BudgetOut], tags=["budgets"])
def list_budgets(service: BudgetService = Depends(get_budget_service)):
    return service.list()


@router.get("/budgets/summary", response_model=BudgetSummary, tags=["budgets"])
def budget_summary(service: BudgetService = Depends(get_budget_service)):
    return service.summarize()


@router.post(
    "/budgets",
    response_model=BudgetOut,
    status_code=status.HTTP_201_CREATED,
    tags=["budgets"],
)
def create_budget(
    body: BudgetCreate,
    user_id: int = Depends(get_current_user_id),
    service: BudgetService = Depends(get_budget_service),
):
    return service.create(user_id, body)


@router.put("/budgets/{budget_id}", response_model=BudgetOut, tags=["budgets"])
def update_budget(
    budget_id: int,
    body: BudgetUpdate,
    service: BudgetService = Depends(get_budget_service),
):
    return service.update(budget_id, build_patch(body, BudgetService.NULLABLE))


@router.delete("/budgets/{budget_id}", response_model=Message, tags=["budgets"])
def delete_budget(budget_id: int, service: BudgetService = Depends(get_budget_service)):
    service.delete(budget_id)
    return {"message": "Budget deleted"}
