"""Recharge reminders - list with urgency, create, dispatch due notifications"""

import logging
from typing import Literal

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from kiosk_pricing.api.dependencies import get_notification_client, get_request_id, get_today
from kiosk_pricing.api.v1.lookups import backend_errors, parse_uuid, require_customer
from kiosk_pricing.api.v1.schemas import (
    ReminderDispatchResponse,
    ReminderListResponse,
    ReminderRequest,
    ReminderSchema,
    reminder_schema,
)
from kiosk_pricing.domain.exceptions import InvalidReminderError
from kiosk_pricing.domain.models import RechargeReminder
from kiosk_pricing.domain.reminders import filter_reminders, reminder_status, schedule_reminder
from kiosk_pricing.infrastructure.clients.notifications import NotificationClient, deliver_quietly
from kiosk_pricing.infrastructure.database.repositories import ReminderRepository
from kiosk_pricing.infrastructure.database.session import get_db

router = APIRouter()


@router.get("/reminders", response_model=ReminderListResponse)
def list_reminders(
    request: Request,
    which: Literal["all", "today", "week"] = Query("all", alias="filter"),
    db: Session = Depends(get_db),
    today=Depends(get_today),
):
    """Active reminders with days remaining and urgency label, soonest first"""
    request_id = get_request_id(request)
    with backend_errors(db, request_id):
        reminders = ReminderRepository(db).list_active_reminders()

    statuses = [reminder_status(r, today) for r in reminders]

    return ReminderListResponse(
        reminders=[reminder_schema(s) for s in filter_reminders(statuses, which)],
        due_today=len(filter_reminders(statuses, "today")),
        due_this_week=len(filter_reminders(statuses, "week")),
    )


@router.post("/reminders", response_model=ReminderSchema, status_code=201)
def create_reminder(
    request_body: ReminderRequest,
    request: Request,
    db: Session = Depends(get_db),
    today=Depends(get_today),
):
    """Create a reminder; the next due date is derived from its cycle"""
    request_id = get_request_id(request)
    customer_uuid = parse_uuid(request_body.customer_id, "customer")

    try:
        reminder = schedule_reminder(
            RechargeReminder(
                customer_id=str(customer_uuid),
                phone_number=request_body.phone_number,
                last_recharge_date=request_body.last_recharge_date,
                cycle_type=request_body.cycle_type,
                cycle_day_of_month=request_body.cycle_day_of_month,
                cycle_days=request_body.cycle_days,
                remind_before_days=request_body.remind_before_days,
                contact_method=request_body.contact_method,
            )
        )
    except InvalidReminderError as e:
        raise HTTPException(status_code=422, detail=str(e))

    with backend_errors(db, request_id):
        require_customer(db, customer_uuid)
        ReminderRepository(db).create_reminder(reminder)
        db.commit()

    logging.info(
        "Reminder created",
        extra={
            "request_id": request_id,
            "customer_id": reminder.customer_id,
            "next_recharge_date": reminder.next_recharge_date.isoformat(),
        },
    )
    return reminder_schema(reminder_status(reminder, today))


@router.post("/reminders/dispatch", response_model=ReminderDispatchResponse)
def dispatch_due_reminders(
    background_tasks: BackgroundTasks,
    request: Request,
    db: Session = Depends(get_db),
    notification_client: NotificationClient = Depends(get_notification_client),
    today=Depends(get_today),
):
    """Queue a notification for every reminder inside its remind-before window"""
    request_id = get_request_id(request)
    with backend_errors(db, request_id):
        reminders = ReminderRepository(db).list_active_reminders()

    due = [s for s in (reminder_status(r, today) for r in reminders) if s.should_remind]
    for status in due:
        background_tasks.add_task(
            deliver_quietly,
            notification_client,
            {
                "event": "RECHARGE_REMINDER",
                "reminder_id": status.reminder.id,
                "customer_id": status.reminder.customer_id,
                "phone_number": status.reminder.phone_number,
                "contact_method": status.reminder.contact_method.value,
                "next_recharge_date": status.next_recharge_date.isoformat(),
                "days_remaining": status.days_remaining,
                "label": status.label.text,
            },
        )

    logging.info("Reminders dispatched", extra={"request_id": request_id, "count": len(due)})
    return ReminderDispatchResponse(dispatched=len(due))
