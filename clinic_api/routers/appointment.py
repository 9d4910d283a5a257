from datetime import date
from typing import Optional

from fastapi import APIRouter, Query

from clinic_api.dependencies import AppointmentServiceDep, PageQuery
from clinic_api.models.appointment import (
    TIME_SLOTS,
    TREATMENTS,
    AppointmentCreate,
    AppointmentPublic,
    AppointmentStatus,
    AppointmentUpdate,
    ConfirmRequest,
    TreatmentType,
)
from clinic_api.models.common import Priority

router = APIRouter(prefix="/api/appointment", tags=["appointments"])


@router.post("", status_code=201)
async def book_appointment(data: AppointmentCreate, service: AppointmentServiceDep):
    """Book an appointment (public booking form)"""
    appointment = await service.create(data)
    return {
        "success": True,
        "message": "Appointment request submitted successfully! We will contact you within 24 hours to confirm.",
        "data": AppointmentPublic.from_appointment(appointment).model_dump(by_alias=True, mode="json"),
    }


@router.get("")
async def list_appointments(
    service: AppointmentServiceDep,
    params: PageQuery,
    status: Optional[AppointmentStatus] = None,
    priority: Optional[Priority] = None,
    treatment_type: Optional[TreatmentType] = Query(None, alias="treatmentType"),
    date_from: Optional[date] = Query(None, alias="dateFrom"),
    date_to: Optional[date] = Query(None, alias="dateTo"),
):
    """List appointments, soonest preferred date first"""
    result = await service.list(
        page=params.page,
        limit=params.limit,
        status=status.value if status else None,
        priority=priority.value if priority else None,
        treatment_type=treatment_type.value if treatment_type else None,
        date_from=date_from,
        date_to=date_to,
        search=params.search,
    )
    return {
        "success": True,
        "data": {
            "appointments": result.items,
            "pagination": result.pagination.model_dump(by_alias=True),
        },
    }


@router.get("/treatments")
async def get_treatments():
    """Treatment types and time slots offered by the booking form"""
    return {"success": True, "data": {"treatments": TREATMENTS, "timeSlots": TIME_SLOTS}}


@router.get("/stats/summary")
async def get_appointment_stats(service: AppointmentServiceDep):
    return {"success": True, "data": await service.stats()}


@router.get("/{appointment_id}")
async def get_appointment(appointment_id: str, service: AppointmentServiceDep):
    appointment = await service.get(appointment_id)
    return {"success": True, "data": appointment.to_public()}


@router.put("/{appointment_id}")
async def update_appointment(appointment_id: str, data: AppointmentUpdate, service: AppointmentServiceDep):
    """Update status, scheduling or admin fields"""
    appointment = await service.update(appointment_id, data)
    return {
        "success": True,
        "message": "Appointment updated successfully",
        "data": appointment.to_public(),
    }


@router.delete("/{appointment_id}")
async def delete_appointment(appointment_id: str, service: AppointmentServiceDep):
    await service.delete(appointment_id)
    return {"success": True, "message": "Appointment deleted successfully"}


@router.post("/{appointment_id}/confirm")
async def confirm_appointment(
    appointment_id: str,
    service: AppointmentServiceDep,
    data: Optional[ConfirmRequest] = None,
):
    """Confirm an appointment and email the patient"""
    appointment = await service.confirm(appointment_id, data or ConfirmRequest())
    return {
        "success": True,
        "message": "Appointment confirmed and confirmation email sent to patient.",
        "data": appointment.to_public(),
    }
