from typing import Optional

from fastapi import APIRouter

from clinic_api.dependencies import ContactServiceDep, PageQuery
from clinic_api.models.common import Priority
from clinic_api.models.contact import ContactCreate, ContactPublic, ContactStatus, ContactUpdate

router = APIRouter(prefix="/api/contact", tags=["contacts"])


@router.post("", status_code=201)
async def submit_contact(data: ContactCreate, service: ContactServiceDep):
    """Contact form submission"""
    contact = await service.create(data)
    return {
        "success": True,
        "message": "Thank you for your message! We will get back to you soon.",
        "data": ContactPublic.model_validate(contact.model_dump()).model_dump(by_alias=True, mode="json"),
    }


@router.get("")
async def list_contacts(
    service: ContactServiceDep,
    params: PageQuery,
    status: Optional[ContactStatus] = None,
    priority: Optional[Priority] = None,
):
    """List contact messages, newest first"""
    result = await service.list(
        page=params.page,
        limit=params.limit,
        status=status.value if status else None,
        priority=priority.value if priority else None,
        search=params.search,
    )
    return {
        "success": True,
        "data": {
            "contacts": result.items,
            "pagination": result.pagination.model_dump(by_alias=True),
        },
    }


@router.get("/stats/summary")
async def get_contact_stats(service: ContactServiceDep):
    return {"success": True, "data": await service.stats()}


@router.get("/{contact_id}")
async def get_contact(contact_id: str, service: ContactServiceDep):
    contact = await service.get(contact_id)
    return {"success": True, "data": contact.to_public()}


@router.put("/{contact_id}")
async def update_contact(contact_id: str, data: ContactUpdate, service: ContactServiceDep):
    contact = await service.update(contact_id, data)
    return {
        "success": True,
        "message": "Contact updated successfully",
        "data": contact.to_public(),
    }


@router.delete("/{contact_id}")
async def delete_contact(contact_id: str, service: ContactServiceDep):
    await service.delete(contact_id)
    return {"success": True, "message": "Contact deleted successfully"}
