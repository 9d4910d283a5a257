from fastapi import APIRouter, BackgroundTasks
from fastapi.responses import JSONResponse

from clinic_api.dependencies import EmailServiceDep, PageQuery, SubscriberServiceDep
from clinic_api.models.subscriber import SubscriberCreate
from clinic_api.services.email_templates import Scenario

router = APIRouter(prefix="/api/subscriber", tags=["subscribers"])


@router.post("", status_code=201)
async def subscribe(
    data: SubscriberCreate,
    background_tasks: BackgroundTasks,
    service: SubscriberServiceDep,
    email_service: EmailServiceDep,
):
    """Newsletter signup; subscribing twice is not an error"""
    subscriber, created = await service.subscribe(data)
    if not created:
        return JSONResponse(status_code=200, content={"success": True, "message": "You are already subscribed."})

    # sent after the response; failures are only logged
    background_tasks.add_task(
        email_service.notify, Scenario.SUBSCRIPTION_CONFIRMATION, {"email": subscriber.email}
    )
    return {"success": True, "message": "Subscribed successfully."}


@router.get("")
async def list_subscribers(service: SubscriberServiceDep, params: PageQuery):
    result = await service.list(page=params.page, limit=params.limit, search=params.search)
    return {
        "success": True,
        "message": "Subscribers retrieved successfully",
        "data": {
            "subscribers": result.items,
            "pagination": result.pagination.model_dump(by_alias=True),
        },
    }
