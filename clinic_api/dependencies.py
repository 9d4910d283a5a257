"""
FastAPI dependency injection functions
These are reusable dependencies that can be injected into route handlers
"""
from typing import Annotated, Optional

from fastapi import Depends, Query, Request

from clinic_api.config import Settings
from clinic_api.services.appointment_service import AppointmentService
from clinic_api.services.blog_service import BlogService
from clinic_api.services.contact_service import ContactService
from clinic_api.services.database_service import DatabaseService
from clinic_api.services.email_service import EmailService
from clinic_api.services.subscriber_service import SubscriberService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_database(request: Request) -> DatabaseService:
    """The DatabaseService opened by the app lifespan"""
    return request.app.state.database


def get_email_service(request: Request) -> EmailService:
    return request.app.state.email_service


def get_appointment_service(
    database: DatabaseService = Depends(get_database),
    email_service: EmailService = Depends(get_email_service),
    settings: Settings = Depends(get_settings),
) -> AppointmentService:
    return AppointmentService(database, email_service, settings)


def get_contact_service(
    database: DatabaseService = Depends(get_database),
    email_service: EmailService = Depends(get_email_service),
    settings: Settings = Depends(get_settings),
) -> ContactService:
    return ContactService(database, email_service, settings)


def get_blog_service(database: DatabaseService = Depends(get_database)) -> BlogService:
    return BlogService(database)


def get_subscriber_service(database: DatabaseService = Depends(get_database)) -> SubscriberService:
    return SubscriberService(database)


class PageParams:
    """
    page / limit / search query parameters shared by every list endpoint

    Usage:
        @router.get("/")
        async def list_items(params: PageQuery):
            ...
    """

    def __init__(
        self,
        page: int = Query(1, ge=1),
        limit: int = Query(10, ge=1, le=100),
        search: Optional[str] = Query(None, max_length=100),
    ):
        self.page = page
        self.limit = limit
        self.search = search.strip() if search else None


# Type aliases for cleaner route signatures
AppointmentServiceDep = Annotated[AppointmentService, Depends(get_appointment_service)]
ContactServiceDep = Annotated[ContactService, Depends(get_contact_service)]
BlogServiceDep = Annotated[BlogService, Depends(get_blog_service)]
SubscriberServiceDep = Annotated[SubscriberService, Depends(get_subscriber_service)]
EmailServiceDep = Annotated[EmailService, Depends(get_email_service)]
PageQuery = Annotated[PageParams, Depends()]
