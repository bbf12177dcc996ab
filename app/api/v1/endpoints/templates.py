from typing import Annotated, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status

from app.api.v1.errors import to_http_exception
from app.core.auth import get_current_user, require_admin
from app.core.exceptions import AppError
from app.dependencies import get_template_service, get_user_agent
from app.schemas.auth import UserSession
from app.schemas.templates import (
    TemplateCreate,
    TemplateCustomizeRequest,
    TemplateResponse,
    UserTemplateResponse,
)
from app.services.template_service import TemplateService

router = APIRouter()

CurrentUser = Annotated[UserSession, Depends(get_current_user)]
Templates = Annotated[TemplateService, Depends(get_template_service)]


@router.get(
    "",
    response_model=List[TemplateResponse],
    summary="List public templates",
    operation_id="list_templates",
)
async def list_templates(current_user: CurrentUser, templates: Templates) -> List[TemplateResponse]:
    return await templates.list_templates()


# Declared before "/{template_id}" so "mine" is not parsed as an id
@router.get(
    "/mine",
    response_model=List[UserTemplateResponse],
    summary="List the caller's customized templates",
    operation_id="list_user_templates",
)
async def list_user_templates(current_user: CurrentUser, templates: Templates) -> List[UserTemplateResponse]:
    return await templates.list_user_templates(current_user)


@router.get(
    "/{template_id}",
    response_model=TemplateResponse,
    summary="Get a template",
    operation_id="get_template",
)
async def get_template(template_id: UUID, current_user: CurrentUser, templates: Templates) -> TemplateResponse:
    try:
        return await templates.get_template(current_user, template_id)
    except AppError as e:
        raise to_http_exception(e) from e


@router.post(
    "",
    response_model=TemplateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a template (admin)",
    operation_id="create_template",
)
async def create_template(
    data: TemplateCreate,
    admin: Annotated[UserSession, Depends(require_admin)],
    templates: Templates,
) -> TemplateResponse:
    try:
        return await templates.create_template(admin, data)
    except AppError as e:
        raise to_http_exception(e) from e


@router.post(
    "/{template_id}/customize",
    response_model=UserTemplateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Fill a template and save the copy",
    operation_id="customize_template",
)
async def customize_template(
    template_id: UUID,
    request: TemplateCustomizeRequest,
    current_user: CurrentUser,
    templates: Templates,
    user_agent: Annotated[Optional[str], Depends(get_user_agent)],
) -> UserTemplateResponse:
    try:
        return await templates.customize_template(current_user, template_id, request, user_agent)
    except AppError as e:
        raise to_http_exception(e) from e
