"""Contract templates and users' customized copies."""

import re
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import TemplateNotFoundError
from app.database.enums import AuditAction
from app.repositories.template_repository import TemplateRepository, UserTemplateRepository
from app.schemas.auth import UserSession
from app.schemas.templates import (
    TemplateCreate,
    TemplateCustomizeRequest,
    TemplateResponse,
    UserTemplateResponse,
)
from app.services.audit_service import AuditService
from app.services.query_cache import QueryCache, query_cache
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)

PLACEHOLDER = re.compile(r"\{\{(\w+)\}\}")


def fill_template(content: str, values: Dict[str, str]) -> str:
    """Substitute ``{{name}}`` placeholders.

    A placeholder is replaced only when ``values`` has a non-empty entry
    for it; otherwise it is left verbatim.
    """
    return PLACEHOLDER.sub(lambda match: values.get(match.group(1)) or match.group(0), content)


class TemplateService:
    """Cache keys: ``("templates",)``, ``("template", id)`` and
    ``("user-templates", user_id)``."""

    def __init__(self, session: AsyncSession, cache: QueryCache = query_cache):
        self.template_repo = TemplateRepository(session)
        self.user_template_repo = UserTemplateRepository(session)
        self.audit_service = AuditService(session, cache)
        self.cache = cache

    async def list_templates(self) -> List[TemplateResponse]:
        async def load() -> List[TemplateResponse]:
            templates = await self.template_repo.list_public()
            return [TemplateResponse.model_validate(template) for template in templates]

        return await self.cache.get_or_load(("templates",), load)

    async def get_template(self, user: UserSession, template_id: UUID) -> TemplateResponse:
        """Raises TemplateNotFoundError unless public or authored by the caller."""
        async def load() -> TemplateResponse:
            template = await self.template_repo.get_visible(template_id, user.user_id)
            if template is None:
                raise TemplateNotFoundError("Template not found")
            return TemplateResponse.model_validate(template)

        template = await self.cache.get_or_load(("template", template_id), load)
        if not template.is_public and template.created_by != user.user_id:
            raise TemplateNotFoundError("Template not found")
        return template

    async def create_template(self, user: UserSession, data: TemplateCreate) -> TemplateResponse:
        template = await self.template_repo.create(
            **data.model_dump(exclude={"variables"}),
            variables=[variable.model_dump() for variable in data.variables],
            created_by=user.user_id,
        )
        self.cache.invalidate(("templates",))
        LOGGER.info(f"Template '{template.name}' created by {user.user_id}")
        return TemplateResponse.model_validate(template)

    async def list_user_templates(self, user: UserSession) -> List[UserTemplateResponse]:
        async def load() -> List[UserTemplateResponse]:
            saved = await self.user_template_repo.list_for_user(user.user_id)
            return [UserTemplateResponse.model_validate(item) for item in saved]

        return await self.cache.get_or_load(("user-templates", user.user_id), load)

    async def create_user_template(
        self,
        user: UserSession,
        template_id: Optional[UUID],
        name: str,
        content: str,
        variables_filled: Dict[str, str],
    ) -> UserTemplateResponse:
        saved = await self.user_template_repo.create(
            user_id=user.user_id,
            template_id=template_id,
            name=name,
            content=content,
            variables_filled=variables_filled,
        )
        self.cache.invalidate(("user-templates",))
        return UserTemplateResponse.model_validate(saved)

    async def customize_template(
        self,
        user: UserSession,
        template_id: UUID,
        request: TemplateCustomizeRequest,
        user_agent: Optional[str] = None,
    ) -> UserTemplateResponse:
        """Fill a template, save the result for the caller and audit it."""
        template = await self.get_template(user, template_id)
        content = fill_template(template.content, request.values)

        saved = await self.create_user_template(
            user,
            template_id=template.id,
            name=request.name or f"{template.name} - Custom",
            content=content,
            variables_filled=request.values,
        )
        await self.audit_service.record(
            user,
            AuditAction.TEMPLATE_GENERATED,
            details={"template_name": template.name},
            user_agent=user_agent,
        )
        return saved
