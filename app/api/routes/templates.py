"""
Template API Routes
List stored templates
"""

from fastapi import APIRouter, Depends, HTTPException
from typing import List

from app.api.dependencies import get_template_repository
from app.domain.models import TemplateType
from app.domain.schemas.recommendation import TemplateResponse
from app.infrastructure.db.repositories.template_repository import SqlTemplateRepository

router = APIRouter()


@router.get("/{template_type}", response_model=List[TemplateResponse])
async def list_templates(
    template_type: str,
    repository: SqlTemplateRepository = Depends(get_template_repository)
):
    """Get all stored templates of a type"""
    try:
        parsed = TemplateType.parse(template_type)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    templates = await repository.all(parsed)
    return [TemplateResponse.from_domain(t) for t in templates]
