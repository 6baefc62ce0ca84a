"""
Template Repository
Read access for the recommendation engine, upsert for template import
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Optional, List

from app.infrastructure.db.models import TemplateModel
from app.domain.models import MarketConditions, Template, TemplateType
from app.domain.services.template_resolver import TemplateFilter


class SqlTemplateRepository:
    """Repository for strategy templates"""

    def __init__(self, session: AsyncSession):
        """Initialize with database session"""
        self.session = session

    async def find(self, template_type: TemplateType, predicate: TemplateFilter) -> List[Template]:
        """
        Get templates matching a predicate

        Args:
            template_type: ATM or FLAZH
            predicate: Condition filter

        Returns:
            Templates in natural (id) order
        """
        result = await self.session.execute(self._query(template_type, predicate))
        return [self._to_domain(m) for m in result.scalars().all()]

    async def find_one(self, template_type: TemplateType, predicate: TemplateFilter) -> Optional[Template]:
        """Get the first template matching a predicate"""
        result = await self.session.execute(self._query(template_type, predicate).limit(1))
        model = result.scalar_one_or_none()

        return self._to_domain(model) if model else None

    async def all(self, template_type: TemplateType) -> List[Template]:
        """Get all templates of a type"""
        return await self.find(template_type, TemplateFilter())

    async def get_by_name(self, template_type: TemplateType, name: str) -> Optional[Template]:
        """Get template by its (type, name) identity"""
        result = await self.session.execute(
            select(TemplateModel).where(
                TemplateModel.template_type == template_type,
                TemplateModel.name == name,
            )
        )
        model = result.scalar_one_or_none()

        return self._to_domain(model) if model else None

    async def upsert_by_name(self, template: Template) -> int:
        """
        Insert a template or update the existing one with the same name

        Args:
            template: Template domain object (id ignored)

        Returns:
            ID of stored template
        """
        result = await self.session.execute(
            select(TemplateModel).where(
                TemplateModel.template_type == template.template_type,
                TemplateModel.name == template.name,
            )
        )
        model = result.scalar_one_or_none()

        if model is None:
            model = TemplateModel(template_type=template.template_type, name=template.name)
            self.session.add(model)

        tags = template.conditions
        model.session = tags.session
        model.volatility = tags.volatility
        model.day_of_week = tags.day_of_week
        model.trend = tags.trend
        model.volume = tags.volume
        model.description = template.description
        model.parameters = dict(template.parameters)

        await self.session.flush()

        return model.id

    @staticmethod
    def _query(template_type: TemplateType, predicate: TemplateFilter):
        query = select(TemplateModel).where(TemplateModel.template_type == template_type)

        if predicate.session is not None:
            query = query.where(TemplateModel.session == predicate.session)
        if predicate.volatility is not None:
            query = query.where(TemplateModel.volatility == predicate.volatility)
        if predicate.day_of_week is not None:
            query = query.where(TemplateModel.day_of_week == predicate.day_of_week)
        if predicate.unscheduled_only:
            query = query.where(TemplateModel.day_of_week.is_(None))

        return query.order_by(TemplateModel.id)

    @staticmethod
    def _to_domain(model: TemplateModel) -> Template:
        """Convert ORM model to domain object"""
        return Template(
            id=model.id,
            template_type=model.template_type,
            name=model.name,
            conditions=MarketConditions(
                session=model.session,
                volatility=model.volatility,
                day_of_week=model.day_of_week,
                trend=model.trend,
                volume=model.volume,
            ),
            parameters=dict(model.parameters or {}),
            description=model.description,
        )
