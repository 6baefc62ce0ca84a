"""
Template Seeding
Load template definitions from YAML and upsert them by name
"""

import yaml
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.models import (
    DayOfWeek,
    MarketConditions,
    Template,
    TemplateType,
    TradingSession,
    Trend,
    VolatilityLevel,
    VolumeLevel,
)
from app.infrastructure.db.repositories.template_repository import SqlTemplateRepository

logger = logging.getLogger(__name__)


def _enum_or_none(enum_cls, value: Any):
    if value is None:
        return None
    try:
        return enum_cls(str(value).strip().upper())
    except ValueError:
        raise ValueError(f"Invalid {enum_cls.__name__} value: {value!r}") from None


def template_from_dict(data: Dict[str, Any]) -> Template:
    """
    Build a Template from a seed entry

    Missing condition tags stay None (wildcard).

    Raises:
        ValueError: Unknown type, bad tag value or missing name
    """
    conditions: Dict[str, Any] = data.get("conditions") or {}

    return Template(
        id=None,
        template_type=TemplateType.parse(data.get("type")),
        name=str(data.get("name") or ""),
        description=data.get("description"),
        conditions=MarketConditions(
            session=_enum_or_none(TradingSession, conditions.get("session")),
            volatility=_enum_or_none(VolatilityLevel, conditions.get("volatility")),
            day_of_week=_enum_or_none(DayOfWeek, conditions.get("day_of_week")),
            trend=_enum_or_none(Trend, conditions.get("trend")),
            volume=_enum_or_none(VolumeLevel, conditions.get("volume")),
        ),
        parameters=dict(data.get("parameters") or {}),
    )


def load_template_seeds(path: Path) -> List[Template]:
    """
    Parse a templates YAML file

    Raises:
        FileNotFoundError: File missing
        ValueError: Malformed entries
    """
    if not path.exists():
        raise FileNotFoundError(f"Template seed file not found: {path}")

    with open(path, 'r') as f:
        data = yaml.safe_load(f) or {}

    entries = data.get("templates")
    if not isinstance(entries, list):
        raise ValueError("Seed file must contain a 'templates' list")

    return [template_from_dict(entry) for entry in entries]


async def seed_templates(
    session: AsyncSession,
    templates: List[Template],
    repository: Optional[SqlTemplateRepository] = None
) -> int:
    """
    Upsert templates by (type, name)

    Returns:
        Number of templates written
    """
    repository = repository or SqlTemplateRepository(session)

    for template in templates:
        template_id = await repository.upsert_by_name(template)
        logger.info(f"Seeded {template.template_type.value} template '{template.name}' (id={template_id})")

    return len(templates)
