"""
StackIt Backend — Tag Accounting Service
=========================================

What:  Resolves tag names to Tag rows and keeps `usage_count` in step with the
       questions that reference each tag.
Why:   Tags are created implicitly on first use; the counter feeds "popular
       tags" views owned by another service.
How:   Both directions are single statements:
           acquire  INSERT ... ON CONFLICT (name) DO UPDATE usage_count + 1
           release  UPDATE ... SET usage_count - 1 WHERE usage_count > 0
       so concurrent question writes cannot lose an increment and the counter
       never goes negative.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Iterable, List

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import insert_for
from app.exceptions import ValidationError
from app.models.tag import Tag

logger = logging.getLogger(__name__)

_TAG_PATTERN = re.compile(r"^[a-z0-9-]+$")


class TagService:

    def normalize(self, names: Iterable[str]) -> List[str]:
        """
        Lower-case, strip and de-duplicate tag names, preserving order.

        Raises:
            ValidationError: A name is too short/long or has characters outside
                             letters, digits and hyphens.
        """
        seen: List[str] = []
        for raw in names:
            name = raw.strip().lower()
            if not (settings.tag_name_min <= len(name) <= settings.tag_name_max):
                raise ValidationError(
                    message=(
                        f"Each tag must be between {settings.tag_name_min} and "
                        f"{settings.tag_name_max} characters"
                    ),
                    field="tags",
                    context={"tag": raw},
                )
            if not _TAG_PATTERN.match(name):
                raise ValidationError(
                    message="Tags can only contain letters, numbers, and hyphens",
                    field="tags",
                    context={"tag": raw},
                )
            if name not in seen:
                seen.append(name)
        return seen

    async def acquire(self, db: AsyncSession, names: List[str]) -> List[Tag]:
        """Find-or-create each tag and bump its usage counter by one."""
        if not names:
            return []
        now = datetime.now(timezone.utc)
        for name in names:
            stmt = insert_for(db, Tag).values(name=name, usage_count=1, last_used=now, synonyms=[])
            stmt = stmt.on_conflict_do_update(
                index_elements=["name"],
                set_={"usage_count": Tag.usage_count + 1, "last_used": now},
            )
            await db.execute(stmt)

        result = await db.execute(
            select(Tag).where(Tag.name.in_(names)).execution_options(populate_existing=True)
        )
        by_name = {tag.name: tag for tag in result.scalars().all()}
        return [by_name[name] for name in names]

    async def release(self, db: AsyncSession, names: List[str]) -> None:
        """Drop one usage from each tag, stopping at zero."""
        if not names:
            return
        await db.execute(
            update(Tag)
            .where(Tag.name.in_(names), Tag.usage_count > 0)
            .values(usage_count=Tag.usage_count - 1)
            .execution_options(synchronize_session=False)
        )
        logger.debug("Released tags %s", names)


# ── Singleton Instance ────────────────────────────────────────────────────
tag_service = TagService()
