import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Union

import sqlalchemy.exc
from sqlalchemy.ext.asyncio import AsyncConnection

from app.repositories.base import RepositoryError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Ok:
    """A section whose data loaded; ``data`` may still be empty."""
    data: Any


@dataclass(frozen=True)
class Unavailable:
    """A section whose data could not be loaded."""
    reason: str


SectionResult = Union[Ok, Unavailable]


async def load_section(conn: AsyncConnection, name: str, loader: Callable[[], Awaitable[Any]]) -> SectionResult:
    """Run one section loader, turning a database failure into ``Unavailable``.

    The connection is rolled back after a failure so the next section starts
    clean.
    """
    try:
        return Ok(await loader())
    except (sqlalchemy.exc.SQLAlchemyError, RepositoryError) as e:
        logger.warning(f"Report section '{name}' unavailable: {e}")
        if conn.in_transaction():
            await conn.rollback()
        return Unavailable(str(e).splitlines()[0] if str(e) else e.__class__.__name__)
