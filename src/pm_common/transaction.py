"""Transaction boundary shared by all application services.

The CALLER owns the session; services wrap each atomic unit in ``atomic(db)``:
commit on success, roll back on any error. Business errors (AppError) are
re-raised unchanged; driver/persistence failures surface as InternalError so
only the single operation fails.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.errors import AppError, InternalError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def atomic(db: AsyncSession, operation: str) -> AsyncIterator[AsyncSession]:
    try:
        yield db
        await db.commit()
    except AppError:
        await db.rollback()
        raise
    except SQLAlchemyError:
        logger.exception("Persistence failure during %s, rolled back", operation)
        await db.rollback()
        raise InternalError(f"{operation} failed, no changes were applied") from None
    except Exception:
        await db.rollback()
        raise
