# employee_api/core/database.py
import logging
from typing import Dict, List, Any, Optional, TypeVar, Generic

from fastapi import Request
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlalchemy.future import select
from sqlalchemy.sql import delete, func, or_

from employee_api.core.config import Settings
from employee_api.core.exceptions import ApiError
from employee_api.models.model import Base, Employee, User

logger = logging.getLogger(__name__)

T = TypeVar('T')


class Database:
    """Owns the async engine and the session factory."""

    def __init__(self, url: str, echo: bool = False, pool_size: int = 20, max_overflow: int = 10):
        engine_options: Dict[str, Any] = {"echo": echo, "pool_pre_ping": True}
        if not url.startswith("sqlite"):
            engine_options.update(pool_size=pool_size, max_overflow=max_overflow)

        self.engine = create_async_engine(url, **engine_options)
        self.session_factory = sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(
            settings.DATABASE_URL,
            echo=settings.SQL_ECHO,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
        )

    async def init_db(self):
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except Exception as e:
            logger.error(f"Database initialization error: {str(e)}")
            raise

        logger.info("Database ready")

    async def close(self):
        await self.engine.dispose()
        logger.info("Database connections closed")


async def get_db(request: Request):
    session = request.app.state.database.session_factory()
    try:
        yield session
        await session.commit()
    except Exception as e:
        await session.rollback()
        if not isinstance(e, ApiError):
            logger.error(f"DB session error: {str(e)}")
        raise
    finally:
        await session.close()


class Repository(Generic[T]):
    def __init__(self, model_class):
        self.model_class = model_class

    async def create(self, session: AsyncSession, obj_data: Dict[str, Any]) -> T:
        db_obj = self.model_class(**obj_data)
        session.add(db_obj)
        await session.flush()
        await session.refresh(db_obj)
        return db_obj

    async def get(self, session: AsyncSession, id_value: Any) -> Optional[T]:
        result = await session.execute(
            select(self.model_class).filter_by(id=id_value)
        )
        return result.scalars().first()

    async def get_all(self, session: AsyncSession) -> List[T]:
        query = select(self.model_class).order_by(self.model_class.created_at.desc())
        result = await session.execute(query)
        return list(result.scalars().all())

    async def delete(self, session: AsyncSession, id_value: Any) -> bool:
        result = await session.execute(
            delete(self.model_class)
            .where(self.model_class.id == id_value)
        )
        return result.rowcount > 0

    async def count(self, session: AsyncSession) -> int:
        result = await session.execute(select(func.count(self.model_class.id)))
        return result.scalar()

    async def exists(self, session: AsyncSession, **filters: Any) -> bool:
        result = await session.execute(
            select(func.count(self.model_class.id)).filter_by(**filters)
        )
        return result.scalar() > 0


class EmployeeRepository(Repository[Employee]):
    def __init__(self):
        super().__init__(Employee)

    async def email_exists(self, session: AsyncSession, email: str) -> bool:
        return await self.exists(session, email=email.strip().lower())

    async def search(
        self,
        session: AsyncSession,
        department: Optional[str] = None,
        position: Optional[str] = None
    ) -> List[Employee]:
        query = select(Employee)

        if department:
            query = query.filter(Employee.department.icontains(department, autoescape=True))
        if position:
            query = query.filter(Employee.position.icontains(position, autoescape=True))

        query = query.order_by(Employee.created_at.desc())
        result = await session.execute(query)
        return list(result.scalars().all())


class UserRepository(Repository[User]):
    def __init__(self):
        super().__init__(User)

    async def find_by_login(self, session: AsyncSession, identifier: str) -> Optional[User]:
        """Find a user by email (case-insensitive) or exact username."""
        identifier = identifier.strip()
        result = await session.execute(
            select(User).where(
                or_(User.email == identifier.lower(), User.username == identifier)
            )
        )
        return result.scalars().first()

    async def find_conflict(self, session: AsyncSession, username: str, email: str) -> Optional[User]:
        result = await session.execute(
            select(User).where(
                or_(User.email == email.strip().lower(), User.username == username.strip())
            )
        )
        return result.scalars().first()


employee_repository = EmployeeRepository()
user_repository = UserRepository()
