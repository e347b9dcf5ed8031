# employee_api/api/controller.py
"""
Employee mutation controller.

Every operation that receives a freshly stored profile picture owns it until
the record referencing it is committed: any failure before that point deletes
the file again so no upload outlives the request that brought it in.
"""
import uuid
import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from employee_api.core.database import EmployeeRepository, employee_repository
from employee_api.core.exceptions import ApiError, BadRequest, Conflict, InternalError, NotFound
from employee_api.core.uploads import UploadManager
from employee_api.models.model import Employee, RecordValidationError

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "position",
    "salary",
    "date_of_joining",
    "department",
)
UPDATABLE_FIELDS = REQUIRED_FIELDS


def parse_employee_id(employee_id: Any) -> str:
    try:
        return str(uuid.UUID(str(employee_id)))
    except ValueError:
        raise BadRequest("Invalid employee ID")


class EmployeeController:
    def __init__(
        self,
        session: AsyncSession,
        uploads: UploadManager,
        repository: EmployeeRepository = employee_repository
    ):
        self.session = session
        self.uploads = uploads
        self.repository = repository

    def _discard(self, filename: Optional[str]):
        if filename and not self.uploads.delete(filename):
            logger.warning(f"Could not remove upload {filename}")

    async def _commit(self, upload: Optional[str], action: str):
        """Commit the session, translating store failures and dropping ``upload``."""
        try:
            await self.session.flush()
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            self._discard(upload)
            logger.warning(f"{action}: unique constraint violated: {str(e.orig)}")
            raise Conflict("Employee already exists with this email")
        except SQLAlchemyError as e:
            await self.session.rollback()
            self._discard(upload)
            logger.error(f"{action} error: {str(e)}")
            raise InternalError()

    async def list(self) -> List[Employee]:
        return await self.repository.get_all(self.session)

    async def search(
        self,
        department: Optional[str] = None,
        position: Optional[str] = None
    ) -> Tuple[int, List[Employee]]:
        department = (department or "").strip()
        position = (position or "").strip()
        if not department and not position:
            raise BadRequest("Please provide department or position to search")

        employees = await self.repository.search(self.session, department or None, position or None)
        return len(employees), employees

    async def get(self, employee_id: Any) -> Employee:
        employee = await self.repository.get(self.session, parse_employee_id(employee_id))
        if not employee:
            raise NotFound("Employee not found")
        return employee

    async def create(self, fields: Dict[str, Any], profile_picture: Optional[str] = None) -> str:
        missing = [name for name in REQUIRED_FIELDS if fields.get(name) in (None, "")]
        if missing:
            self._discard(profile_picture)
            raise BadRequest(f"All fields are required: {', '.join(REQUIRED_FIELDS)}")

        if await self.repository.email_exists(self.session, str(fields["email"])):
            self._discard(profile_picture)
            raise Conflict("Employee already exists with this email")

        employee_data = {name: fields[name] for name in REQUIRED_FIELDS}
        if profile_picture:
            employee_data["profile_picture"] = profile_picture

        try:
            employee = await self.repository.create(self.session, employee_data)
        except RecordValidationError as e:
            self._discard(profile_picture)
            raise BadRequest(str(e))
        except IntegrityError as e:
            await self.session.rollback()
            self._discard(profile_picture)
            logger.warning(f"Create employee: unique constraint violated: {str(e.orig)}")
            raise Conflict("Employee already exists with this email")
        except SQLAlchemyError as e:
            await self.session.rollback()
            self._discard(profile_picture)
            logger.error(f"Create employee error: {str(e)}")
            raise InternalError()

        await self._commit(profile_picture, "Create employee")
        logger.info(f"Employee created: {employee.id}")
        return employee.id

    async def update(
        self,
        employee_id: Any,
        fields: Dict[str, Any],
        profile_picture: Optional[str] = None
    ) -> Employee:
        try:
            employee = await self.get(employee_id)
        except ApiError:
            self._discard(profile_picture)
            raise
        except SQLAlchemyError as e:
            self._discard(profile_picture)
            logger.error(f"Update employee lookup error: {str(e)}")
            raise InternalError()

        try:
            for name in UPDATABLE_FIELDS:
                if fields.get(name) is not None:
                    setattr(employee, name, fields[name])
        except RecordValidationError as e:
            await self.session.rollback()
            self._discard(profile_picture)
            raise BadRequest(str(e))

        previous_picture = None
        if profile_picture:
            previous_picture = employee.profile_picture
            employee.profile_picture = profile_picture

        await self._commit(profile_picture, "Update employee")

        if previous_picture and previous_picture != profile_picture:
            self._discard(previous_picture)

        logger.info(f"Employee updated: {employee.id}")
        return employee

    async def delete(self, employee_id: Any):
        employee = await self.get(employee_id)
        picture = employee.profile_picture

        try:
            await self.repository.delete(self.session, employee.id)
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Delete employee error: {str(e)}")
            raise InternalError()
        await self._commit(None, "Delete employee")

        if picture:
            self._discard(picture)

        logger.info(f"Employee deleted: {employee.id}")
