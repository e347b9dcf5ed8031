import uuid
from datetime import date
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from employee_api.api.controller import EmployeeController, parse_employee_id
from employee_api.core.database import employee_repository
from employee_api.core.exceptions import BadRequest, Conflict, InternalError, NotFound


@pytest.fixture
def controller(session, uploads):
    return EmployeeController(session, uploads)


@pytest.fixture
def fields():
    return {
        "first_name": "Ada",
        "last_name": "Lovelace",
        "email": "ada@example.com",
        "position": "Analyst",
        "salary": 120000.0,
        "date_of_joining": date(2022, 3, 1),
        "department": "Engineering",
    }


def test_parse_employee_id():
    employee_id = uuid.uuid4()
    assert parse_employee_id(str(employee_id).upper()) == str(employee_id)
    with pytest.raises(BadRequest, match="Invalid employee ID"):
        parse_employee_id("abc")


class TestCreate:
    async def test_created_record_matches_fields(self, controller, fields):
        employee_id = await controller.create(dict(fields, email=" ADA@Example.com ", last_name=" Lovelace "))

        employee = await controller.get(employee_id)
        assert employee.first_name == "Ada"
        assert employee.last_name == "Lovelace"
        assert employee.email == "ada@example.com"
        assert employee.salary == 120000.0
        assert employee.date_of_joining == date(2022, 3, 1)
        assert employee.profile_picture is None

    async def test_attaches_profile_picture(self, controller, fields, uploads, stored_picture):
        filename = stored_picture()
        employee_id = await controller.create(fields, filename)

        employee = await controller.get(employee_id)
        assert employee.profile_picture == filename
        assert uploads.exists(filename)

    async def test_missing_field_deletes_upload(self, controller, session, fields, uploads, stored_picture):
        filename = stored_picture()
        del fields["department"]

        with pytest.raises(BadRequest, match="All fields are required"):
            await controller.create(fields, filename)

        assert not uploads.exists(filename)
        assert await employee_repository.count(session) == 0

    async def test_duplicate_email_conflicts(self, controller, session, fields, uploads, stored_picture):
        await controller.create(fields)
        filename = stored_picture()

        with pytest.raises(Conflict):
            await controller.create(dict(fields, email="ADA@example.com"), filename)

        assert not uploads.exists(filename)
        assert await employee_repository.count(session) == 1

    async def test_unique_index_catches_race(self, controller, session, fields, uploads, stored_picture):
        await controller.create(fields)
        filename = stored_picture()

        # the pre-check misses a concurrent insert; the unique index must still hold
        with patch.object(employee_repository, "email_exists", AsyncMock(return_value=False)):
            with pytest.raises(Conflict):
                await controller.create(fields, filename)

        assert not uploads.exists(filename)
        assert await employee_repository.count(session) == 1

    async def test_record_validation_error(self, controller, fields, uploads, stored_picture):
        filename = stored_picture()

        with pytest.raises(BadRequest, match="Salary cannot be negative"):
            await controller.create(dict(fields, salary=-1), filename)

        assert not uploads.exists(filename)

    async def test_store_failure_is_internal_error(self, controller, fields, uploads, stored_picture):
        filename = stored_picture()

        with patch.object(employee_repository, "create", AsyncMock(side_effect=SQLAlchemyError("boom"))):
            with pytest.raises(InternalError):
                await controller.create(fields, filename)

        assert not uploads.exists(filename)


class TestUpdate:
    async def test_patches_only_present_fields(self, controller, fields):
        employee_id = await controller.create(fields)

        await controller.update(employee_id, {"position": "Lead Analyst", "salary": None})

        employee = await controller.get(employee_id)
        assert employee.position == "Lead Analyst"
        assert employee.salary == 120000.0
        assert employee.department == "Engineering"

    async def test_unknown_id_deletes_upload(self, controller, uploads, stored_picture):
        filename = stored_picture()

        with pytest.raises(NotFound):
            await controller.update(str(uuid.uuid4()), {"position": "Lead"}, filename)

        assert not uploads.exists(filename)

    async def test_malformed_id_deletes_upload(self, controller, uploads, stored_picture):
        filename = stored_picture()

        with pytest.raises(BadRequest, match="Invalid employee ID"):
            await controller.update("nope", {}, filename)

        assert not uploads.exists(filename)

    async def test_replacing_picture_removes_old_file(self, controller, fields, uploads, stored_picture):
        old = stored_picture()
        employee_id = await controller.create(fields, old)
        new = stored_picture()

        await controller.update(employee_id, {}, new)

        employee = await controller.get(employee_id)
        assert employee.profile_picture == new
        assert uploads.exists(new)
        assert not uploads.exists(old)

    async def test_validation_failure_keeps_old_picture(self, controller, fields, uploads, stored_picture):
        old = stored_picture()
        employee_id = await controller.create(fields, old)
        new = stored_picture()

        with pytest.raises(BadRequest, match="Salary cannot be negative"):
            await controller.update(employee_id, {"salary": -10}, new)

        assert uploads.exists(old)
        assert not uploads.exists(new)
        employee = await controller.get(employee_id)
        assert employee.profile_picture == old

    async def test_commit_failure_deletes_new_upload(self, controller, fields, uploads, stored_picture):
        old = stored_picture()
        employee_id = await controller.create(fields, old)
        new = stored_picture()

        with patch.object(AsyncSession, "commit", AsyncMock(side_effect=SQLAlchemyError("lost connection"))):
            with pytest.raises(InternalError):
                await controller.update(employee_id, {"position": "Lead"}, new)

        assert uploads.exists(old)
        assert not uploads.exists(new)

    async def test_taken_email_conflicts(self, controller, fields, uploads, stored_picture):
        await controller.create(fields)
        other_id = await controller.create(dict(fields, email="other@example.com"))
        filename = stored_picture()

        with pytest.raises(Conflict):
            await controller.update(other_id, {"email": "ada@example.com"}, filename)

        assert not uploads.exists(filename)


class TestDelete:
    async def test_removes_record_and_picture(self, controller, fields, uploads, stored_picture):
        filename = stored_picture()
        employee_id = await controller.create(fields, filename)

        await controller.delete(employee_id)

        assert not uploads.exists(filename)
        with pytest.raises(NotFound):
            await controller.get(employee_id)

    async def test_missing_picture_file_is_ignored(self, controller, fields, uploads):
        employee_id = await controller.create(fields, "profile_picture-gone.png")

        await controller.delete(employee_id)

        with pytest.raises(NotFound):
            await controller.get(employee_id)

    async def test_unknown_employee(self, controller):
        with pytest.raises(NotFound):
            await controller.delete(str(uuid.uuid4()))


class TestQueries:
    async def test_list_newest_first(self, controller, fields):
        first = await controller.create(fields)
        second = await controller.create(dict(fields, email="second@example.com"))

        employees = await controller.list()
        assert [employee.id for employee in employees] == [second, first]

    async def test_search_is_case_insensitive_substring(self, controller, fields):
        await controller.create(dict(fields, email="e1@example.com", department="Engineering"))
        await controller.create(dict(fields, email="e2@example.com", department="engineering"))
        await controller.create(dict(fields, email="s1@example.com", department="Sales"))

        count, employees = await controller.search(department="Eng")
        assert count == 2
        assert {employee.department for employee in employees} == {"Engineering", "engineering"}

    async def test_search_combines_filters(self, controller, fields):
        await controller.create(dict(fields, email="e1@example.com", position="Developer"))
        await controller.create(dict(fields, email="e2@example.com", position="Manager"))
        await controller.create(dict(fields, email="s1@example.com", department="Sales", position="Manager"))

        count, employees = await controller.search(department="eng", position="MAN")
        assert count == 1
        assert employees[0].email == "e2@example.com"

    async def test_search_needs_a_filter(self, controller):
        with pytest.raises(BadRequest, match="Please provide department or position to search"):
            await controller.search(" ", None)
