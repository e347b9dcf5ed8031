from fastapi import APIRouter, Depends, Request, status
from typing import Optional
import logging

from employee_api.api.controller import EmployeeController
from employee_api.api.deps import get_employee_controller, get_uploads, read_payload
from employee_api.core.decorators import log_execution_time, log_requests
from employee_api.core.security import get_current_user
from employee_api.core.uploads import PROFILE_PICTURE_FIELD, UploadManager
from employee_api.core.validation import (
    EMPLOYEE_NORMALIZERS,
    EMPLOYEE_RULES,
    EMPLOYEE_UPDATE_RULES,
    validate
)
from employee_api.schemas.schema import (
    EmployeeCreatedResponse,
    EmployeeDetailResponse,
    EmployeeListResponse,
    EmployeeResponse,
    EmployeeSearchResponse,
    ErrorResponse,
    ResponseMessage
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/employees",
    tags=["employees"],
    dependencies=[Depends(get_current_user)],
    responses={
        401: {"model": ErrorResponse, "description": "Unauthorized"},
        404: {"model": ErrorResponse, "description": "Not found"},
    },
)


# Search must be declared before /{employee_id}
@router.get("/search", response_model=EmployeeSearchResponse)
@log_requests
@log_execution_time
async def search_employees(
    request: Request,
    department: Optional[str] = None,
    position: Optional[str] = None,
    controller: EmployeeController = Depends(get_employee_controller)
):
    count, employees = await controller.search(department, position)
    return {
        "status": True,
        "count": count,
        "data": [EmployeeResponse.model_validate(employee) for employee in employees],
    }


@router.get("", response_model=EmployeeListResponse)
@log_requests
@log_execution_time
async def get_employees(
    request: Request,
    controller: EmployeeController = Depends(get_employee_controller)
):
    employees = await controller.list()
    return {
        "status": True,
        "data": [EmployeeResponse.model_validate(employee) for employee in employees],
    }


@router.post("", response_model=EmployeeCreatedResponse, status_code=status.HTTP_201_CREATED)
@log_requests
@log_execution_time
async def create_employee(
    request: Request,
    controller: EmployeeController = Depends(get_employee_controller),
    uploads: UploadManager = Depends(get_uploads)
):
    payload, upload = await read_payload(request, PROFILE_PICTURE_FIELD)
    employee_data = validate(payload, EMPLOYEE_RULES, EMPLOYEE_NORMALIZERS)

    profile_picture = await uploads.save(upload) if upload else None
    employee_id = await controller.create(employee_data, profile_picture)

    return {"message": "Employee created successfully", "employee_id": employee_id}


@router.get("/{employee_id}", response_model=EmployeeDetailResponse)
@log_requests
@log_execution_time
async def get_employee(
    request: Request,
    employee_id: str,
    controller: EmployeeController = Depends(get_employee_controller)
):
    employee = await controller.get(employee_id)
    return {"status": True, "data": EmployeeResponse.model_validate(employee)}


@router.put("/{employee_id}", response_model=ResponseMessage)
@log_requests
@log_execution_time
async def update_employee(
    request: Request,
    employee_id: str,
    controller: EmployeeController = Depends(get_employee_controller),
    uploads: UploadManager = Depends(get_uploads)
):
    payload, upload = await read_payload(request, PROFILE_PICTURE_FIELD)
    employee_data = validate(payload, EMPLOYEE_UPDATE_RULES, EMPLOYEE_NORMALIZERS, optional=True)

    profile_picture = await uploads.save(upload) if upload else None
    await controller.update(employee_id, employee_data, profile_picture)

    return ResponseMessage(message="Employee details updated successfully")


@router.delete("/{employee_id}", response_model=ResponseMessage)
@log_requests
@log_execution_time
async def delete_employee(
    request: Request,
    employee_id: str,
    controller: EmployeeController = Depends(get_employee_controller)
):
    await controller.delete(employee_id)
    return ResponseMessage(message="Employee deleted successfully")
