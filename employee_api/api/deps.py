# employee_api/api/deps.py
import json
import logging
from typing import Any, Dict, Optional, Tuple

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile

from employee_api.api.controller import EmployeeController
from employee_api.core.database import get_db
from employee_api.core.exceptions import BadRequest
from employee_api.core.security import TokenService
from employee_api.core.uploads import UploadManager

logger = logging.getLogger(__name__)


def get_uploads(request: Request) -> UploadManager:
    return request.app.state.uploads


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_employee_controller(
    db: AsyncSession = Depends(get_db),
    uploads: UploadManager = Depends(get_uploads)
) -> EmployeeController:
    return EmployeeController(db, uploads)


async def read_payload(
    request: Request,
    file_field: Optional[str] = None
) -> Tuple[Dict[str, Any], Optional[UploadFile]]:
    """Read a JSON, urlencoded or multipart body.

    Returns the plain fields and, when ``file_field`` is given, the single file
    sent under that name.
    """
    content_type = request.headers.get("content-type", "")

    if content_type.startswith("application/json"):
        body = await request.body()
        if not body:
            return {}, None
        try:
            payload = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"Invalid JSON body: {str(e)}")
            raise BadRequest("Invalid JSON data")
        if not isinstance(payload, dict):
            raise BadRequest("Request body must be a JSON object")
        return payload, None

    if not content_type.startswith(("multipart/form-data", "application/x-www-form-urlencoded")):
        return {}, None

    form = await request.form()
    fields: Dict[str, Any] = {}
    upload = None
    for key, value in form.multi_items():
        if not isinstance(value, UploadFile):
            fields[key] = value
            continue
        # browsers send an empty part when no file was chosen
        if not value.filename:
            continue
        if key != file_field or upload is not None:
            raise BadRequest("Unexpected field")
        upload = value
    return fields, upload
