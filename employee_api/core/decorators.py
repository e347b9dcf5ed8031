import functools
import time
import logging
from datetime import datetime

from starlette.requests import Request

logger = logging.getLogger(__name__)


def _find_request(args, kwargs):
    for value in list(args) + list(kwargs.values()):
        if isinstance(value, Request):
            return value
    return None


def log_execution_time(func):
    @functools.wraps(func)
    async def async_wrapper(*args, **kwargs):
        start_time = time.time()
        try:
            result = await func(*args, **kwargs)
            elapsed = time.time() - start_time
            logger.info(f"{func.__name__} took {elapsed:.4f}s")
            return result
        except Exception as e:
            elapsed = time.time() - start_time
            logger.error(f"{func.__name__} failed after {elapsed:.4f}s: {str(e)}")
            raise

    return async_wrapper


def log_requests(func):
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        request = _find_request(args, kwargs)
        request_id = datetime.now().strftime("%Y%m%d%H%M%S%f")

        if request:
            client_ip = request.client.host if request.client else "unknown"
            logger.info(f"REQ {request_id}: {request.method} {request.url.path} from {client_ip}")
        else:
            logger.info(f"FUNC {request_id}: {func.__name__} called")

        start_time = time.time()
        try:
            result = await func(*args, **kwargs)
            elapsed = time.time() - start_time

            logger.info(f"DONE {request_id}: completed in {elapsed:.4f}s")
            return result
        except Exception as e:
            elapsed = time.time() - start_time

            logger.error(f"FAIL {request_id}: error after {elapsed:.4f}s - {str(e)}")
            raise

    return wrapper
