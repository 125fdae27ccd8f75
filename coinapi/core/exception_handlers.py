import logging
import traceback
from typing import Any, Dict

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .exceptions import BaseAPIException, InternalServerError

logger = logging.getLogger("coinapi")


def _request_context(request: Request) -> Dict[str, Any]:
    client = request.client.host if request.client else "-"
    return {
        "method": request.method,
        "path": request.url.path,
        "client": client,
    }


def _describe(request: Request) -> str:
    ctx = _request_context(request)
    return f"{ctx['method']} {ctx['path']} from {ctx['client']}"


async def handle_base_api_exception(request: Request, exc: BaseAPIException):
    # 잔액 부족, 할인 코드 오류 등 사용자가 고칠 수 있는 오류는 warning
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(f"[{exc.error_code}] {_describe(request)} -> {exc.status_code}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code, content=exc.detail, headers=exc.headers  # type: ignore[arg-type]
    )


async def handle_http_exception(request: Request, exc: HTTPException):
    error_msg = f"[HTTPException] {_describe(request)} -> {exc.status_code}: {exc.detail}"

    if exc.status_code >= 500:
        tb_str = "".join(traceback.format_tb(exc.__traceback__))
        logger.error(f"{error_msg}\n\nStack Trace:\n{tb_str}")
    else:
        logger.warning(error_msg)

    if isinstance(exc.detail, dict) and "error" in exc.detail:
        content = exc.detail
    else:
        content = {
            "success": False,
            "error": {
                "code": "HTTP_ERROR",
                "message": str(exc.detail),
                "details": {},
            },
        }
    return JSONResponse(
        status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None)
    )


async def handle_validation_error(request: Request, exc: RequestValidationError):
    logger.warning(f"[ValidationError] {_describe(request)} -> 422: {exc.errors()}")
    content = {
        "success": False,
        "error": {
            "code": "VALIDATION_001",
            "message": "Validation failed",
            "details": {"errors": jsonable_encoder(exc.errors())},
        },
    }
    return JSONResponse(status_code=422, content=content)


async def handle_unexpected_error(request: Request, exc: Exception):
    logger.error(
        f"[Unhandled Error] {_describe(request)}\n"
        f"Exception Type: {type(exc).__name__}\n"
        f"Exception Message: {str(exc)}",
        exc_info=exc,
    )

    internal = InternalServerError()
    return JSONResponse(status_code=internal.status_code, content=internal.detail)  # type: ignore[arg-type]


def register_exception_handlers(app: FastAPI) -> None:
    # BaseAPIException은 HTTPException의 하위 클래스이므로 먼저 등록
    app.add_exception_handler(BaseAPIException, handle_base_api_exception)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, handle_http_exception)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, handle_validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, handle_unexpected_error)
