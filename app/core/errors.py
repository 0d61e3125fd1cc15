# app/core/errors.py
from typing import Any, Dict, Optional
from enum import Enum

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from core.logger import logger


class ErrorCode(str, Enum):
    UNAUTHORIZED = "unauthorized"        # 401
    FORBIDDEN = "forbidden"              # 403
    NOT_FOUND = "not_found"              # 404
    CONFLICT = "conflict"                # 409
    VALIDATION_ERROR = "validation_error"# 400
    INTERNAL_ERROR = "internal_error"    # 500
    BAD_REQUEST = "bad_request"          # 400


_DEFAULT_CODES = {
    400: ErrorCode.BAD_REQUEST,
    401: ErrorCode.UNAUTHORIZED,
    403: ErrorCode.FORBIDDEN,
    404: ErrorCode.NOT_FOUND,
    409: ErrorCode.CONFLICT,
}


def http_error(
    *,
    status_code: int,
    code: ErrorCode,
    message: str,
    meta: Optional[Dict[str, Any]] = None,
) -> HTTPException:
    """
    Standardized HTTPException factory.
    Rendered as {"success": false, "error": message, "code": code}.
    """
    detail = {
        "code": code.value,
        "message": message,
    }
    if meta:
        detail["meta"] = meta
    return HTTPException(status_code=status_code, detail=detail)


def error_body(message: str, code: ErrorCode | str, **extra: Any) -> Dict[str, Any]:
    body = {
        "success": False,
        "error": message,
        "code": code.value if isinstance(code, ErrorCode) else code,
    }
    body.update(extra)
    return body


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail = exc.detail
    if isinstance(detail, dict):
        message = detail.get("message", "")
        code = detail.get("code") or _DEFAULT_CODES.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
        extra = {"meta": detail["meta"]} if "meta" in detail else {}
    else:
        # Framework-raised (e.g. 404 for unknown route, 405)
        message = str(detail)
        code = _DEFAULT_CODES.get(exc.status_code, ErrorCode.BAD_REQUEST)
        extra = {}
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(message, code, **extra),
        headers=getattr(exc, "headers", None),
    )


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=error_body("Validation error", ErrorCode.VALIDATION_ERROR, details=details),
    )


class UnhandledErrorMiddleware(BaseHTTPMiddleware):
    """Last-resort boundary: log the failure, return a generic 500 envelope."""

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception:
            logger.exception(
                "Unhandled error",
                extra={"meta": {"method": request.method, "path": request.url.path}},
            )
            return JSONResponse(
                status_code=500,
                content=error_body("Internal server error", ErrorCode.INTERNAL_ERROR),
            )


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_middleware(UnhandledErrorMiddleware)
