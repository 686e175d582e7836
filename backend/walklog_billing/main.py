"""
FastAPI 应用主入口

这是应用的启动文件，负责：
1. 创建 FastAPI 应用实例
2. 配置全局中间件（CORS、Sentry）
3. 注册全局异常处理器
4. 注册 API 路由

运行方式：
    uvicorn walklog_billing.main:app --reload
"""
from typing import Any

import sentry_sdk  # Sentry 错误监控
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError  # 请求验证错误
from fastapi.middleware.cors import CORSMiddleware  # CORS 中间件
from fastapi.responses import JSONResponse  # JSON 响应
from fastapi.routing import APIRoute  # 路由类型

from walklog_billing.api.errors import AppError
from walklog_billing.api.main import api_router
from walklog_billing.core.config import settings


def custom_generate_unique_id(route: APIRoute) -> str:
    """
    自定义 OpenAPI 操作 ID 生成函数

    格式：{tag}-{route_name}，例如 "billing-webhook"。
    """
    return f"{route.tags[0]}-{route.name}"


# 初始化 Sentry 错误监控（仅在非本地环境）
if settings.SENTRY_DSN and settings.ENVIRONMENT != "local":  # pragma: no cover
    sentry_sdk.init(dsn=str(settings.SENTRY_DSN), enable_tracing=True)

# 创建 FastAPI 应用实例
app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_PREFIX}/openapi.json",
    generate_unique_id_function=custom_generate_unique_id,
)


@app.exception_handler(AppError)
async def app_error_handler(_: Request, exc: AppError) -> JSONResponse:
    """
    应用自定义异常处理器

    捕获所有 AppError 异常（包括 webhook 的鉴权、校验、映射错误），
    返回统一的错误响应格式。
    """
    return JSONResponse(
        status_code=exc.status_code,
        content={"code": exc.code, "message": exc.message, "data": None},
    )


@app.exception_handler(HTTPException)
async def http_error_handler(_: Request, exc: HTTPException) -> JSONResponse:
    """
    HTTP 异常处理器

    支持两种格式的 detail：
    1. 字典格式：{"code": 123, "message": "错误消息"}
    2. 字符串格式：错误码为状态码 * 1000
    """
    payload: dict[str, Any]
    if isinstance(exc.detail, dict) and {"code", "message"} <= set(exc.detail.keys()):
        payload = {"code": exc.detail.get("code"), "message": exc.detail.get("message")}
    else:
        payload = {"code": exc.status_code * 1000, "message": str(exc.detail)}
    return JSONResponse(
        status_code=exc.status_code,
        content={"code": payload["code"], "message": payload["message"], "data": None},
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    """请求验证错误处理器，返回 422 和详细的错误列表"""
    return JSONResponse(
        status_code=422,
        content={
            "code": 422000,
            "message": "Validation error",
            "data": {"errors": exc.errors()},
        },
    )

# 配置 CORS（跨域资源共享）中间件
if settings.all_cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.all_cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

# 注册 API 路由，所有路由都会添加 /api 前缀
app.include_router(api_router, prefix=settings.API_PREFIX)
