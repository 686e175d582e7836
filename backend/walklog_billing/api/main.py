"""
API 路由聚合模块

将所有业务路由模块聚合到一个统一的 router 中。
这个 router 会被注册到主应用（walklog_billing/main.py）上。

路由模块说明：
- billing: 计费 webhook、事件审计、订阅状态查询
- utils: 工具相关（健康检查等）
"""
from fastapi import APIRouter

from walklog_billing.api.routes import (
    billing,  # 计费路由
    utils,  # 工具路由
)

# 创建主 API 路由器
api_router = APIRouter()

api_router.include_router(billing.router)  # /billing/*
api_router.include_router(utils.router)  # /utils/*
