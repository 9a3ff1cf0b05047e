"""
File: app/api_router.py
Description: 根 API 路由聚合层

本模块负责：
1. 聚合所有业务领域的 Router
2. 统一设置路由前缀与 OpenAPI 标签

Author: jinmozhe
Created: 2026-10-12
"""

from fastapi import APIRouter

from app.domains.personas.router import router as personas_router

# 创建根 API 路由
api_router = APIRouter()

# 人员登记模块 (Personas Domain)
# 完整路径: {API_PREFIX}/personas/...
api_router.include_router(personas_router, prefix="/personas", tags=["personas"])
