"""
File: app/domains/personas/dependencies.py
Description: 人员登记领域依赖注入 (DI)

依赖链：
app.state.database → DatabaseDep → PersonaService → PersonaServiceDep

Author: jinmozhe
Created: 2026-10-12
"""

from typing import Annotated

from fastapi import Depends

from app.api.deps import DatabaseDep
from app.domains.personas.service import PersonaService


async def get_persona_service(database: DatabaseDep) -> PersonaService:
    """初始化 Service 实例"""
    return PersonaService(database)


# Router 中只需写: service: PersonaServiceDep
PersonaServiceDep = Annotated[PersonaService, Depends(get_persona_service)]
