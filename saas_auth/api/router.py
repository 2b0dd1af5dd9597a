"""Agregador de routers de la API.

- versioned_router: se monta bajo /api/v{N}
- public_router: se monta bajo /api sin versión (gates y health exentos del rewrite)
"""
from fastapi import APIRouter
from saas_auth.api.routers import admin, auth, health, users

versioned_router = APIRouter()
versioned_router.include_router(health.router)
versioned_router.include_router(auth.router)
versioned_router.include_router(users.router)

public_router = APIRouter()
public_router.include_router(health.router)
public_router.include_router(admin.router)
