# partner_directory/api/v1/router.py
from fastapi import APIRouter

from partner_directory.api.v1.endpoints import (
    auth,
    connections,
    nodes,
    organizations,
    users,
)

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(organizations.router, prefix="/organizations", tags=["organizations"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(nodes.router, prefix="/nodes", tags=["nodes"])
api_router.include_router(connections.router, prefix="/connections", tags=["connections"])
