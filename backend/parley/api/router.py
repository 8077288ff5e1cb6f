"""
Main API router that includes all route modules.
"""
from fastapi import APIRouter
from parley.api.routes import auth, users, friends, chats, groups

api_router = APIRouter()

# Include all route modules
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(friends.router)
api_router.include_router(chats.router)
api_router.include_router(groups.router)
