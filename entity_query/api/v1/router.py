"""Aggregate v1 router."""
from fastapi import APIRouter

from . import entities

router = APIRouter()
router.include_router(entities.router, prefix="/entities", tags=["entities"])
