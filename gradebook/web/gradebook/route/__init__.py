"""Route aggregation for the gradebook web application."""

from fastapi import APIRouter

from . import grade, quiz

router = APIRouter()
router.include_router(grade.router)
router.include_router(quiz.router)
