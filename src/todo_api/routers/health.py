from fastapi import APIRouter

from todo_api.shared.http import api_response

router = APIRouter(tags=["health"])


@router.get("/health")
async def health():
    return api_response()
