"""API endpoint for visitor tool submissions."""

from fastapi import APIRouter, Depends

from ...models import Submission
from ...service import ToolDirectory
from ..deps import get_directory

router = APIRouter()


@router.post("", response_model=Submission, status_code=201)
async def submit_tool(
    data: Submission,
    directory: ToolDirectory = Depends(get_directory),
):
    """
    Queue a tool for editorial review.

    Only available with the database backend; in fallback mode the
    response is 503 with error "submission_requires_backend".
    """
    return await directory.submit(data)
