from fastapi import APIRouter

from app.config import settings
from app.schemas.provider import JiraConfig

router = APIRouter()


@router.get("/jira", response_model=JiraConfig)
async def jira_config():
    """Jira base URL so clients can link worklogs back to their issues."""
    base_url = settings.jira_base_url.rstrip("/") if settings.jira_base_url else None
    return JiraConfig(base_url=base_url, configured=bool(base_url))
