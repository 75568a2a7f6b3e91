"""FastAPI dependencies: the per-process components and the re-index guard."""
import secrets
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from portfolio_ask.ask.service import AskService
from portfolio_ask.bootstrap import AppComponents
from portfolio_ask.config import Settings, get_settings
from portfolio_ask.schemas.ask import TierConfig

bearer = HTTPBearer(auto_error=False)


def get_components(request: Request) -> AppComponents:
    return request.app.state.components


def get_ask_service(components: AppComponents = Depends(get_components)) -> AskService:
    return components.service


def get_tier_config(components: AppComponents = Depends(get_components)) -> TierConfig:
    return components.tier_config()


def require_reindex_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    settings: Settings = Depends(get_settings),
) -> None:
    """Bearer token check; an empty configured token disables re-indexing."""
    expected = settings.ingest.reindex_token
    if not expected:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Re-index is disabled")
    if credentials is None or not secrets.compare_digest(credentials.credentials, expected):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid re-index token")
