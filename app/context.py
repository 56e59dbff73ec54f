"""
Application context - settings checked once at start-up and the services built
from them, handed to request handlers instead of re-reading the environment.
"""

import logging
from dataclasses import dataclass
from typing import Optional
from fastapi import Request
from config import ConfigurationError, Settings
from services.guide_service import GuideService
from services.nhtsa import NHTSAService
from services.openrouter import OpenRouterClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppContext:
    settings: Settings
    guide_service: GuideService
    config_error: Optional[str] = None

    def require_provider(self) -> None:
        if self.config_error:
            raise ConfigurationError(self.config_error)


def build_context(settings: Settings) -> AppContext:
    config_error = None
    try:
        settings.require_provider()
    except ConfigurationError as e:
        config_error = str(e)
        logger.warning(f"⚠️ {config_error} - AI actions will fail until it is configured")

    if not settings.amazon_affiliate_tag:
        logger.warning(
            "AMAZON_AFFILIATE_TAG is not set, falling back to the default tag. "
            "Commission links may not be attributed."
        )

    guide_service = GuideService(
        client=OpenRouterClient.from_settings(settings),
        nhtsa=NHTSAService.from_settings(settings),
        web_search=settings.guide_web_search,
    )
    return AppContext(settings=settings, guide_service=guide_service, config_error=config_error)


def get_context(request: Request) -> AppContext:
    return request.app.state.context
