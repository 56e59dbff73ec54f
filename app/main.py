from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import os
import sys
import logging
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Add the app directory to Python path (needed for Vercel serverless)
app_dir = Path(__file__).parent
if str(app_dir) not in sys.path:
    sys.path.insert(0, str(app_dir))

from config import Settings, settings as default_settings
from context import AppContext, build_context

# Configure logging
logging.basicConfig(
    level=getattr(logging, default_settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Detect if running on Vercel (serverless)
IS_SERVERLESS = os.getenv("VERCEL", False) or os.getenv("AWS_LAMBDA_FUNCTION_NAME", False)
logger.info(f"Running in {'serverless' if IS_SERVERLESS else 'server'} mode")


def create_app(
    settings: Optional[Settings] = None, context: Optional[AppContext] = None
) -> FastAPI:
    """
    Build the app. Configuration is checked here, once, and the resulting
    context is what every handler sees.
    """
    settings = settings or (context.settings if context else default_settings)
    context = context or build_context(settings)

    app = FastAPI(
        title=settings.app_title,
        description="AI-generated vehicle repair guides with parts and tools shopping links",
        version="1.0.0",
    )
    app.state.context = context

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    routers_loaded = []

    from api.generate_guide import router as generate_guide_router

    app.include_router(generate_guide_router, prefix="/api", tags=["Generation"])
    routers_loaded.append("generate_guide")

    # The JSON API works without the HTML pages (form parsing needs python-multipart)
    try:
        from api.dashboard import router as dashboard_router

        app.include_router(dashboard_router, tags=["Dashboard"])
        routers_loaded.append("dashboard")
    except Exception as e:
        logger.warning(f"Failed to load dashboard router: {e}")

    logger.info(f"Routers loaded: {routers_loaded}")

    @app.get("/api")
    async def root():
        return {
            "service": settings.app_title,
            "status": "online",
            "version": "1.0.0",
            "routers_loaded": routers_loaded,
            "provider_configured": context.config_error is None,
        }

    @app.get("/health")
    async def health():
        return {"status": "healthy", "routers": len(routers_loaded)}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
