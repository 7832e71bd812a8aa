import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from soporte_bot.config import settings
from soporte_bot.logging_config import get_logger, setup_logging
from soporte_bot.routers import control, webhook

setup_logging(settings.log_level)

logger = get_logger("main")

app = FastAPI(
    title="Soporte Bot",
    description="WhatsApp technical support flow",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins(),
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(webhook.router)
app.include_router(control.router)


@app.get("/health")
async def health():
    return {"status": "ok"}


def run() -> None:
    """Start the HTTP server on the configured port."""
    logger.info("Starting Soporte Bot", extra={"context": {"port": settings.port}})
    uvicorn.run(app, host="0.0.0.0", port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
