from prometheus_fastapi_instrumentator import Instrumentator

from packtrack import create_app
from packtrack.core.config import get_settings
from packtrack.core.logging import configure_logging

settings = get_settings()
configure_logging(settings.LOG_LEVEL, service=settings.APP_NAME)
app = create_app(settings)
Instrumentator().instrument(app).expose(app)


@app.get("/health")
async def health() -> dict[str, bool]:
    return {"ok": True}


def run() -> None:
    import uvicorn

    uvicorn.run(app, host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
