import uvicorn

from .core.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "services.pushwatch.app.main:app",
        host=settings.host,
        port=settings.port,
        # structlog owns the access log through RequestLoggingMiddleware
        access_log=False,
    )


if __name__ == "__main__":
    main()
