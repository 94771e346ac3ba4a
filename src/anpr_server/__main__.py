import uvicorn

from anpr_server.config import settings


def main() -> None:
    uvicorn.run(
        "anpr_server.app:app",
        host=settings.HOST,
        port=settings.PORT,
        log_config=None,
        reload=settings.is_development(),
    )


if __name__ == "__main__":
    main()
