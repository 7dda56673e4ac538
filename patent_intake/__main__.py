import uvicorn

from patent_intake.core.config import settings


def main() -> None:
    uvicorn.run(
        "patent_intake.main:app",
        host="0.0.0.0",
        port=settings.PORT,
        reload=settings.DEBUG,
        log_config=None,
    )


if __name__ == "__main__":
    main()
