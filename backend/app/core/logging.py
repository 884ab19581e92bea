import logging.config

_UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def configure_logging(level: str = "INFO") -> None:
    level = level.upper()
    loggers = {
        name: {"level": level, "handlers": ["console"], "propagate": False}
        for name in _UVICORN_LOGGERS
    }
    # SQL echo só quando explicitamente em DEBUG
    loggers["sqlalchemy.engine"] = {
        "level": "INFO" if level == "DEBUG" else "WARNING",
        "handlers": ["console"],
        "propagate": False,
    }
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s %(levelname)s %(name)s - %(message)s"
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                }
            },
            "root": {"level": level, "handlers": ["console"]},
            "loggers": loggers,
        }
    )
