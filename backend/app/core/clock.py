from datetime import date, datetime, timezone


def utcnow() -> datetime:
    """UTC sem tzinfo: é assim que as colunas DateTime são gravadas."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def today() -> date:
    return date.today()
