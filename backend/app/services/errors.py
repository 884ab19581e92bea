class ServiceError(Exception):
    """Base das falhas de regra de negócio traduzidas pelos endpoints."""


class NotFoundError(ServiceError):
    pass


class InvalidSortError(ServiceError):
    pass


class ImportReadError(ServiceError):
    """O arquivo não pôde ser decodificado ou lido como CSV."""


class ImportSaveError(ServiceError):
    """Falha de persistência durante a reconciliação."""
