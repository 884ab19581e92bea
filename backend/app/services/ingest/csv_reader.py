from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from datetime import date

from app.services.errors import ImportReadError
from app.services.ingest.utils import clean_cell, header_key, parse_br_date

# cabeçalho normalizado (sem acento, casefold) -> campo
HEADER_FIELDS = {
    "numero do processo": "numero_processo",
    "prazo processual": "prazo_processual",
    "classe principal": "classe_principal",
    "assunto principal": "assunto_principal",
    "tarjas": "tarjas",
    "data da intimacao": "data_intimacao",
}


@dataclass(frozen=True)
class ProcessRow:
    numero_processo: str
    prazo_processual: str = ""
    classe_principal: str = ""
    assunto_principal: str = ""
    tarjas: str = ""
    data_intimacao: date | None = None


@dataclass
class ReadResult:
    rows: list[ProcessRow]
    total_rows: int
    skipped: int


def _column_map(headers: list[str]) -> dict[str, int]:
    columns: dict[str, int] = {}
    for index, header in enumerate(headers):
        field = HEADER_FIELDS.get(header_key(header))
        if field and field not in columns:
            columns[field] = index
    return columns


def read_process_rows(payload: bytes, *, encoding: str = "latin-1", delimiter: str = ";") -> ReadResult:
    """
    Decodifica e lê o CSV exportado. Linhas sem número de processo são
    descartadas; datas inválidas viram None sem descartar a linha.
    """
    try:
        text = payload.decode(encoding)
    except (UnicodeDecodeError, LookupError) as exc:
        raise ImportReadError(f"Não foi possível decodificar o arquivo como {encoding}") from exc

    reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter)
    try:
        headers = next(reader, None)
        if not headers:
            raise ImportReadError("Arquivo CSV vazio ou sem cabeçalho")
        columns = _column_map(headers)

        rows: list[ProcessRow] = []
        total = 0
        skipped = 0
        for record in reader:
            if not any(cell.strip() for cell in record):
                continue
            total += 1

            def cell(field: str) -> str:
                index = columns.get(field)
                if index is None or index >= len(record):
                    return ""
                return clean_cell(record[index])

            numero = cell("numero_processo")
            if not numero:
                skipped += 1
                continue
            rows.append(
                ProcessRow(
                    numero_processo=numero,
                    prazo_processual=cell("prazo_processual"),
                    classe_principal=cell("classe_principal"),
                    assunto_principal=cell("assunto_principal"),
                    tarjas=cell("tarjas"),
                    data_intimacao=parse_br_date(cell("data_intimacao")),
                )
            )
    except csv.Error as exc:
        raise ImportReadError(f"CSV malformado: {exc}") from exc

    return ReadResult(rows=rows, total_rows=total, skipped=skipped)
