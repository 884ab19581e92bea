from __future__ import annotations

from datetime import date

import pytest

from app.services.errors import ImportReadError
from app.services.ingest.csv_reader import read_process_rows
from app.services.ingest.utils import header_key, normalize_header, parse_br_date

HEADER = "Número do processo;Prazo processual;Classe principal;Assunto principal;Tarjas;Data da intimação"


def _csv(*lines: str, encoding: str = "latin-1") -> bytes:
    return "\r\n".join((HEADER,) + lines).encode(encoding)


def test_normalize_header_strips_accents_and_replacement_char():
    assert normalize_header("Número do processo") == "Numero do processo"
    assert normalize_header("N\ufffdmero do processo") == "Numero do processo"
    assert normalize_header("\ufeffData da  intimação ") == "Data da intimacao"
    assert header_key("DATA DA INTIMAÇÃO") == "data da intimacao"


@pytest.mark.parametrize(
    "value, expected",
    [
        ("05/03/2024", date(2024, 3, 5)),
        (" 5/3/2024 ", date(2024, 3, 5)),
        ("31/02/2024", None),
        ("2024-03-05", None),
        ("05/03", None),
        ("aa/bb/cccc", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_br_date(value, expected):
    assert parse_br_date(value) == expected


def test_read_rows_latin1_with_accents():
    payload = _csv(
        "0001234-56.2024.8.09.0001;15;Procedimento Comum;Saúde;Urgente;05/03/2024",
        "0009999-00.2024.8.09.0001;10;Execução Fiscal;Educação;;01/02/2024",
    )
    result = read_process_rows(payload)

    assert result.total_rows == 2
    assert result.skipped == 0
    first, second = result.rows
    assert first.numero_processo == "0001234-56.2024.8.09.0001"
    assert first.prazo_processual == "15"
    assert first.assunto_principal == "Saúde"
    assert first.data_intimacao == date(2024, 3, 5)
    assert second.classe_principal == "Execução Fiscal"
    assert second.tarjas == ""


def test_read_rows_with_replacement_char_in_header():
    text = "N\ufffdmero do processo;Data da intima\ufffd\ufffdo\r\n123;01/01/2024"
    result = read_process_rows(text.encode("utf-8"), encoding="utf-8")

    assert [r.numero_processo for r in result.rows] == ["123"]
    # cabeçalho da data não casa; a linha continua válida sem data
    assert result.rows[0].data_intimacao is None


def test_rows_without_numero_are_skipped_and_blank_lines_ignored():
    payload = _csv(
        ";10;Classe;Assunto;;01/01/2024",
        "",
        ";;;;;",
        "777;abc;Classe;Assunto;;99/99/2024",
    )
    result = read_process_rows(payload)

    assert result.total_rows == 2
    assert result.skipped == 1
    assert len(result.rows) == 1
    row = result.rows[0]
    assert row.prazo_processual == "abc"
    assert row.data_intimacao is None


def test_header_only_file_has_no_rows():
    result = read_process_rows(HEADER.encode("latin-1"))
    assert result.rows == []
    assert result.total_rows == 0


def test_empty_file_is_a_read_error():
    with pytest.raises(ImportReadError):
        read_process_rows(b"")


def test_undecodable_payload_is_a_read_error():
    with pytest.raises(ImportReadError):
        read_process_rows("Número;x".encode("latin-1"), encoding="utf-8")


def test_unknown_encoding_is_a_read_error():
    with pytest.raises(ImportReadError):
        read_process_rows(_csv(), encoding="no-such-codec")
