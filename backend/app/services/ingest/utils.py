from __future__ import annotations

import hashlib
import re
import unicodedata
from datetime import date

_SPACES = re.compile(r"\s+")
# caractere de substituição que aparece no lugar do "ú" em exportações quebradas
_REPLACEMENT_CHAR = "\ufffd"


def compute_sha256(payload_bytes: bytes) -> str:
    return "sha256:" + hashlib.sha256(payload_bytes).hexdigest()


def strip_accents(text: str) -> str:
    text = unicodedata.normalize("NFD", text or "")
    return "".join(ch for ch in text if not unicodedata.combining(ch))


def normalize_header(header: str) -> str:
    """
    'Número do processo' -> 'Numero do processo'
    'N�mero do processo' -> 'Numero do processo'
    """
    norm = strip_accents((header or "").lstrip("\ufeff"))
    norm = norm.replace(_REPLACEMENT_CHAR, "u")
    return _SPACES.sub(" ", norm).strip()


def header_key(header: str) -> str:
    return normalize_header(header).casefold()


def parse_br_date(value: str | None) -> date | None:
    """dd/mm/aaaa -> date; qualquer outra coisa vira None."""
    if not value:
        return None
    parts = value.strip().split("/")
    if len(parts) != 3:
        return None
    day, month, year = (p.strip() for p in parts)
    try:
        return date(int(year), int(month), int(day))
    except ValueError:
        return None


def clean_cell(value: str | None) -> str:
    return value.strip() if value else ""
