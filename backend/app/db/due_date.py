"""
Data de vencimento calculada no banco: data_intimacao + prazo_processual dias.

O prazo é texto; só conta como dias um valor de 1 a 4 dígitos, o resto
(vazio, negativo, decimal, data digitada na coluna) conta como 0. A regra é a
mesma em todos os dialetos. Intimação nula resulta em vencimento nulo, que
não satisfaz nenhuma comparação.
"""
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.expression import FunctionElement
from sqlalchemy.types import Date

MAX_OFFSET_DIGITS = 4


class due_date(FunctionElement):
    type = Date()
    name = "due_date"
    inherit_cache = True


def _args(element, compiler, **kw):
    intimacao, prazo = list(element.clauses)
    return compiler.process(intimacao, **kw), compiler.process(prazo, **kw)


def _offset(prazo: str, is_offset: str) -> str:
    return f"CASE WHEN {is_offset} THEN CAST({prazo} AS INTEGER) ELSE 0 END"


@compiles(due_date)
def _compile_default(element, compiler, **kw):
    # PostgreSQL: date + integer
    intimacao, prazo = _args(element, compiler, **kw)
    offset = _offset(prazo, f"{prazo} ~ '^[0-9]{{1,{MAX_OFFSET_DIGITS}}}$'")
    return f"({intimacao} + {offset})"


@compiles(due_date, "sqlite")
def _compile_sqlite(element, compiler, **kw):
    # sem REGEXP nativo: não vazio, sem caractere fora de 0-9, até 4 chars
    intimacao, prazo = _args(element, compiler, **kw)
    is_offset = (
        f"(length({prazo}) BETWEEN 1 AND {MAX_OFFSET_DIGITS} "
        f"AND {prazo} NOT GLOB '*[^0-9]*')"
    )
    offset = _offset(prazo, is_offset)
    return f"date({intimacao}, '+' || CAST({offset} AS TEXT) || ' days')"


@compiles(due_date, "mysql")
def _compile_mysql(element, compiler, **kw):
    intimacao, prazo = _args(element, compiler, **kw)
    offset = (
        f"CASE WHEN {prazo} REGEXP '^[0-9]{{1,{MAX_OFFSET_DIGITS}}}$' "
        f"THEN CAST({prazo} AS SIGNED) ELSE 0 END"
    )
    return f"DATE_ADD({intimacao}, INTERVAL {offset} DAY)"
