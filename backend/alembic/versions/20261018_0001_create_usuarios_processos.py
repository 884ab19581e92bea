"""create usuarios, processos, refresh_tokens, import_runs

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 00:01:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261018_0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "usuarios",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("matricula", sa.String(length=20), nullable=False, unique=True),
        sa.Column("nome", sa.String(length=100), nullable=False),
        sa.Column("senha", sa.String(length=100), nullable=False),
        sa.Column("senha_padrao", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("admin_padrao", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("admin_super", sa.Boolean(), nullable=False, server_default=sa.text("false")),
    )
    op.create_index("idx_nome", "usuarios", ["nome"], unique=False)

    op.create_table(
        "processos",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("numero_processo", sa.String(length=50), nullable=False, unique=True),
        sa.Column("prazo_processual", sa.String(length=20), nullable=False),
        sa.Column("classe_principal", sa.String(length=255), nullable=True),
        sa.Column("assunto_principal", sa.String(length=255), nullable=True),
        sa.Column("tarjas", sa.String(length=255), nullable=True),
        sa.Column("data_intimacao", sa.Date(), nullable=True),
        sa.Column("cumprido", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("cumpridoDate", sa.DateTime(), nullable=True),
        sa.Column("reiteracoes", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("observacoes", sa.String(length=100), nullable=False, server_default=sa.text("''")),
        sa.Column("userId", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["userId"], ["usuarios.id"]),
    )
    op.create_index("idx_cumprido", "processos", ["cumprido"], unique=False)
    op.create_index("idx_data_intimacao", "processos", ["data_intimacao"], unique=False)
    op.create_index("idx_cumprido_date", "processos", ["cumpridoDate"], unique=False)
    op.create_index("idx_user_cumprido", "processos", ["userId", "cumprido"], unique=False)
    op.create_index("idx_classe_principal", "processos", ["classe_principal"], unique=False)
    op.create_index("idx_assunto_principal", "processos", ["assunto_principal"], unique=False)

    op.create_table(
        "refresh_tokens",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("jti", sa.String(length=64), nullable=False, unique=True),
        sa.Column("login_type", sa.String(length=20), nullable=False),
        sa.Column("issued_at", sa.DateTime(), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("revoked_at", sa.DateTime(), nullable=True),
        sa.Column("replaced_by_jti", sa.String(length=64), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["usuarios.id"], ondelete="CASCADE"),
    )

    op.create_table(
        "import_runs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("dataset", sa.String(length=64), nullable=False),
        sa.Column("source_name", sa.String(length=255), nullable=True),
        sa.Column("source_hash", sa.String(length=128), nullable=True),
        sa.Column("actor_id", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(length=24), server_default=sa.text("'SUCCESS'"), nullable=False),
        sa.Column("stats", sa.JSON(), nullable=True),
        sa.Column("error", sa.String(length=2000), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["actor_id"], ["usuarios.id"], ondelete="SET NULL"),
    )
    op.create_index("ix_import_runs_dataset", "import_runs", ["dataset"], unique=False)
    op.create_index("ix_import_runs_source_hash", "import_runs", ["source_hash"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_import_runs_source_hash", table_name="import_runs")
    op.drop_index("ix_import_runs_dataset", table_name="import_runs")
    op.drop_table("import_runs")
    op.drop_table("refresh_tokens")
    op.drop_index("idx_assunto_principal", table_name="processos")
    op.drop_index("idx_classe_principal", table_name="processos")
    op.drop_index("idx_user_cumprido", table_name="processos")
    op.drop_index("idx_cumprido_date", table_name="processos")
    op.drop_index("idx_data_intimacao", table_name="processos")
    op.drop_index("idx_cumprido", table_name="processos")
    op.drop_table("processos")
    op.drop_index("idx_nome", table_name="usuarios")
    op.drop_table("usuarios")
