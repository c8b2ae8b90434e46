"""Initial tables: sequences, clients, factures

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Invoice number counters
    op.create_table(
        "sequences",
        sa.Column("id", sa.String(50), nullable=False),
        sa.Column("dernier_numero", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("annee", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_sequences"),
    )

    # Client files (dossiers)
    op.create_table(
        "clients",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("num_dossier", sa.String(50), nullable=False),
        sa.Column("raison_sociale", sa.String(255), nullable=False),
        sa.Column("adresse", sa.String(500), nullable=True),
        sa.Column("siret", sa.String(20), nullable=True),
        sa.Column("domaine_activite", sa.String(255), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id", name="pk_clients"),
    )
    op.create_index("ix_clients_num_dossier", "clients", ["num_dossier"], unique=True)
    op.create_index("ix_clients_raison_sociale", "clients", ["raison_sociale"], unique=False)

    # Invoices
    op.create_table(
        "factures",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("numero_sequentiel", sa.Integer(), nullable=False),
        sa.Column("prefixe", sa.String(20), nullable=False),
        sa.Column("numero_complet", sa.String(50), nullable=False),
        sa.Column("prestation", sa.Text(), nullable=False),
        sa.Column("montant_ht", sa.Numeric(15, 2), nullable=False),
        sa.Column("taux_tva", sa.Numeric(5, 2), nullable=False),
        sa.Column("montant_tva", sa.Numeric(15, 2), nullable=False),
        sa.Column("montant_ttc", sa.Numeric(15, 2), nullable=False),
        sa.Column("stripe_payment_link", sa.String(500), nullable=True),
        sa.Column("stripe_payment_id", sa.String(255), nullable=True),
        sa.Column(
            "date_emission",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("client_id", sa.BigInteger(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id", name="pk_factures"),
        sa.ForeignKeyConstraint(
            ["client_id"], ["clients.id"], name="fk_factures_client_id_clients"
        ),
    )
    op.create_index("ix_factures_numero_complet", "factures", ["numero_complet"], unique=True)
    op.create_index("ix_factures_client_id", "factures", ["client_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_factures_client_id", table_name="factures")
    op.drop_index("ix_factures_numero_complet", table_name="factures")
    op.drop_table("factures")
    op.drop_index("ix_clients_raison_sociale", table_name="clients")
    op.drop_index("ix_clients_num_dossier", table_name="clients")
    op.drop_table("clients")
    op.drop_table("sequences")
