"""create routes, documents and document_records

Revision ID: a7c3e91d2f40
Revises:
Create Date: 2026-10-18 09:12:44.201337

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'a7c3e91d2f40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


# The three tables reference each other in a cycle. Postgres gets the cyclic FKs
# via ALTER after all tables exist; SQLite (no ALTER ... ADD CONSTRAINT) declares
# them inline, which it allows for tables that do not exist yet.
CYCLIC_FKS = (
    # name, source table, column, target table, ondelete, deferred
    ("document_records_template_id_fkey", "document_records", "template_id", "documents", "SET NULL", False),
    ("document_records_slot_id_fkey", "document_records", "slot_id", "documents", "SET NULL", False),
    ("documents_path_id_fkey", "documents", "path_id", "routes", "CASCADE", False),
    ("routes_document_id_fkey", "routes", "document_id", "documents", "CASCADE", True),
)


def _inline_fk(table: str, column: str, inline: bool) -> list:
    if not inline:
        return []
    out = []
    for name, src, col, target, ondelete, deferred in CYCLIC_FKS:
        if src == table and col == column:
            kwargs = {"deferrable": True, "initially": "DEFERRED"} if deferred else {}
            out.append(sa.ForeignKey(f"{target}.id", name=name, ondelete=ondelete, **kwargs))
    return out


def upgrade() -> None:
    """Create the document store schema."""
    conn = op.get_bind()
    inline = conn.dialect.name == "sqlite"

    op.create_table(
        "document_records",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(500), nullable=False, server_default=""),
        sa.Column("content", sa.Text(), nullable=False, server_default=""),
        sa.Column("data", sa.Text(), nullable=False, server_default=""),
        sa.Column("style", sa.Text(), nullable=False, server_default=""),
        sa.Column("script", sa.Text(), nullable=False, server_default=""),
        sa.Column("server", sa.Text(), nullable=False, server_default=""),
        sa.Column("template_id", sa.Integer(), *_inline_fk("document_records", "template_id", inline), nullable=True),
        sa.Column("slot_id", sa.Integer(), *_inline_fk("document_records", "slot_id", inline), nullable=True),
        sa.Column("content_type", sa.String(20), nullable=False, server_default=""),
        sa.Column("data_type", sa.String(20), nullable=True),
        sa.Column("has_eta", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("mime_type", sa.Text(), nullable=False, server_default="text/html; charset=UTF-8"),
        sa.Column("extension", sa.Text(), nullable=False, server_default=".html"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "documents",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("path_id", sa.Integer(), *_inline_fk("documents", "path_id", inline), nullable=False),
        sa.Column(
            "current_record_id",
            sa.Integer(),
            sa.ForeignKey("document_records.id", name="documents_current_record_id_fkey", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "draft_record_id",
            sa.Integer(),
            sa.ForeignKey("document_records.id", name="documents_draft_record_id_fkey", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("published", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "current_record_id IS NOT NULL OR draft_record_id IS NOT NULL",
            name="documents_must_have_content",
        ),
        sa.CheckConstraint(
            "current_record_id IS NULL OR draft_record_id IS NULL OR current_record_id <> draft_record_id",
            name="draft_must_differ_from_current",
        ),
        sa.UniqueConstraint("path_id", name="documents_path_id_unique"),
    )
    op.create_index("documents_current_record_id_index", "documents", ["current_record_id"])
    op.create_index("documents_draft_record_id_index", "documents", ["draft_record_id"])
    op.create_index("idx_documents_created_at", "documents", ["created_at"])

    op.create_table(
        "routes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("path", sa.String(1000), nullable=False),
        sa.Column("document_id", sa.Integer(), *_inline_fk("routes", "document_id", inline), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("path", name="routes_path_key"),
    )
    op.create_index("routes_document_id_index", "routes", ["document_id"])
    op.create_index("routes_path_index", "routes", ["path"])

    if not inline:
        for name, src, col, target, ondelete, deferred in CYCLIC_FKS:
            kwargs = {"deferrable": True, "initially": "DEFERRED"} if deferred else {}
            op.create_foreign_key(name, src, target, [col], ["id"], ondelete=ondelete, **kwargs)


def downgrade() -> None:
    conn = op.get_bind()
    if conn.dialect.name != "sqlite":
        for name, src, *_ in CYCLIC_FKS:
            op.drop_constraint(name, src, type_="foreignkey")
    op.drop_index("routes_path_index", table_name="routes")
    op.drop_index("routes_document_id_index", table_name="routes")
    op.drop_table("routes")
    op.drop_index("idx_documents_created_at", table_name="documents")
    op.drop_index("documents_draft_record_id_index", table_name="documents")
    op.drop_index("documents_current_record_id_index", table_name="documents")
    op.drop_table("documents")
    op.drop_table("document_records")
