"""Create core tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Creates the MySQL schema: users, registrations, horoscope_shares,
       follow_ups, horoscope_sends, profile_detail_sends, app_settings.
How:   Mirrors horoscope_desk/database/schema.sql (the SQLite bootstrap),
       using MySQL types and utf8mb4.

Rollback: downgrade() drops every table (destructive).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

MYSQL_TABLE_ARGS = {"mysql_engine": "InnoDB", "mysql_charset": "utf8mb4"}

# Login compares email with "=", which must stay case-sensitive.
EMAIL_COLLATION = "utf8mb4_bin"


def _timestamps(updated: bool = False):
    columns = [
        sa.Column("created_at", sa.TIMESTAMP(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    ]
    if updated:
        columns.append(
            sa.Column(
                "updated_at",
                sa.TIMESTAMP(),
                nullable=False,
                server_default=sa.text("CURRENT_TIMESTAMP ON UPDATE CURRENT_TIMESTAMP"),
            )
        )
    return columns


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(255, collation=EMAIL_COLLATION), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False, server_default=sa.text("''")),
        sa.Column("role", sa.Enum("admin", "viewer"), nullable=False, server_default=sa.text("'viewer'")),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="email"),
        **MYSQL_TABLE_ARGS,
    )

    # Unique key names are what the duplicate-field message matching reads.
    op.create_table(
        "registrations",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("registration_id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("role", sa.Enum("male", "female"), nullable=False),
        sa.Column("phone", sa.String(32), nullable=True),
        sa.Column("whatsapp_number", sa.String(32), nullable=True),
        sa.Column("horoscope_path", sa.String(512), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        *_timestamps(updated=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("registration_id", name="registration_id"),
        sa.UniqueConstraint("phone", name="phone"),
        sa.UniqueConstraint("whatsapp_number", name="whatsapp_number"),
        **MYSQL_TABLE_ARGS,
    )

    op.create_table(
        "horoscope_shares",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("sender_registration_id", sa.String(64), nullable=False),
        sa.Column("recipient_registration_id", sa.String(64), nullable=False),
        sa.Column("shared_via", sa.Enum("whatsapp", "manual", "other"), nullable=True),
        sa.Column("shared_at", sa.TIMESTAMP(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("sender_registration_id", "recipient_registration_id", name="uniq_share_pair"),
        sa.ForeignKeyConstraint(
            ["sender_registration_id"], ["registrations.registration_id"], onupdate="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["recipient_registration_id"], ["registrations.registration_id"], onupdate="CASCADE"
        ),
        **MYSQL_TABLE_ARGS,
    )

    op.create_table(
        "follow_ups",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("registration_id", sa.String(64), nullable=False),
        sa.Column("share_id", sa.Integer(), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("note", sa.Text(), nullable=False),
        sa.Column("status", sa.Enum("pending", "done"), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("created_by", sa.Integer(), nullable=True),
        *_timestamps(updated=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["share_id"], ["horoscope_shares.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="SET NULL"),
        **MYSQL_TABLE_ARGS,
    )
    op.create_index("idx_follow_ups_due", "follow_ups", ["due_date", "status"])

    op.create_table(
        "horoscope_sends",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("registration_id", sa.String(64), nullable=False),
        sa.Column("recipient_whatsapp", sa.String(32), nullable=False),
        sa.Column("sent_at", sa.TIMESTAMP(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.PrimaryKeyConstraint("id"),
        **MYSQL_TABLE_ARGS,
    )
    op.create_index("idx_horoscope_sends_registration", "horoscope_sends", ["registration_id"])

    op.create_table(
        "profile_detail_sends",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("registration_id", sa.String(64), nullable=False),
        sa.Column("recipient_whatsapp", sa.String(32), nullable=False),
        sa.Column("fields_sent", sa.Text(), nullable=True),
        sa.Column("sent_at", sa.TIMESTAMP(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.PrimaryKeyConstraint("id"),
        **MYSQL_TABLE_ARGS,
    )
    op.create_index("idx_profile_detail_sends_registration", "profile_detail_sends", ["registration_id"])

    op.create_table(
        "app_settings",
        sa.Column("key", sa.String(100), nullable=False),
        sa.Column("value", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("key"),
        **MYSQL_TABLE_ARGS,
    )


def downgrade() -> None:
    op.drop_table("app_settings")
    op.drop_index("idx_profile_detail_sends_registration", table_name="profile_detail_sends")
    op.drop_table("profile_detail_sends")
    op.drop_index("idx_horoscope_sends_registration", table_name="horoscope_sends")
    op.drop_table("horoscope_sends")
    op.drop_index("idx_follow_ups_due", table_name="follow_ups")
    op.drop_table("follow_ups")
    op.drop_table("horoscope_shares")
    op.drop_table("registrations")
    op.drop_table("users")
