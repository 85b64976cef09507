"""Initial schema: questions, submissions, users.

Creates the three tables with JSONB answer groups on ``submissions`` and
expression indexes for the admin list filters (user type, county).

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID

# revision identifiers, used by Alembic.
revision = "20261019_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # --- questions ---
    op.create_table(
        "questions",
        sa.Column("qid", sa.Text(), primary_key=True),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("section", sa.String(50), nullable=False),
        sa.Column("question_type", sa.String(20), nullable=False),
        sa.Column("label", sa.Text(), nullable=False, unique=True),
        sa.Column("options", JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("required", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("conditional", sa.Text(), nullable=True),
        sa.Column("min_value", sa.SmallInteger(), nullable=True),
        sa.Column("max_value", sa.SmallInteger(), nullable=True),
        sa.Column("created_at", TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_questions_section", "questions", ["section"])
    op.create_index("ix_questions_position", "questions", ["position"])

    # --- submissions ---
    op.create_table(
        "submissions",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("profile", JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("problems", JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("farmer_features", JSONB(), nullable=True),
        sa.Column("expert_features", JSONB(), nullable=True),
        sa.Column("admin_features", JSONB(), nullable=True),
        sa.Column("submitted_at", TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_submissions_submitted_at", "submissions", ["submitted_at"])
    op.create_index("ix_submissions_user_type", "submissions", [sa.text("(profile->>'userType')")])
    op.create_index("ix_submissions_county", "submissions", [sa.text("(profile->>'county')")])
    op.create_index(
        "ix_submissions_profile_gin", "submissions", ["profile"], postgresql_using="gin",
    )

    # --- users ---
    op.create_table(
        "users",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.Text(), nullable=False, unique=True),
        sa.Column("name", sa.Text(), nullable=True),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="user"),
        sa.Column("created_at", TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_users_email", "users", ["email"])


def downgrade() -> None:
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    op.drop_index("ix_submissions_profile_gin", table_name="submissions")
    op.drop_index("ix_submissions_county", table_name="submissions")
    op.drop_index("ix_submissions_user_type", table_name="submissions")
    op.drop_index("ix_submissions_submitted_at", table_name="submissions")
    op.drop_table("submissions")

    op.drop_index("ix_questions_position", table_name="questions")
    op.drop_index("ix_questions_section", table_name="questions")
    op.drop_table("questions")
