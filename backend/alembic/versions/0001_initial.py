"""initial

Revision ID: 0001
Revises: 
Create Date: 2026-10-17
"""

from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(length=150), nullable=False),
        sa.Column("email", sa.String(length=255)),
        sa.Column("full_name", sa.String(length=255)),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="REP"),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    op.create_table(
        "dialpad_tokens",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False, unique=True),
        sa.Column("access_token", sa.Text(), nullable=False),
        sa.Column("refresh_token", sa.Text()),
        sa.Column("token_type", sa.String(length=40)),
        sa.Column("scope", sa.String(length=255)),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "oauth_states",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("state", sa.String(length=128), nullable=False, unique=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("code_challenge", sa.String(length=128)),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("consumed_at", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_oauth_states_user_id", "oauth_states", ["user_id"])

    op.create_table(
        "call_records",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("dialpad_call_id", sa.String(length=64)),
        sa.Column("direction", sa.String(length=10), nullable=False, server_default="outbound"),
        sa.Column("duration_seconds", sa.Integer(), server_default="0"),
        sa.Column("caller_number", sa.String(length=64)),
        sa.Column("callee_number", sa.String(length=64)),
        sa.Column("status", sa.String(length=40)),
        sa.Column("outcome", sa.String(length=64)),
        sa.Column("outbound_type", sa.String(length=40)),
        sa.Column("recording_url", sa.Text()),
        sa.Column("transcript", sa.Text()),
        sa.Column("dialpad_contact_id", sa.String(length=64)),
        sa.Column("related_contact_id", sa.String(length=64)),
        sa.Column("related_deal_id", sa.String(length=64)),
        sa.Column("related_company_id", sa.String(length=64)),
        sa.Column("rep_id", sa.Integer(), sa.ForeignKey("users.id")),
        sa.Column("call_timestamp", sa.DateTime(timezone=True)),
        sa.Column("notes", sa.Text()),
        sa.Column("dialpad_metadata", sa.JSON()),
        sa.Column("revision", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("dialpad_call_id", name="uq_call_records_dialpad_call_id"),
    )
    op.create_index("ix_call_records_caller_number", "call_records", ["caller_number"])
    op.create_index("ix_call_records_callee_number", "call_records", ["callee_number"])
    op.create_index("ix_call_records_related_contact_id", "call_records", ["related_contact_id"])
    op.create_index("ix_call_records_related_deal_id", "call_records", ["related_deal_id"])
    op.create_index("ix_call_records_call_timestamp", "call_records", ["call_timestamp"])

    op.create_table(
        "dialpad_webhooks",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("event_type", sa.String(length=80), nullable=False),
        sa.Column("event_id", sa.String(length=128), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("processed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("processed_at", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "call_analytics",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("call_id", sa.Integer(), sa.ForeignKey("call_records.id"), nullable=False, unique=True),
        sa.Column("sentiment_score", sa.Float()),
        sa.Column("sentiment_label", sa.String(length=20)),
        sa.Column("key_topics", sa.JSON()),
        sa.Column("action_items", sa.JSON()),
        sa.Column("call_quality_score", sa.Integer()),
        sa.Column("talk_time_ratio", sa.Float()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "notes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("deal_id", sa.String(length=64)),
        sa.Column("contact_id", sa.String(length=64)),
        sa.Column("company_id", sa.String(length=64)),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("note_type", sa.String(length=40), nullable=False, server_default="general"),
        sa.Column("source_call_id", sa.Integer(), sa.ForeignKey("call_records.id")),
        sa.Column("created_by", sa.Integer(), sa.ForeignKey("users.id")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_notes_deal_id", "notes", ["deal_id"])
    op.create_index("ix_notes_contact_id", "notes", ["contact_id"])
    op.create_index("ix_notes_source_call_id", "notes", ["source_call_id"])

    op.create_table(
        "enrichment_tasks",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("call_id", sa.Integer(), sa.ForeignKey("call_records.id"), nullable=False),
        sa.Column("kind", sa.String(length=20), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_error", sa.Text()),
        sa.Column("claimed_at", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("processed_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_enrichment_tasks_call_id", "enrichment_tasks", ["call_id"])
    op.create_index("ix_enrichment_tasks_status", "enrichment_tasks", ["status"])

    op.create_table(
        "sms_messages",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("dialpad_message_id", sa.String(length=64)),
        sa.Column("contact_id", sa.String(length=64)),
        sa.Column("deal_id", sa.String(length=64)),
        sa.Column("company_id", sa.String(length=64)),
        sa.Column("direction", sa.String(length=10), nullable=False, server_default="outbound"),
        sa.Column("from_number", sa.String(length=64), nullable=False),
        sa.Column("to_number", sa.String(length=64), nullable=False),
        sa.Column("message_body", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=20)),
        sa.Column("sent_at", sa.DateTime(timezone=True)),
        sa.Column("metadata", sa.JSON()),
        sa.Column("created_by", sa.Integer(), sa.ForeignKey("users.id")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_sms_messages_dialpad_message_id", "sms_messages", ["dialpad_message_id"])

    op.create_table(
        "eod_reports",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("report_date", sa.Date(), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True)),
        sa.Column("ended_at", sa.DateTime(timezone=True)),
        sa.Column("summary", sa.Text()),
        sa.Column("submitted_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("notified_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_eod_reports_user_id", "eod_reports", ["user_id"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer()),
        sa.Column("action", sa.String(length=120), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("message", sa.String(length=255)),
        sa.Column("metadata", sa.JSON()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_index("ix_eod_reports_user_id", table_name="eod_reports")
    op.drop_table("eod_reports")
    op.drop_index("ix_sms_messages_dialpad_message_id", table_name="sms_messages")
    op.drop_table("sms_messages")
    op.drop_index("ix_enrichment_tasks_status", table_name="enrichment_tasks")
    op.drop_index("ix_enrichment_tasks_call_id", table_name="enrichment_tasks")
    op.drop_table("enrichment_tasks")
    op.drop_index("ix_notes_source_call_id", table_name="notes")
    op.drop_index("ix_notes_contact_id", table_name="notes")
    op.drop_index("ix_notes_deal_id", table_name="notes")
    op.drop_table("notes")
    op.drop_table("call_analytics")
    op.drop_table("dialpad_webhooks")
    op.drop_index("ix_call_records_call_timestamp", table_name="call_records")
    op.drop_index("ix_call_records_related_deal_id", table_name="call_records")
    op.drop_index("ix_call_records_related_contact_id", table_name="call_records")
    op.drop_index("ix_call_records_callee_number", table_name="call_records")
    op.drop_index("ix_call_records_caller_number", table_name="call_records")
    op.drop_table("call_records")
    op.drop_index("ix_oauth_states_user_id", table_name="oauth_states")
    op.drop_table("oauth_states")
    op.drop_table("dialpad_tokens")
    op.drop_index("ix_users_username", table_name="users")
    op.drop_table("users")
