"""Create claims submission tables.

Revision ID: 20261019_001
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa

# Revision identifiers
revision = "20261019_001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create clearinghouse, claim, submission, remittance and history tables."""

    # NOTE: Status columns are plain strings; the models validate them
    # against the Python enums.

    op.create_table(
        "clearinghouse_configs",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("tenant_id", sa.Uuid(), nullable=False, index=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("clearinghouse_type", sa.String(32), nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("is_default", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("api_endpoint", sa.String(500), nullable=True),
        sa.Column("api_key", sa.String(500), nullable=True),
        sa.Column("sftp_host", sa.String(255), nullable=True),
        sa.Column("sftp_port", sa.Integer, nullable=True),
        sa.Column("sftp_username", sa.String(100), nullable=True),
        sa.Column("sender_id", sa.String(15), nullable=True),
        sa.Column("receiver_id", sa.String(15), nullable=True),
        sa.Column("trading_partner_id", sa.String(50), nullable=True),
        sa.Column("submission_format", sa.String(32), nullable=False),
        sa.Column("submission_method", sa.String(32), nullable=False),
        sa.Column("batch_enabled", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("max_batch_size", sa.Integer, nullable=False, server_default="100"),
        sa.Column("settings", sa.JSON, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "idx_clearinghouse_configs_tenant_default",
        "clearinghouse_configs",
        ["tenant_id", "is_default"],
    )

    op.create_table(
        "claims",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("tenant_id", sa.Uuid(), nullable=False, index=True),
        sa.Column("claim_number", sa.String(50), nullable=False, index=True),
        sa.Column("encounter_id", sa.String(64), nullable=True),
        sa.Column("patient_display_name", sa.String(200), nullable=True),
        sa.Column("status", sa.String(32), nullable=False, index=True),
        sa.Column("total_charges", sa.Numeric(12, 2), nullable=False),
        sa.Column("paid_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("patient_responsibility", sa.Numeric(12, 2), nullable=False),
        sa.Column("service_date", sa.Date, nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("idx_claims_tenant_status", "claims", ["tenant_id", "status"])

    op.create_table(
        "claim_submission_batches",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("tenant_id", sa.Uuid(), nullable=False, index=True),
        sa.Column(
            "clearinghouse_id",
            sa.Uuid(),
            sa.ForeignKey("clearinghouse_configs.id"),
            nullable=False,
        ),
        sa.Column("batch_number", sa.String(50), nullable=False),
        sa.Column("claim_ids", sa.JSON, nullable=False),
        sa.Column("total_claims", sa.Integer, nullable=False),
        sa.Column("submitted_claims", sa.Integer, nullable=False),
        sa.Column("failed_claims", sa.Integer, nullable=False),
        sa.Column("errors", sa.JSON, nullable=False),
        sa.Column("status", sa.String(32), nullable=False),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by", sa.String(100), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "claim_submissions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("tenant_id", sa.Uuid(), nullable=False, index=True),
        sa.Column(
            "claim_id",
            sa.Uuid(),
            sa.ForeignKey("claims.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column(
            "clearinghouse_id",
            sa.Uuid(),
            sa.ForeignKey("clearinghouse_configs.id"),
            nullable=False,
            index=True,
        ),
        sa.Column(
            "batch_id",
            sa.Uuid(),
            sa.ForeignKey("claim_submission_batches.id", ondelete="SET NULL"),
            nullable=True,
            index=True,
        ),
        sa.Column("submission_number", sa.String(50), nullable=False),
        sa.Column("x12_claim_id", sa.String(50), nullable=False),
        sa.Column("patient_control_number", sa.String(38), nullable=True, index=True),
        sa.Column("isa_control_number", sa.BigInteger, nullable=True),
        sa.Column("gs_control_number", sa.BigInteger, nullable=True),
        sa.Column("st_control_number", sa.BigInteger, nullable=True),
        sa.Column("x12_content", sa.Text, nullable=True),
        sa.Column("status", sa.String(32), nullable=False, index=True),
        sa.Column("status_code", sa.String(20), nullable=True),
        sa.Column("status_message", sa.Text, nullable=True),
        sa.Column("response_data", sa.JSON, nullable=True),
        sa.Column("error_code", sa.String(50), nullable=True),
        sa.Column("error_message", sa.Text, nullable=True),
        sa.Column("retry_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_status_check_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("submitted_by", sa.String(100), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "idx_claim_submissions_claim_submitted",
        "claim_submissions",
        ["claim_id", "submitted_at"],
    )

    op.create_table(
        "x12_control_numbers",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("tenant_id", sa.Uuid(), nullable=False),
        sa.Column("partner_key", sa.String(64), nullable=False),
        sa.Column("clearinghouse_id", sa.Uuid(), nullable=True),
        sa.Column("isa_control_number", sa.BigInteger, nullable=False, server_default="0"),
        sa.Column("gs_control_number", sa.BigInteger, nullable=False, server_default="0"),
        sa.Column("st_control_number", sa.BigInteger, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "uq_x12_control_numbers",
        "x12_control_numbers",
        ["tenant_id", "partner_key"],
        unique=True,
    )

    op.create_table(
        "remittance_advices",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("tenant_id", sa.Uuid(), nullable=False, index=True),
        sa.Column(
            "claim_id",
            sa.Uuid(),
            sa.ForeignKey("claims.id", ondelete="SET NULL"),
            nullable=True,
            index=True,
        ),
        sa.Column("remittance_number", sa.String(50), nullable=False),
        sa.Column("claim_reference", sa.String(50), nullable=True),
        sa.Column("payment_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("patient_responsibility", sa.Numeric(12, 2), nullable=False),
        sa.Column("adjustment_codes", sa.JSON, nullable=False),
        sa.Column("service_lines", sa.JSON, nullable=False),
        sa.Column("raw_content", sa.Text, nullable=True),
        sa.Column("status", sa.String(32), nullable=False),
        sa.Column("received_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("processed_by", sa.String(100), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "claim_payments",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("tenant_id", sa.Uuid(), nullable=False),
        sa.Column(
            "claim_id",
            sa.Uuid(),
            sa.ForeignKey("claims.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column(
            "remittance_id",
            sa.Uuid(),
            sa.ForeignKey("remittance_advices.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("payment_date", sa.Date, nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("payment_method", sa.String(20), nullable=False),
        sa.Column("payer", sa.String(100), nullable=False),
        sa.Column("reference_number", sa.String(50), nullable=True),
        sa.Column("posted_by", sa.String(100), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "claim_status_history",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("tenant_id", sa.Uuid(), nullable=False),
        sa.Column(
            "claim_id",
            sa.Uuid(),
            sa.ForeignKey("claims.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("status", sa.String(40), nullable=False),
        sa.Column("status_code", sa.String(20), nullable=True),
        sa.Column("note", sa.Text, nullable=True),
        sa.Column("source", sa.String(32), nullable=False),
        sa.Column("changed_by", sa.String(100), nullable=True),
        sa.Column("changed_at", sa.DateTime(timezone=True), nullable=False, index=True),
    )


def downgrade() -> None:
    """Drop claims submission tables."""
    op.drop_table("claim_status_history")
    op.drop_table("claim_payments")
    op.drop_table("remittance_advices")
    op.drop_index("uq_x12_control_numbers", table_name="x12_control_numbers")
    op.drop_table("x12_control_numbers")
    op.drop_index("idx_claim_submissions_claim_submitted", table_name="claim_submissions")
    op.drop_table("claim_submissions")
    op.drop_table("claim_submission_batches")
    op.drop_index("idx_claims_tenant_status", table_name="claims")
    op.drop_table("claims")
    op.drop_index("idx_clearinghouse_configs_tenant_default", table_name="clearinghouse_configs")
    op.drop_table("clearinghouse_configs")
