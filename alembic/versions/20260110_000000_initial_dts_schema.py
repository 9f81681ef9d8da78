"""Initial schema for the DTS server

Revision ID: 20260110_000000
Revises: None
Create Date: 2026-01-10 00:00:00.000000

This is the initial migration that creates all tables of the DTS server:
- Accounts (country accounts, users, login sessions, API keys)
- HIP hazard taxonomy and the sector tree
- Events (shared event rows, hazardous events, disaster events and their relations)
- Disaster records with sector relations, losses, damages and disruptions
- Human effects (disaggregations, per category metrics, category presence)
- Reference data (assets, units, measures, divisions) and the audit log

Revision format: YYYYMMDD_HHMMSS_description

"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "20260110_000000"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _money(name: str) -> sa.Column:
    return sa.Column(name, sa.Numeric(18, 2), nullable=True)


def _currency(name: str) -> sa.Column:
    return sa.Column(name, sa.String(8), nullable=True)


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def _tenant() -> sa.Column:
    return sa.Column("country_accounts_id", sa.String(36), sa.ForeignKey("country_accounts.id"), nullable=True)


def _import_id() -> sa.Column:
    return sa.Column("api_import_id", sa.String(128), nullable=True)


def _hip() -> list:
    return [
        sa.Column("hip_type_id", sa.String(64), sa.ForeignKey("hip_type.id"), nullable=True),
        sa.Column("hip_cluster_id", sa.String(64), sa.ForeignKey("hip_cluster.id"), nullable=True),
        sa.Column("hip_hazard_id", sa.String(64), sa.ForeignKey("hip_hazard.id"), nullable=True),
    ]


def _files() -> list:
    return [
        sa.Column("spatial_footprint", JSONB(), nullable=True),
        sa.Column("attachments", JSONB(), nullable=True),
    ]


def _record_effect() -> list:
    """Columns shared by the tables holding effects of a record in a sector."""
    return [
        sa.Column("id", sa.String(36), nullable=False),
        _import_id(),
        sa.Column("record_id", sa.String(36), sa.ForeignKey("disaster_records.id"), nullable=False),
        sa.Column("sector_id", sa.String(64), sa.ForeignKey("sector.id"), nullable=False),
    ]


def upgrade() -> None:
    """Create all tables."""

    # Accounts
    op.create_table(
        "country_accounts",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("short_description", sa.String(255), nullable=False, server_default=""),
        sa.Column("country_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("type", sa.String(32), nullable=False, server_default="official"),
        sa.Column("status", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "user",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password", sa.String(255), nullable=False, server_default=""),
        sa.Column("first_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("last_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("role", sa.String(32), nullable=False, server_default="data-viewer"),
        _tenant(),
        sa.Column("email_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_user_email", "email", unique=True),
    )

    op.create_table(
        "session",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("last_active_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_session_user_id", "user_id"),
    )

    op.create_table(
        "api_key",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("secret", sa.String(128), nullable=False),
        sa.Column("name", sa.String(255), nullable=False, server_default=""),
        sa.Column("manager_id", sa.String(36), sa.ForeignKey("user.id"), nullable=False),
        _tenant(),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_api_key_secret", "secret", unique=True),
    )

    # HIP taxonomy and sectors
    op.create_table(
        "hip_type",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("name_en", sa.String(255), nullable=False, server_default=""),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "hip_cluster",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("type_id", sa.String(64), sa.ForeignKey("hip_type.id"), nullable=False),
        sa.Column("name_en", sa.String(255), nullable=False, server_default=""),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_hip_cluster_type_id", "type_id"),
    )

    op.create_table(
        "hip_hazard",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("code", sa.String(64), nullable=False, server_default=""),
        sa.Column("cluster_id", sa.String(64), sa.ForeignKey("hip_cluster.id"), nullable=False),
        sa.Column("name_en", sa.String(255), nullable=False, server_default=""),
        sa.Column("description_en", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_hip_hazard_cluster_id", "cluster_id"),
    )

    op.create_table(
        "sector",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("parent_id", sa.String(64), sa.ForeignKey("sector.id"), nullable=True),
        sa.Column("sectorname", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("level", sa.Integer(), nullable=False, server_default="1"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_sector_parent_id", "parent_id"),
    )

    # Events
    op.create_table(
        "event",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("name", sa.String(255), nullable=False, server_default=""),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "event_relationship",
        sa.Column("parent_id", sa.String(36), sa.ForeignKey("event.id"), nullable=False),
        sa.Column("child_id", sa.String(36), sa.ForeignKey("event.id"), nullable=False),
        sa.Column("type", sa.String(32), nullable=False, server_default="caused_by"),
        sa.PrimaryKeyConstraint("parent_id", "child_id"),
    )

    op.create_table(
        "hazardous_event",
        sa.Column("id", sa.String(36), sa.ForeignKey("event.id"), nullable=False),
        _tenant(),
        _import_id(),
        *_hip(),
        sa.Column("national_specification", sa.Text(), nullable=False, server_default=""),
        sa.Column("start_date", sa.String(10), nullable=False, server_default=""),
        sa.Column("end_date", sa.String(10), nullable=False, server_default=""),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("chains_explanation", sa.Text(), nullable=False, server_default=""),
        sa.Column("magnitude", sa.Text(), nullable=False, server_default=""),
        sa.Column("record_originator", sa.Text(), nullable=False, server_default=""),
        sa.Column("data_source", sa.Text(), nullable=False, server_default=""),
        sa.Column("hazardous_event_status", sa.String(32), nullable=True),
        sa.Column("approval_status", sa.String(32), nullable=False, server_default="draft"),
        *_files(),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_hazardous_event_country_accounts_id", "country_accounts_id"),
        sa.Index("ix_hazardous_event_api_import_id", "api_import_id"),
    )

    op.create_table(
        "disaster_event",
        sa.Column("id", sa.String(36), sa.ForeignKey("event.id"), nullable=False),
        _tenant(),
        _import_id(),
        sa.Column("hazardous_event_id", sa.String(36), sa.ForeignKey("hazardous_event.id"), nullable=True),
        sa.Column("national_disaster_id", sa.Text(), nullable=False, server_default=""),
        sa.Column("name_national", sa.Text(), nullable=False, server_default=""),
        sa.Column("glide", sa.Text(), nullable=False, server_default=""),
        sa.Column("start_date", sa.String(10), nullable=False, server_default=""),
        sa.Column("end_date", sa.String(10), nullable=False, server_default=""),
        sa.Column("disaster_declaration", sa.String(16), nullable=False, server_default="unknown"),
        sa.Column("approval_status", sa.String(32), nullable=False, server_default="draft"),
        _money("repair_costs_local_currency_override"),
        _money("repair_costs_local_currency_calc"),
        _money("replacement_costs_local_currency_override"),
        _money("replacement_costs_local_currency_calc"),
        _money("recovery_needs_local_currency_override"),
        _money("recovery_needs_local_currency_calc"),
        _money("rehabilitation_costs_local_currency_override"),
        _money("rehabilitation_costs_local_currency_calc"),
        _money("effects_total_usd"),
        *_files(),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_disaster_event_country_accounts_id", "country_accounts_id"),
        sa.Index("ix_disaster_event_api_import_id", "api_import_id"),
        sa.Index("ix_disaster_event_hazardous_event_id", "hazardous_event_id"),
    )

    # Disaster records
    op.create_table(
        "disaster_records",
        sa.Column("id", sa.String(36), nullable=False),
        _tenant(),
        _import_id(),
        sa.Column("disaster_event_id", sa.String(36), sa.ForeignKey("disaster_event.id"), nullable=True),
        *_hip(),
        sa.Column("location_desc", sa.Text(), nullable=False, server_default=""),
        sa.Column("start_date", sa.String(10), nullable=False, server_default=""),
        sa.Column("end_date", sa.String(10), nullable=False, server_default=""),
        sa.Column("primary_data_source", sa.Text(), nullable=False, server_default=""),
        sa.Column("other_data_source", sa.Text(), nullable=False, server_default=""),
        sa.Column("originator_recorded_by", sa.Text(), nullable=False, server_default=""),
        sa.Column("validated_by", sa.Text(), nullable=False, server_default=""),
        sa.Column("approval_status", sa.String(32), nullable=False, server_default="draft"),
        *_files(),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_disaster_records_country_accounts_id", "country_accounts_id"),
        sa.Index("ix_disaster_records_api_import_id", "api_import_id"),
        sa.Index("ix_disaster_records_disaster_event_id", "disaster_event_id"),
    )

    op.create_table(
        "sector_disaster_records_relation",
        sa.Column("id", sa.String(36), nullable=False),
        _import_id(),
        sa.Column("sector_id", sa.String(64), sa.ForeignKey("sector.id"), nullable=False),
        sa.Column("disaster_record_id", sa.String(36), sa.ForeignKey("disaster_records.id"), nullable=False),
        sa.Column("with_damage", sa.Boolean(), nullable=True),
        _money("damage_cost"),
        _currency("damage_cost_currency"),
        _money("damage_recovery_cost"),
        _currency("damage_recovery_cost_currency"),
        sa.Column("with_disruption", sa.Boolean(), nullable=True),
        sa.Column("with_losses", sa.Boolean(), nullable=True),
        _money("losses_cost"),
        _currency("losses_cost_currency"),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_sector_disaster_records_relation_disaster_record_id", "disaster_record_id"),
        sa.Index("ix_sector_disaster_records_relation_sector_id", "sector_id"),
    )

    # Reference data
    op.create_table(
        "asset",
        sa.Column("id", sa.String(36), nullable=False),
        _import_id(),
        _tenant(),
        sa.Column("sector_ids", sa.Text(), nullable=False, server_default=""),
        sa.Column("name", sa.String(255), nullable=False, server_default=""),
        sa.Column("category", sa.String(255), nullable=False, server_default=""),
        sa.Column("national_id", sa.String(255), nullable=False, server_default=""),
        sa.Column("notes", sa.Text(), nullable=False, server_default=""),
        sa.Column("custom_name", sa.String(255), nullable=True),
        sa.Column("is_built_in", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_asset_country_accounts_id", "country_accounts_id"),
    )

    op.create_table(
        "unit",
        sa.Column("id", sa.String(36), nullable=False),
        _import_id(),
        sa.Column("type", sa.String(16), nullable=False, server_default="number"),
        sa.Column("name", sa.String(255), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "measure",
        sa.Column("id", sa.String(36), nullable=False),
        _import_id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("unit", sa.String(255), nullable=False, server_default=""),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "division",
        sa.Column("id", sa.String(36), nullable=False),
        _import_id(),
        _tenant(),
        sa.Column("parent_id", sa.String(36), sa.ForeignKey("division.id"), nullable=True),
        sa.Column("import_id", sa.String(128), nullable=True),
        sa.Column("national_id", sa.String(128), nullable=True),
        sa.Column("name", JSONB(), nullable=False, server_default="{}"),
        sa.Column("level", sa.Integer(), nullable=False, server_default="1"),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_division_country_accounts_id", "country_accounts_id"),
        sa.Index("ix_division_parent_id", "parent_id"),
    )

    # Effects of a record in a sector
    op.create_table(
        "losses",
        *_record_effect(),
        sa.Column("sector_is_agriculture", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("type_not_agriculture", sa.String(64), nullable=True),
        sa.Column("type_agriculture", sa.String(64), nullable=True),
        sa.Column("related_to_not_agriculture", sa.String(64), nullable=True),
        sa.Column("related_to_agriculture", sa.String(64), nullable=True),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("public_unit", sa.String(32), nullable=True),
        sa.Column("public_units", sa.Float(), nullable=True),
        _money("public_cost_unit"),
        _currency("public_cost_unit_currency"),
        _money("public_cost_total"),
        sa.Column("public_cost_total_override", sa.Boolean(), nullable=True),
        sa.Column("private_unit", sa.String(32), nullable=True),
        sa.Column("private_units", sa.Float(), nullable=True),
        _money("private_cost_unit"),
        _currency("private_cost_unit_currency"),
        _money("private_cost_total"),
        sa.Column("private_cost_total_override", sa.Boolean(), nullable=True),
        *_files(),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_losses_record_id", "record_id"),
        sa.Index("ix_losses_sector_id", "sector_id"),
    )

    damaged_or_destroyed = []
    for prefix, cost in (("pd", "repair"), ("td", "replacement")):
        damaged_or_destroyed += [
            sa.Column(f"{prefix}_damage_amount", sa.Float(), nullable=True),
            _money(f"{prefix}_{cost}_cost_unit"),
            _currency(f"{prefix}_{cost}_cost_unit_currency"),
            _money(f"{prefix}_{cost}_cost_total"),
            sa.Column(f"{prefix}_{cost}_cost_total_override", sa.Boolean(), nullable=True),
            _money(f"{prefix}_recovery_cost_unit"),
            _currency(f"{prefix}_recovery_cost_unit_currency"),
            _money(f"{prefix}_recovery_cost_total"),
            sa.Column(f"{prefix}_recovery_cost_total_override", sa.Boolean(), nullable=True),
            sa.Column(f"{prefix}_disruption_duration_days", sa.Float(), nullable=True),
            sa.Column(f"{prefix}_disruption_duration_hours", sa.Float(), nullable=True),
            sa.Column(f"{prefix}_disruption_users_affected", sa.Float(), nullable=True),
            sa.Column(f"{prefix}_disruption_people_affected", sa.Float(), nullable=True),
            sa.Column(f"{prefix}_disruption_description", sa.Text(), nullable=False, server_default=""),
        ]

    op.create_table(
        "damages",
        *_record_effect(),
        sa.Column("asset_id", sa.String(36), sa.ForeignKey("asset.id"), nullable=True),
        sa.Column("unit", sa.String(32), nullable=True),
        sa.Column("total_damage_amount", sa.Float(), nullable=True),
        sa.Column("total_damage_amount_override", sa.Boolean(), nullable=True),
        _money("total_repair_replacement"),
        sa.Column("total_repair_replacement_override", sa.Boolean(), nullable=True),
        _money("total_recovery"),
        sa.Column("total_recovery_override", sa.Boolean(), nullable=True),
        *damaged_or_destroyed,
        *_files(),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_damages_record_id", "record_id"),
        sa.Index("ix_damages_sector_id", "sector_id"),
    )

    op.create_table(
        "disruption",
        *_record_effect(),
        sa.Column("duration_days", sa.Float(), nullable=True),
        sa.Column("duration_hours", sa.Float(), nullable=True),
        sa.Column("users_affected", sa.Float(), nullable=True),
        sa.Column("people_affected", sa.Float(), nullable=True),
        sa.Column("comment", sa.Text(), nullable=False, server_default=""),
        sa.Column("response_operation", sa.Text(), nullable=False, server_default=""),
        _money("response_cost"),
        _currency("response_currency"),
        *_files(),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_disruption_record_id", "record_id"),
        sa.Index("ix_disruption_sector_id", "sector_id"),
    )

    # Human effects
    op.create_table(
        "human_dsg",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("record_id", sa.String(36), sa.ForeignKey("disaster_records.id"), nullable=False),
        sa.Column("sex", sa.String(16), nullable=True),
        sa.Column("age", sa.String(16), nullable=True),
        sa.Column("disability", sa.String(80), nullable=True),
        sa.Column("global_poverty_line", sa.String(16), nullable=True),
        sa.Column("national_poverty_line", sa.String(16), nullable=True),
        sa.Column("custom", JSONB(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_human_dsg_record_id", "record_id"),
    )

    metric_tables = {
        "deaths": [sa.Column("deaths", sa.Integer(), nullable=True)],
        "injured": [sa.Column("injured", sa.Integer(), nullable=True)],
        "missing": [
            sa.Column("as_of", sa.Date(), nullable=True),
            sa.Column("missing", sa.Integer(), nullable=True),
        ],
        "affected": [
            sa.Column("direct", sa.Integer(), nullable=True),
            sa.Column("indirect", sa.Integer(), nullable=True),
        ],
        "displaced": [
            sa.Column("assisted", sa.String(16), nullable=True),
            sa.Column("timing", sa.String(16), nullable=True),
            sa.Column("duration", sa.String(16), nullable=True),
            sa.Column("as_of", sa.Date(), nullable=True),
            sa.Column("displaced", sa.Integer(), nullable=True),
        ],
    }
    for table_name, columns in metric_tables.items():
        op.create_table(
            table_name,
            sa.Column("id", sa.String(36), nullable=False),
            sa.Column("dsg_id", sa.String(36), sa.ForeignKey("human_dsg.id"), nullable=False),
            *columns,
            sa.PrimaryKeyConstraint("id"),
            sa.Index(f"ix_{table_name}_dsg_id", "dsg_id"),
        )

    op.create_table(
        "human_category_presence",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("record_id", sa.String(36), sa.ForeignKey("disaster_records.id"), nullable=False),
        sa.Column("deaths", sa.Boolean(), nullable=True),
        sa.Column("injured", sa.Boolean(), nullable=True),
        sa.Column("missing", sa.Boolean(), nullable=True),
        sa.Column("affected_direct", sa.Boolean(), nullable=True),
        sa.Column("affected_indirect", sa.Boolean(), nullable=True),
        sa.Column("displaced", sa.Boolean(), nullable=True),
        *[sa.Column(f"{name}_total_group_flags", JSONB(), nullable=True) for name in metric_tables],
        sa.Column("totals", JSONB(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("record_id"),
    )

    op.create_table(
        "human_dsg_config",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("country_accounts_id", sa.String(36), sa.ForeignKey("country_accounts.id"), nullable=False),
        sa.Column("custom", JSONB(), nullable=True),
        sa.Column("hidden", JSONB(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("country_accounts_id"),
    )

    # Audit log
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("table_name", sa.String(64), nullable=False),
        sa.Column("record_id", sa.String(64), nullable=False),
        sa.Column("user_id", sa.String(36), nullable=True),
        sa.Column("action", sa.String(16), nullable=False),
        sa.Column("old_values", JSONB(), nullable=True),
        sa.Column("new_values", JSONB(), nullable=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_audit_logs_table_name", "table_name"),
        sa.Index("ix_audit_logs_record_id", "record_id"),
    )


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    for table_name in (
        "audit_logs",
        "human_dsg_config",
        "human_category_presence",
        "displaced",
        "affected",
        "missing",
        "injured",
        "deaths",
        "human_dsg",
        "disruption",
        "damages",
        "losses",
        "division",
        "measure",
        "unit",
        "sector_disaster_records_relation",
        "disaster_records",
        "asset",
        "disaster_event",
        "hazardous_event",
        "event_relationship",
        "event",
        "sector",
        "hip_hazard",
        "hip_cluster",
        "hip_type",
        "api_key",
        "session",
        "user",
        "country_accounts",
    ):
        op.drop_table(table_name)
