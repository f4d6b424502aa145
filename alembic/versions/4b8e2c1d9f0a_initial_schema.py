"""Initial schema for the CareConnect booking backend.

Revision ID: 4b8e2c1d9f0a
Revises:
Create Date: 2026-10-19 09:12:41.204518

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "4b8e2c1d9f0a"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role = sa.Enum("patient", "provider", "admin", name="userrole")
provider_type = sa.Enum("physiotherapist", "doctor", "nurse", name="providertype")
appointment_status = sa.Enum(
    "pending", "confirmed", "completed", "cancelled", "rescheduled", name="appointmentstatus"
)
visit_type = sa.Enum("online", "home", "clinic", name="visittype")
payment_status = sa.Enum("pending", "completed", "refunded", "failed", name="paymentstatus")
payment_method = sa.Enum("card", "wallet", name="paymentmethod")
discount_type = sa.Enum("percentage", "fixed", name="discounttype")
chat_role = sa.Enum("user", "assistant", name="chatrole")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("user_id", sa.String(length=26), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("phone", sa.String(length=32)),
        sa.Column("role", user_role, nullable=False, server_default="patient"),
        sa.Column("avatar_url", sa.String(length=255)),
        sa.Column("address", sa.String(length=255)),
        sa.Column("city", sa.String(length=120)),
        sa.Column("wallet_balance", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.CheckConstraint("wallet_balance >= 0", name="ck_users_wallet_non_negative"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "providers",
        sa.Column("provider_id", sa.String(length=26), primary_key=True),
        sa.Column("user_id", sa.String(length=26), sa.ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, unique=True),
        sa.Column("provider_type", provider_type, nullable=False),
        sa.Column("specialization", sa.String(length=255), nullable=False),
        sa.Column("bio", sa.Text()),
        sa.Column("years_experience", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("education", sa.String(length=255)),
        sa.Column("certifications", sa.JSON(), nullable=False),
        sa.Column("languages", sa.JSON(), nullable=False),
        sa.Column("consultation_fee", sa.Numeric(10, 2), nullable=False),
        sa.Column("home_visit_fee", sa.Numeric(10, 2)),
        sa.Column("is_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("rating", sa.Numeric(2, 1), nullable=False, server_default="0"),
        sa.Column("total_reviews", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("latitude", sa.Numeric(10, 8)),
        sa.Column("longitude", sa.Numeric(11, 8)),
        sa.Column("available_days", sa.JSON(), nullable=False),
        sa.Column("working_hours_start", sa.Time(), nullable=False),
        sa.Column("working_hours_end", sa.Time(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("consultation_fee >= 0", name="ck_providers_consultation_fee"),
        sa.CheckConstraint("home_visit_fee IS NULL OR home_visit_fee >= 0", name="ck_providers_home_visit_fee"),
        sa.CheckConstraint("working_hours_end > working_hours_start", name="ck_providers_working_hours"),
    )

    op.create_table(
        "services",
        sa.Column("service_id", sa.String(length=26), primary_key=True),
        sa.Column("provider_id", sa.String(length=26), sa.ForeignKey("providers.provider_id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("description", sa.String(length=255)),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.CheckConstraint("price >= 0", name="ck_services_price_positive"),
        sa.CheckConstraint("duration_minutes > 0", name="ck_services_duration_positive"),
    )
    op.create_index("ix_services_provider_id", "services", ["provider_id"])

    op.create_table(
        "time_slots",
        sa.Column("slot_id", sa.String(length=26), primary_key=True),
        sa.Column("provider_id", sa.String(length=26), sa.ForeignKey("providers.provider_id", ondelete="CASCADE"), nullable=False),
        sa.Column("slot_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("is_booked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_blocked", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.UniqueConstraint("provider_id", "slot_date", "start_time", name="uq_time_slot_start"),
        sa.CheckConstraint("end_time > start_time", name="ck_time_slots_time_order"),
        sa.CheckConstraint("NOT (is_booked AND is_blocked)", name="ck_time_slots_booked_xor_blocked"),
    )
    op.create_index("ix_time_slots_provider_date", "time_slots", ["provider_id", "slot_date"])

    op.create_table(
        "promo_codes",
        sa.Column("promo_id", sa.String(length=26), primary_key=True),
        sa.Column("code", sa.String(length=64), nullable=False),
        sa.Column("description", sa.String(length=255)),
        sa.Column("discount_type", discount_type, nullable=False),
        sa.Column("discount_value", sa.Numeric(10, 2), nullable=False),
        sa.Column("max_uses", sa.Integer()),
        sa.Column("used_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("valid_from", sa.DateTime(timezone=True), nullable=False),
        sa.Column("valid_until", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("applicable_providers", sa.JSON()),
        sa.Column("min_amount", sa.Numeric(10, 2)),
        *_timestamps(),
        sa.CheckConstraint("discount_value >= 0", name="ck_promo_codes_value_positive"),
        sa.CheckConstraint("used_count >= 0", name="ck_promo_codes_used_positive"),
        sa.CheckConstraint("max_uses IS NULL OR used_count <= max_uses", name="ck_promo_codes_usage_cap"),
        sa.CheckConstraint("valid_until > valid_from", name="ck_promo_codes_window"),
    )
    op.create_index("ix_promo_codes_code", "promo_codes", ["code"], unique=True)

    op.create_table(
        "provider_pricing_overrides",
        sa.Column("override_id", sa.String(length=26), primary_key=True),
        sa.Column("provider_id", sa.String(length=26), sa.ForeignKey("providers.provider_id", ondelete="CASCADE"), nullable=False),
        sa.Column("consultation_fee", sa.Numeric(10, 2)),
        sa.Column("home_visit_fee", sa.Numeric(10, 2)),
        sa.Column("discount_percentage", sa.Numeric(5, 2)),
        sa.Column("notes", sa.Text()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.CheckConstraint(
            "discount_percentage IS NULL OR (discount_percentage >= 0 AND discount_percentage <= 100)",
            name="ck_pricing_overrides_discount_range",
        ),
    )
    op.create_index(
        "uq_pricing_override_active_provider",
        "provider_pricing_overrides",
        ["provider_id"],
        unique=True,
        postgresql_where=sa.text("is_active"),
        sqlite_where=sa.text("is_active"),
    )

    op.create_table(
        "appointments",
        sa.Column("appointment_id", sa.String(length=26), primary_key=True),
        sa.Column("patient_id", sa.String(length=26), sa.ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False),
        sa.Column("provider_id", sa.String(length=26), sa.ForeignKey("providers.provider_id", ondelete="RESTRICT"), nullable=False),
        sa.Column("service_id", sa.String(length=26), sa.ForeignKey("services.service_id", ondelete="SET NULL")),
        sa.Column("time_slot_id", sa.String(length=26), sa.ForeignKey("time_slots.slot_id", ondelete="SET NULL")),
        sa.Column("promo_code_id", sa.String(length=26), sa.ForeignKey("promo_codes.promo_id", ondelete="SET NULL")),
        sa.Column(
            "rescheduled_from_id",
            sa.String(length=26),
            sa.ForeignKey("appointments.appointment_id", ondelete="SET NULL"),
        ),
        sa.Column("appointment_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("visit_type", visit_type, nullable=False),
        sa.Column("status", appointment_status, nullable=False, server_default="pending"),
        sa.Column("notes", sa.Text()),
        sa.Column("patient_address", sa.String(length=255)),
        sa.Column("total_amount", sa.Numeric(10, 2), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("end_time > start_time", name="ck_appointments_time_order"),
        sa.CheckConstraint("total_amount >= 0", name="ck_appointments_amount_positive"),
    )
    op.create_index("ix_appointments_provider_date", "appointments", ["provider_id", "appointment_date"])
    op.create_index("ix_appointments_patient", "appointments", ["patient_id"])

    op.create_table(
        "reviews",
        sa.Column("review_id", sa.String(length=26), primary_key=True),
        sa.Column(
            "appointment_id",
            sa.String(length=26),
            sa.ForeignKey("appointments.appointment_id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("patient_id", sa.String(length=26), sa.ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False),
        sa.Column("provider_id", sa.String(length=26), sa.ForeignKey("providers.provider_id", ondelete="CASCADE"), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("comment", sa.Text()),
        *_timestamps(),
        sa.CheckConstraint("rating BETWEEN 1 AND 5", name="ck_reviews_rating_range"),
    )
    op.create_index("ix_reviews_provider", "reviews", ["provider_id"])

    op.create_table(
        "payments",
        sa.Column("payment_id", sa.String(length=26), primary_key=True),
        sa.Column(
            "appointment_id",
            sa.String(length=26),
            sa.ForeignKey("appointments.appointment_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("patient_id", sa.String(length=26), sa.ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default="USD"),
        sa.Column("payment_method", payment_method, nullable=False, server_default="card"),
        sa.Column("status", payment_status, nullable=False, server_default="pending"),
        sa.Column("external_reference", sa.String(length=255)),
        *_timestamps(),
        sa.CheckConstraint("amount >= 0", name="ck_payments_amount_positive"),
    )
    op.create_index("ix_payments_appointment", "payments", ["appointment_id"])

    op.create_table(
        "chat_messages",
        sa.Column("message_id", sa.String(length=26), primary_key=True),
        sa.Column("user_id", sa.String(length=26), sa.ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("role", chat_role, nullable=False, server_default="user"),
        *_timestamps(),
    )
    op.create_index("ix_chat_messages_user_created", "chat_messages", ["user_id", "created_at"])


def downgrade() -> None:
    op.drop_index("ix_chat_messages_user_created", table_name="chat_messages")
    op.drop_table("chat_messages")
    op.drop_index("ix_payments_appointment", table_name="payments")
    op.drop_table("payments")
    op.drop_index("ix_reviews_provider", table_name="reviews")
    op.drop_table("reviews")
    op.drop_index("ix_appointments_patient", table_name="appointments")
    op.drop_index("ix_appointments_provider_date", table_name="appointments")
    op.drop_table("appointments")
    op.drop_index("uq_pricing_override_active_provider", table_name="provider_pricing_overrides")
    op.drop_table("provider_pricing_overrides")
    op.drop_index("ix_promo_codes_code", table_name="promo_codes")
    op.drop_table("promo_codes")
    op.drop_index("ix_time_slots_provider_date", table_name="time_slots")
    op.drop_table("time_slots")
    op.drop_index("ix_services_provider_id", table_name="services")
    op.drop_table("services")
    op.drop_table("providers")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    bind = op.get_bind()
    for enum in (
        chat_role,
        discount_type,
        payment_method,
        payment_status,
        visit_type,
        appointment_status,
        provider_type,
        user_role,
    ):
        enum.drop(bind, checkfirst=True)
