"""Initial schema for workshop planner backend.

Revision ID: 4b8e2c1d9a7f
Revises:
Create Date: 2026-09-21 09:12:44.518203

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "4b8e2c1d9a7f"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role = sa.Enum("admin", "technician", name="userrole")
customer_status = sa.Enum("active", "inactive", name="customerstatus")
absence_status = sa.Enum("pending", "approved", "rejected", name="absencestatus")
appointment_priority = sa.Enum("low", "normal", "high", "urgent", name="appointmentpriority")
appointment_status = sa.Enum(
    "waiting", "assigned", "in_progress", "paused", "completed", "cancelled", name="appointmentstatus"
)
assignment_status = sa.Enum("scheduled", "in_progress", "completed", "cancelled", name="assignmentstatus")
notification_type = sa.Enum("info", "success", "warning", "error", name="notificationtype")


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
        sa.Column("role", user_role, nullable=False, server_default="technician"),
        sa.Column("display_name", sa.String(length=100)),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "customers",
        sa.Column("customer_id", sa.String(length=26), primary_key=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("email", sa.String(length=255)),
        sa.Column("phone", sa.String(length=32)),
        sa.Column("address", sa.Text()),
        sa.Column("status", customer_status, nullable=False, server_default="active"),
        *_timestamps(),
    )

    op.create_table(
        "vehicles",
        sa.Column("vehicle_id", sa.String(length=26), primary_key=True),
        sa.Column(
            "customer_id",
            sa.String(length=26),
            sa.ForeignKey("customers.customer_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("make", sa.String(length=60), nullable=False),
        sa.Column("model", sa.String(length=60), nullable=False),
        sa.Column("year", sa.Integer()),
        sa.Column("vin", sa.String(length=17)),
        sa.Column("license_plate", sa.String(length=20)),
        sa.Column("color", sa.String(length=40)),
        *_timestamps(),
    )
    op.create_index("ix_vehicles_customer_id", "vehicles", ["customer_id"])
    op.create_index("ix_vehicles_license_plate", "vehicles", ["license_plate"])

    op.create_table(
        "technicians",
        sa.Column("technician_id", sa.String(length=26), primary_key=True),
        sa.Column("user_id", sa.String(length=26), sa.ForeignKey("users.user_id", ondelete="SET NULL"), unique=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255)),
        sa.Column("phone", sa.String(length=32)),
        sa.Column("shift_start", sa.Time()),
        sa.Column("shift_end", sa.Time()),
        sa.Column("aw_capacity_per_day", sa.Integer()),
        sa.Column("specialization", sa.String(length=255)),
        sa.Column("skills", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.CheckConstraint(
            "aw_capacity_per_day IS NULL OR aw_capacity_per_day >= 0",
            name="ck_technicians_capacity_non_negative",
        ),
    )

    op.create_table(
        "technician_absences",
        sa.Column("absence_id", sa.String(length=26), primary_key=True),
        sa.Column(
            "technician_id",
            sa.String(length=26),
            sa.ForeignKey("technicians.technician_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("absence_date", sa.Date(), nullable=False),
        sa.Column("from_time", sa.Time()),
        sa.Column("to_time", sa.Time()),
        sa.Column("type", sa.String(length=32), nullable=False, server_default="vacation"),
        sa.Column("reason", sa.Text()),
        sa.Column("status", absence_status, nullable=False, server_default="approved"),
        *_timestamps(),
    )
    op.create_index(
        "ix_technician_absences_technician_date",
        "technician_absences",
        ["technician_id", "absence_date"],
    )

    op.create_table(
        "skills",
        sa.Column("skill_id", sa.String(length=26), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False, unique=True),
        sa.Column("category", sa.String(length=64), nullable=False, server_default="general"),
        sa.Column("description", sa.Text()),
        *_timestamps(),
    )

    op.create_table(
        "technician_skills",
        sa.Column("technician_skill_id", sa.String(length=26), primary_key=True),
        sa.Column(
            "technician_id",
            sa.String(length=26),
            sa.ForeignKey("technicians.technician_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "skill_id",
            sa.String(length=26),
            sa.ForeignKey("skills.skill_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("proficiency_level", sa.Integer(), nullable=False, server_default="4"),
        *_timestamps(),
        sa.UniqueConstraint("technician_id", "skill_id", name="uq_technician_skills_pair"),
        sa.CheckConstraint(
            "proficiency_level >= 1 AND proficiency_level <= 5",
            name="ck_technician_skills_proficiency_range",
        ),
    )

    op.create_table(
        "services",
        sa.Column("service_id", sa.String(length=26), primary_key=True),
        sa.Column("name", sa.String(length=120), nullable=False, unique=True),
        sa.Column("description", sa.Text()),
        sa.Column("default_aw_estimate", sa.Integer(), nullable=False, server_default="10"),
        sa.Column("required_skills", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.CheckConstraint("default_aw_estimate > 0", name="ck_services_aw_positive"),
    )

    op.create_table(
        "appointments",
        sa.Column("appointment_id", sa.String(length=26), primary_key=True),
        sa.Column("appointment_date", sa.Date(), nullable=False),
        sa.Column(
            "customer_id",
            sa.String(length=26),
            sa.ForeignKey("customers.customer_id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "vehicle_id",
            sa.String(length=26),
            sa.ForeignKey("vehicles.vehicle_id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "service_id",
            sa.String(length=26),
            sa.ForeignKey("services.service_id", ondelete="SET NULL"),
        ),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("notes", sa.Text()),
        sa.Column("aw_estimate", sa.Integer(), nullable=False),
        sa.Column("priority", appointment_priority, nullable=False, server_default="normal"),
        sa.Column("status", appointment_status, nullable=False, server_default="waiting"),
        sa.Column("required_skills", sa.JSON(), nullable=False),
        sa.Column("sla_promised_at", sa.DateTime(timezone=True)),
        sa.Column("flags", sa.JSON(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("aw_estimate > 0", name="ck_appointments_aw_positive"),
    )
    op.create_index("ix_appointments_date_status", "appointments", ["appointment_date", "status"])

    op.create_table(
        "schedule_assignments",
        sa.Column("assignment_id", sa.String(length=26), primary_key=True),
        sa.Column(
            "appointment_id",
            sa.String(length=26),
            sa.ForeignKey("appointments.appointment_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "technician_id",
            sa.String(length=26),
            sa.ForeignKey("technicians.technician_id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("aw_planned", sa.Integer(), nullable=False),
        sa.Column("status", assignment_status, nullable=False, server_default="scheduled"),
        *_timestamps(),
        sa.CheckConstraint("end_time > start_time", name="ck_schedule_assignments_time_order"),
    )
    op.create_index("ix_schedule_assignments_appointment_id", "schedule_assignments", ["appointment_id"])
    op.create_index(
        "ix_schedule_assignments_technician_start",
        "schedule_assignments",
        ["technician_id", "start_time"],
    )

    op.create_table(
        "notifications",
        sa.Column("notification_id", sa.String(length=26), primary_key=True),
        sa.Column(
            "user_id",
            sa.String(length=26),
            sa.ForeignKey("users.user_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("type", notification_type, nullable=False, server_default="info"),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("action_link", sa.String(length=255)),
        sa.Column("action_label", sa.String(length=60)),
        sa.Column("dedupe_key", sa.String(length=120)),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "dedupe_key", name="uq_notification_dedupe"),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_notifications_user_id", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("ix_schedule_assignments_technician_start", table_name="schedule_assignments")
    op.drop_index("ix_schedule_assignments_appointment_id", table_name="schedule_assignments")
    op.drop_table("schedule_assignments")
    op.drop_index("ix_appointments_date_status", table_name="appointments")
    op.drop_table("appointments")
    op.drop_table("services")
    op.drop_table("technician_skills")
    op.drop_table("skills")
    op.drop_index("ix_technician_absences_technician_date", table_name="technician_absences")
    op.drop_table("technician_absences")
    op.drop_table("technicians")
    op.drop_index("ix_vehicles_license_plate", table_name="vehicles")
    op.drop_index("ix_vehicles_customer_id", table_name="vehicles")
    op.drop_table("vehicles")
    op.drop_table("customers")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    bind = op.get_bind()
    for enum_type in (
        notification_type,
        assignment_status,
        appointment_status,
        appointment_priority,
        absence_status,
        customer_status,
        user_role,
    ):
        enum_type.drop(bind, checkfirst=True)
