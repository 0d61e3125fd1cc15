"""
SQLAlchemy table metadata for the RotaClock multi-tenant workforce schema.

Every business table carries tenant_id; repositories filter on it in every
statement. Ids are canonical UUID strings generated by the application.
Schema creation and migrations are managed outside this service; the metadata
here is what queries are composed against (and what tests create in SQLite).
"""
from __future__ import annotations
from sqlalchemy import (
    MetaData, Table, Column, String, Boolean, Integer, Float, Numeric, Text,
    Date, Time, DateTime, UniqueConstraint, Index,
)

from utils.time import utcnow

metadata = MetaData()

ID = String(36)
Money = Numeric(12, 2)


def _timestamps():
    return (
        Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
        Column("updated_at", DateTime(timezone=True), nullable=False, default=utcnow),
    )


organizations = Table(
    "organizations", metadata,
    Column("id", ID, primary_key=True),
    Column("tenant_id", String(80), nullable=False, unique=True),
    Column("name", String(255), nullable=False),
    Column("slug", String(80), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("phone", String(40)),
    Column("address", Text),
    Column("city", String(120)),
    Column("state", String(120)),
    Column("country", String(120)),
    Column("industry", String(120)),
    Column("company_size", String(40)),
    Column("subscription_status", String(20), nullable=False, default="trial"),
    Column("subscription_plan", String(40)),
    Column("trial_start_date", DateTime(timezone=True)),
    Column("trial_end_date", DateTime(timezone=True)),
    Column("is_verified", Boolean, nullable=False, default=False),
    Column("is_active", Boolean, nullable=False, default=True),
    *_timestamps(),
)

employees = Table(
    "employees", metadata,
    Column("id", ID, primary_key=True),
    Column("tenant_id", String(80), nullable=False, index=True),
    Column("organization_id", ID),
    Column("employee_code", String(40), nullable=False),
    Column("first_name", String(120), nullable=False),
    Column("last_name", String(120), nullable=False),
    Column("email", String(255), nullable=False),
    Column("department", String(120)),
    Column("job_position", String(120)),
    Column("role", String(20), nullable=False, default="employee"),
    Column("hire_date", Date),
    Column("manager_id", ID),
    Column("team_id", ID),
    Column("location_id", ID),
    Column("hourly_rate", Money),
    Column("max_hours_per_week", Integer, default=40),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("is_online", Boolean, nullable=False, default=False),
    Column("last_online", DateTime(timezone=True)),
    Column("password_hash", String(255)),
    Column("phone", String(40)),
    Column("address", Text),
    Column("emergency_contact", String(255)),
    Column("emergency_phone", String(40)),
    Column("notes", Text),
    *_timestamps(),
    UniqueConstraint("tenant_id", "employee_code", name="uq_employees_tenant_code"),
    UniqueConstraint("tenant_id", "email", name="uq_employees_tenant_email"),
)

locations = Table(
    "locations", metadata,
    Column("id", ID, primary_key=True),
    Column("tenant_id", String(80), nullable=False, index=True),
    Column("organization_id", ID),
    Column("name", String(255), nullable=False),
    Column("description", Text),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("created_by", ID),
    *_timestamps(),
)

manager_locations = Table(
    "manager_locations", metadata,
    Column("id", ID, primary_key=True),
    Column("tenant_id", String(80), nullable=False),
    Column("manager_id", ID, nullable=False),
    Column("location_id", ID, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
    UniqueConstraint("tenant_id", "manager_id", "location_id", name="uq_manager_locations"),
)

teams = Table(
    "teams", metadata,
    Column("id", ID, primary_key=True),
    Column("tenant_id", String(80), nullable=False, index=True),
    Column("name", String(255), nullable=False),
    Column("team_lead_id", ID),
    Column("is_active", Boolean, nullable=False, default=True),
    *_timestamps(),
)

# Append-only
role_assignments = Table(
    "role_assignments", metadata,
    Column("id", ID, primary_key=True),
    Column("tenant_id", String(80), nullable=False),
    Column("employee_id", ID, nullable=False),
    Column("employee_email", String(255), nullable=False, index=True),
    Column("old_role", String(20)),
    Column("new_role", String(20), nullable=False),
    Column("assigned_by", ID, nullable=False),
    Column("reason", Text),
    Column("effective_date", Date, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
)

shift_assignments = Table(
    "shift_assignments", metadata,
    Column("id", ID, primary_key=True),
    Column("tenant_id", String(80), nullable=False),
    Column("employee_id", ID, nullable=False),
    Column("date", Date, nullable=False),
    Column("start_time", Time, nullable=False),
    Column("end_time", Time, nullable=False),
    Column("status", String(20), nullable=False, default="assigned"),
)

time_entries = Table(
    "time_entries", metadata,
    Column("id", ID, primary_key=True),
    Column("tenant_id", String(80), nullable=False),
    Column("employee_id", ID, nullable=False),
    Column("assignment_id", ID),
    Column("date", Date, nullable=False),
    Column("clock_in", DateTime(timezone=True)),
    Column("clock_out", DateTime(timezone=True)),
    Column("break_hours", Float, nullable=False, default=0.0),
    Column("total_hours", Float),
    # in-progress | break | completed
    Column("status", String(20), nullable=False, default="in-progress"),
    # pending | approved | rejected | edited
    Column("approval_status", String(20)),
    Column("approved_by", ID),
    Column("approved_at", DateTime(timezone=True)),
    Column("approved_hours", Float),
    Column("approved_rate", Money),
    Column("total_pay", Money),
    Column("admin_notes", Text),
    Column("rejection_reason", Text),
    Column("notes", Text),
    Column("total_calls_taken", Integer, default=0),
    Column("leads_generated", Integer, default=0),
    Column("shift_remarks", Text),
    Column("performance_rating", Integer),
    *_timestamps(),
    Index("ix_time_entries_tenant_date", "tenant_id", "date"),
)

# At most one open (in-progress or break) entry per employee.
_open_entry = time_entries.c.status.in_(("in-progress", "break"))
Index(
    "uq_time_entries_open_per_employee",
    time_entries.c.tenant_id,
    time_entries.c.employee_id,
    unique=True,
    postgresql_where=_open_entry,
    sqlite_where=_open_entry,
)

break_logs = Table(
    "break_logs", metadata,
    Column("id", ID, primary_key=True),
    Column("tenant_id", String(80), nullable=False),
    Column("time_entry_id", ID, nullable=False),
    Column("employee_id", ID, nullable=False),
    Column("break_start", DateTime(timezone=True), nullable=False),
    Column("break_end", DateTime(timezone=True)),
    Column("break_duration", Float),
    Column("break_type", String(20), nullable=False, default="lunch"),
    # active | completed
    Column("status", String(20), nullable=False, default="active"),
    *_timestamps(),
)

# Append-only
time_entry_approvals = Table(
    "time_entry_approvals", metadata,
    Column("id", ID, primary_key=True),
    Column("tenant_id", String(80), nullable=False),
    Column("time_entry_id", ID, nullable=False),
    Column("employee_id", ID, nullable=False),
    Column("approver_id", ID, nullable=False),
    Column("status", String(20), nullable=False),
    Column("decision_notes", Text),
    Column("approved_at", DateTime(timezone=True), nullable=False),
)

tenant_settings = Table(
    "tenant_settings", metadata,
    Column("tenant_id", String(80), primary_key=True),
    Column("allow_manager_approvals", Boolean, nullable=False, default=False),
    Column("pay_period_type", String(20), nullable=False, default="weekly"),
    Column("custom_period_days", Integer),
    Column("week_start_day", Integer, nullable=False, default=1),
    Column("updated_at", DateTime(timezone=True), nullable=False, default=utcnow),
)

pay_periods = Table(
    "pay_periods", metadata,
    Column("id", ID, primary_key=True),
    Column("tenant_id", String(80), nullable=False),
    Column("organization_id", ID),
    Column("period_name", String(120)),
    Column("start_date", Date, nullable=False),
    Column("end_date", Date, nullable=False),
    # open | locked
    Column("status", String(20), nullable=False, default="open"),
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
    UniqueConstraint("tenant_id", "start_date", "end_date", name="uq_pay_periods_range"),
)

payroll_records = Table(
    "payroll_records", metadata,
    Column("id", ID, primary_key=True),
    Column("tenant_id", String(80), nullable=False),
    Column("employee_id", ID, nullable=False),
    Column("employee_email", String(255), nullable=False),
    Column("pay_period_id", ID, nullable=False),
    Column("base_salary", Money, nullable=False, default=0),
    Column("hourly_pay", Money, nullable=False, default=0),
    Column("overtime_pay", Money, nullable=False, default=0),
    Column("bonus_amount", Money, nullable=False, default=0),
    Column("deductions_amount", Money, nullable=False, default=0),
    Column("gross_pay", Money, nullable=False, default=0),
    Column("net_pay", Money, nullable=False, default=0),
    Column("updated_at", DateTime(timezone=True), nullable=False, default=utcnow),
    UniqueConstraint("pay_period_id", "employee_id", name="uq_payroll_records_period_employee"),
)

payroll_bonuses = Table(
    "payroll_bonuses", metadata,
    Column("id", ID, primary_key=True),
    Column("tenant_id", String(80), nullable=False),
    Column("employee_id", ID, nullable=False),
    Column("employee_email", String(255), nullable=False),
    Column("pay_period_id", ID, nullable=False),
    Column("amount", Money, nullable=False),
    Column("reason", Text, nullable=False),
    Column("bonus_type", String(40), nullable=False, default="performance"),
    Column("applied_by", ID, nullable=False),
    Column("applied_date", DateTime(timezone=True), nullable=False, default=utcnow),
)

payroll_deductions = Table(
    "payroll_deductions", metadata,
    Column("id", ID, primary_key=True),
    Column("tenant_id", String(80), nullable=False),
    Column("employee_id", ID, nullable=False),
    Column("employee_email", String(255), nullable=False),
    Column("pay_period_id", ID, nullable=False),
    Column("amount", Money, nullable=False),
    Column("reason", Text, nullable=False),
    Column("deduction_type", String(40), nullable=False, default="other"),
    Column("applied_by", ID, nullable=False),
    Column("applied_date", DateTime(timezone=True), nullable=False, default=utcnow),
)
