"""001 – Initial schema: roster, requests, approvals, holidays, notifications, audit.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 10:00:00.000000+05:30
"""

from alembic import op

# Revision identifiers
revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

ENUM_TYPES: list[tuple[str, list[str]]] = [
    (
        "user_role",
        ["employee", "manager", "hr", "superadmin", "intern", "di", "dm", "associate"],
    ),
    ("employee_status", ["active", "deactivated"]),
    ("request_type", ["leave", "halfday", "permission", "od"]),
    ("leave_mode", ["casual", "unpaid"]),
    ("half_day_session", ["morning", "afternoon"]),
    ("request_status", ["pending", "approved", "rejected"]),
    ("approval_level", ["manager", "hr", "superadmin"]),
    ("approval_outcome", ["approved", "rejected"]),
    ("holiday_type", ["public", "regional"]),
    ("notification_type", ["info", "action_required", "approval", "rejection"]),
]

TABLES = [
    "last_viewed_markers",
    "notifications",
    "audit_trail",
    "approval_records",
    "leave_requests",
    "holidays",
    "departments",
    "employees",
]


def _create_enum(name: str, values: list[str]) -> None:
    vals = ", ".join(f"'{v}'" for v in values)
    op.execute(f"CREATE TYPE {name} AS ENUM ({vals})")


def _drop_enum(name: str) -> None:
    op.execute(f"DROP TYPE IF EXISTS {name}")


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    for name, values in ENUM_TYPES:
        _create_enum(name, values)

    # ── 1. employees ──────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE employees (
            id           VARCHAR(20) PRIMARY KEY,
            name         VARCHAR(200) NOT NULL,
            email        VARCHAR(255) UNIQUE,
            role         user_role NOT NULL DEFAULT 'employee',
            department   VARCHAR(150),
            designation  VARCHAR(150),
            manager_id   VARCHAR(20) REFERENCES employees(id),
            status       employee_status NOT NULL DEFAULT 'active',
            created_at   TIMESTAMPTZ DEFAULT NOW(),
            updated_at   TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_employees_department ON employees (department)")
    op.execute("CREATE INDEX ix_employees_role ON employees (role)")

    # ── 2. departments ────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE departments (
            id           UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            name         VARCHAR(150) NOT NULL UNIQUE,
            description  TEXT,
            head_id      VARCHAR(20),
            created_at   TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT fk_dept_head FOREIGN KEY (head_id) REFERENCES employees(id)
        )
    """)

    # ── 3. holidays ───────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE holidays (
            id          UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            name        VARCHAR(150) NOT NULL,
            from_date   DATE NOT NULL,
            to_date     DATE NOT NULL,
            type        holiday_type NOT NULL DEFAULT 'public',
            created_at  TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT ck_holiday_range CHECK (from_date <= to_date)
        )
    """)
    op.execute("CREATE INDEX ix_holidays_range ON holidays (from_date, to_date)")

    # ── 4. leave_requests ─────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE leave_requests (
            id                         VARCHAR(40) PRIMARY KEY,
            employee_id                VARCHAR(20) NOT NULL REFERENCES employees(id),
            employee_name              VARCHAR(200) NOT NULL,
            department                 VARCHAR(150),
            requester_role             user_role NOT NULL,
            type                       request_type NOT NULL,
            leave_mode                 leave_mode,
            start_date                 DATE NOT NULL,
            end_date                   DATE NOT NULL,
            start_time                 TIME,
            end_time                   TIME,
            half_day_session           half_day_session,
            reason                     TEXT NOT NULL,
            alternative_employee_id    VARCHAR(20) REFERENCES employees(id),
            alternative_employee_name  VARCHAR(200),
            day_count                  NUMERIC(5,1) NOT NULL,
            status                     request_status NOT NULL DEFAULT 'pending',
            approval_route             JSONB NOT NULL DEFAULT '[]'::jsonb,
            created_at                 TIMESTAMPTZ DEFAULT NOW(),
            updated_at                 TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT ck_request_date_order CHECK (start_date <= end_date)
        )
    """)
    op.execute(
        "CREATE INDEX ix_leave_requests_employee_dates "
        "ON leave_requests (employee_id, start_date, end_date)"
    )
    op.execute(
        "CREATE INDEX ix_leave_requests_alternative "
        "ON leave_requests (alternative_employee_id)"
    )
    op.execute("CREATE INDEX ix_leave_requests_status ON leave_requests (status)")

    # ── 5. approval_records ───────────────────────────────────────────────
    op.execute("""
        CREATE TABLE approval_records (
            id                UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            request_id        VARCHAR(40) NOT NULL
                              REFERENCES leave_requests(id) ON DELETE CASCADE,
            sequence          INTEGER NOT NULL,
            level             approval_level NOT NULL,
            outcome           approval_outcome NOT NULL,
            approver_id       VARCHAR(20) NOT NULL REFERENCES employees(id),
            approver_name     VARCHAR(200) NOT NULL,
            decided_at        TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            rejection_reason  TEXT,
            CONSTRAINT uq_approval_sequence UNIQUE (request_id, sequence),
            CONSTRAINT uq_approval_level UNIQUE (request_id, level),
            CONSTRAINT ck_rejection_reason CHECK (
                (outcome = 'rejected') = (rejection_reason IS NOT NULL)
            )
        )
    """)

    # ── 6. audit_trail ────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE audit_trail (
            id           UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            actor_id     VARCHAR(20) REFERENCES employees(id),
            action       VARCHAR(50) NOT NULL,
            entity_type  VARCHAR(50) NOT NULL,
            entity_id    VARCHAR(40) NOT NULL,
            old_values   JSONB,
            new_values   JSONB,
            created_at   TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_audit_trail_actor_id ON audit_trail (actor_id)")
    op.execute("CREATE INDEX ix_audit_trail_entity ON audit_trail (entity_type, entity_id)")
    op.execute("CREATE INDEX ix_audit_trail_action ON audit_trail (action)")

    # ── 7. notifications ──────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE notifications (
            id            UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            recipient_id  VARCHAR(20) NOT NULL
                          REFERENCES employees(id) ON DELETE CASCADE,
            type          notification_type DEFAULT 'info',
            title         VARCHAR(200) NOT NULL,
            message       TEXT NOT NULL,
            action_url    VARCHAR(500),
            entity_type   VARCHAR(50),
            entity_id     VARCHAR(40),
            is_read       BOOLEAN DEFAULT FALSE,
            read_at       TIMESTAMPTZ,
            created_at    TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute(
        "CREATE INDEX ix_notifications_recipient_created "
        "ON notifications (recipient_id, created_at)"
    )

    # ── 8. last_viewed_markers ────────────────────────────────────────────
    op.execute("""
        CREATE TABLE last_viewed_markers (
            user_id    VARCHAR(20) NOT NULL
                       REFERENCES employees(id) ON DELETE CASCADE,
            kind       VARCHAR(50) NOT NULL,
            viewed_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            PRIMARY KEY (user_id, kind)
        )
    """)


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    for table in TABLES:
        op.execute(f"DROP TABLE IF EXISTS {table} CASCADE")
    for name, _ in reversed(ENUM_TYPES):
        _drop_enum(name)
