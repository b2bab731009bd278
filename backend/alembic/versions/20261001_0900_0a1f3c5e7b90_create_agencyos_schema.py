"""create_agencyos_schema

Revision ID: 0a1f3c5e7b90
Revises:
Create Date: 2026-10-01 09:00:00.000000
"""
from __future__ import annotations

from alembic import op

revision = "0a1f3c5e7b90"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE users (
            id             UUID         PRIMARY KEY DEFAULT gen_random_uuid(),
            email          VARCHAR(255) NOT NULL UNIQUE,
            password_hash  VARCHAR(255),
            is_active      BOOLEAN      NOT NULL DEFAULT true,
            email_verified BOOLEAN      NOT NULL DEFAULT false,
            name           VARCHAR(100) NOT NULL,
            phone          VARCHAR(50),
            department     VARCHAR(100),
            avatar_url     VARCHAR(500),
            welcomed       BOOLEAN      NOT NULL DEFAULT false,
            created_at     TIMESTAMPTZ  NOT NULL DEFAULT now(),
            updated_at     TIMESTAMPTZ  NOT NULL DEFAULT now()
        )
    """)
    op.execute("CREATE INDEX ix_users_email ON users(email)")

    op.execute("""
        CREATE TABLE organizations (
            id         UUID         PRIMARY KEY DEFAULT gen_random_uuid(),
            name       VARCHAR(100) NOT NULL,
            email      VARCHAR(255),
            phone      VARCHAR(50),
            tax_id     VARCHAR(50),
            currency   VARCHAR(3),
            logo_url   VARCHAR(500),
            created_by UUID         REFERENCES users(id) ON DELETE SET NULL,
            created_at TIMESTAMPTZ  NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ  NOT NULL DEFAULT now()
        )
    """)

    op.execute("""
        CREATE TABLE organization_settings (
            organization_id      UUID        PRIMARY KEY REFERENCES organizations(id) ON DELETE CASCADE,
            allow_client_invites BOOLEAN     NOT NULL DEFAULT true,
            allow_team_invites   BOOLEAN     NOT NULL DEFAULT true,
            default_task_view    VARCHAR(8)  NOT NULL DEFAULT 'board'
                CHECK (default_task_view IN ('list', 'board', 'calendar')),
            brand_color          VARCHAR(20) NOT NULL DEFAULT '#6366f1',
            created_at           TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at           TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    """)

    op.execute("""
        CREATE TABLE organization_addresses (
            organization_id UUID         PRIMARY KEY REFERENCES organizations(id) ON DELETE CASCADE,
            street          VARCHAR(255),
            city            VARCHAR(100),
            state           VARCHAR(100),
            zip_code        VARCHAR(20),
            country         VARCHAR(100),
            created_at      TIMESTAMPTZ  NOT NULL DEFAULT now(),
            updated_at      TIMESTAMPTZ  NOT NULL DEFAULT now()
        )
    """)

    op.execute("""
        CREATE TABLE team_members (
            id              UUID        PRIMARY KEY DEFAULT gen_random_uuid(),
            organization_id UUID        NOT NULL REFERENCES organizations(id) ON DELETE CASCADE,
            user_id         UUID        NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            role            VARCHAR(6)  NOT NULL CHECK (role IN ('owner', 'admin', 'member')),
            status          VARCHAR(8)  NOT NULL DEFAULT 'active'
                CHECK (status IN ('invited', 'active', 'inactive')),
            invited_by      UUID        REFERENCES users(id) ON DELETE SET NULL,
            invited_at      TIMESTAMPTZ,
            joined_at       TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT uq_team_members_org_user UNIQUE (organization_id, user_id)
        )
    """)
    op.execute("CREATE INDEX ix_team_members_organization_id ON team_members(organization_id)")
    op.execute("CREATE INDEX ix_team_members_user_id ON team_members(user_id)")
    # At most one owner per organization
    op.execute(
        "CREATE UNIQUE INDEX uq_team_members_one_owner ON team_members(organization_id) "
        "WHERE role = 'owner'"
    )

    op.execute("""
        CREATE TABLE invites (
            id              UUID         PRIMARY KEY DEFAULT gen_random_uuid(),
            organization_id UUID         NOT NULL REFERENCES organizations(id) ON DELETE CASCADE,
            email           VARCHAR(255) NOT NULL,
            name            VARCHAR(100),
            department      VARCHAR(100),
            role            VARCHAR(6)   NOT NULL CHECK (role IN ('admin', 'member', 'client')),
            status          VARCHAR(8)   NOT NULL DEFAULT 'pending'
                CHECK (status IN ('pending', 'accepted', 'revoked', 'declined')),
            token           VARCHAR(255) NOT NULL UNIQUE,
            invited_by      UUID         REFERENCES users(id) ON DELETE SET NULL,
            invited_at      TIMESTAMPTZ  NOT NULL DEFAULT now(),
            expires_at      TIMESTAMPTZ  NOT NULL,
            created_at      TIMESTAMPTZ  NOT NULL DEFAULT now(),
            updated_at      TIMESTAMPTZ  NOT NULL DEFAULT now()
        )
    """)
    op.execute("CREATE INDEX ix_invites_organization_id ON invites(organization_id)")
    op.execute("CREATE INDEX ix_invites_email ON invites(email)")
    op.execute("CREATE INDEX ix_invites_token ON invites(token)")

    op.execute("""
        CREATE TABLE clients (
            id              UUID         PRIMARY KEY DEFAULT gen_random_uuid(),
            organization_id UUID         NOT NULL REFERENCES organizations(id) ON DELETE CASCADE,
            name            VARCHAR(255) NOT NULL,
            email           VARCHAR(255),
            phone           VARCHAR(50),
            contact_person  VARCHAR(255),
            notes           TEXT,
            street          VARCHAR(255),
            city            VARCHAR(100),
            state           VARCHAR(100),
            zip_code        VARCHAR(20),
            country         VARCHAR(100),
            status          VARCHAR(8)   NOT NULL DEFAULT 'active'
                CHECK (status IN ('active', 'inactive')),
            created_by      UUID         REFERENCES users(id) ON DELETE SET NULL,
            created_at      TIMESTAMPTZ  NOT NULL DEFAULT now(),
            updated_at      TIMESTAMPTZ  NOT NULL DEFAULT now()
        )
    """)
    op.execute("CREATE INDEX ix_clients_organization_id ON clients(organization_id)")

    op.execute("""
        CREATE TABLE tasks (
            id              UUID         PRIMARY KEY DEFAULT gen_random_uuid(),
            organization_id UUID         NOT NULL REFERENCES organizations(id) ON DELETE CASCADE,
            title           VARCHAR(255) NOT NULL,
            description     TEXT,
            status          VARCHAR(11)  NOT NULL DEFAULT 'todo'
                CHECK (status IN ('backlog', 'todo', 'in_progress', 'done', 'archived')),
            priority        VARCHAR(6)   NOT NULL DEFAULT 'medium'
                CHECK (priority IN ('urgent', 'high', 'medium', 'low')),
            assignee_id     UUID         REFERENCES users(id) ON DELETE SET NULL,
            client_id       UUID         REFERENCES clients(id) ON DELETE SET NULL,
            due_date        DATE,
            tags            JSON         NOT NULL DEFAULT '[]',
            created_by      UUID         REFERENCES users(id) ON DELETE SET NULL,
            created_at      TIMESTAMPTZ  NOT NULL DEFAULT now(),
            updated_at      TIMESTAMPTZ  NOT NULL DEFAULT now()
        )
    """)
    op.execute("CREATE INDEX ix_tasks_organization_id ON tasks(organization_id)")
    op.execute("CREATE INDEX ix_tasks_status ON tasks(status)")
    op.execute("CREATE INDEX ix_tasks_assignee_id ON tasks(assignee_id)")
    op.execute("CREATE INDEX ix_tasks_client_id ON tasks(client_id)")

    op.execute("""
        CREATE TABLE invoices (
            id              UUID             PRIMARY KEY DEFAULT gen_random_uuid(),
            organization_id UUID             NOT NULL REFERENCES organizations(id) ON DELETE CASCADE,
            number          VARCHAR(20)      NOT NULL,
            client_id       UUID             REFERENCES clients(id) ON DELETE SET NULL,
            status          VARCHAR(9)       NOT NULL DEFAULT 'draft'
                CHECK (status IN ('draft', 'sent', 'paid', 'overdue', 'cancelled')),
            issue_date      DATE             NOT NULL,
            due_date        DATE             NOT NULL,
            notes           TEXT,
            terms           TEXT,
            subtotal        DOUBLE PRECISION NOT NULL DEFAULT 0,
            tax_rate        DOUBLE PRECISION NOT NULL DEFAULT 0,
            tax_amount      DOUBLE PRECISION NOT NULL DEFAULT 0,
            discount        DOUBLE PRECISION NOT NULL DEFAULT 0,
            total           DOUBLE PRECISION NOT NULL DEFAULT 0,
            paid_at         TIMESTAMPTZ,
            created_by      UUID             REFERENCES users(id) ON DELETE SET NULL,
            created_at      TIMESTAMPTZ      NOT NULL DEFAULT now(),
            updated_at      TIMESTAMPTZ      NOT NULL DEFAULT now(),
            CONSTRAINT uq_invoices_org_number UNIQUE (organization_id, number)
        )
    """)
    op.execute("CREATE INDEX ix_invoices_organization_id ON invoices(organization_id)")
    op.execute("CREATE INDEX ix_invoices_client_id ON invoices(client_id)")

    op.execute("""
        CREATE TABLE invoice_items (
            id          UUID             PRIMARY KEY DEFAULT gen_random_uuid(),
            invoice_id  UUID             NOT NULL REFERENCES invoices(id) ON DELETE CASCADE,
            description VARCHAR(500)     NOT NULL,
            quantity    DOUBLE PRECISION NOT NULL,
            unit_price  DOUBLE PRECISION NOT NULL,
            amount      DOUBLE PRECISION NOT NULL,
            position    INTEGER          NOT NULL DEFAULT 0
        )
    """)
    op.execute("CREATE INDEX ix_invoice_items_invoice_id ON invoice_items(invoice_id)")

    op.execute("""
        CREATE TABLE chat_rooms (
            id              UUID         PRIMARY KEY DEFAULT gen_random_uuid(),
            organization_id UUID         NOT NULL REFERENCES organizations(id) ON DELETE CASCADE,
            name            VARCHAR(255) NOT NULL,
            type            VARCHAR(6)   NOT NULL CHECK (type IN ('direct', 'group', 'client')),
            created_by      UUID         REFERENCES users(id) ON DELETE SET NULL,
            created_at      TIMESTAMPTZ  NOT NULL DEFAULT now(),
            updated_at      TIMESTAMPTZ  NOT NULL DEFAULT now()
        )
    """)
    op.execute("CREATE INDEX ix_chat_rooms_organization_id ON chat_rooms(organization_id)")

    op.execute("""
        CREATE TABLE chat_participants (
            room_id   UUID        NOT NULL REFERENCES chat_rooms(id) ON DELETE CASCADE,
            user_id   UUID        NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            role      VARCHAR(6)  NOT NULL DEFAULT 'member' CHECK (role IN ('admin', 'member')),
            joined_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            PRIMARY KEY (room_id, user_id)
        )
    """)

    op.execute("""
        CREATE TABLE chat_messages (
            id         UUID        PRIMARY KEY DEFAULT gen_random_uuid(),
            room_id    UUID        NOT NULL REFERENCES chat_rooms(id) ON DELETE CASCADE,
            sender_id  UUID        REFERENCES users(id) ON DELETE SET NULL,
            content    TEXT        NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    """)
    op.execute("CREATE INDEX ix_chat_messages_room_id ON chat_messages(room_id)")

    op.execute("""
        CREATE TABLE chat_message_reads (
            message_id UUID        NOT NULL REFERENCES chat_messages(id) ON DELETE CASCADE,
            user_id    UUID        NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            read_at    TIMESTAMPTZ NOT NULL DEFAULT now(),
            PRIMARY KEY (message_id, user_id)
        )
    """)

    op.execute("""
        CREATE TABLE notifications (
            id              UUID         PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id         UUID         NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            organization_id UUID         REFERENCES organizations(id) ON DELETE CASCADE,
            type            VARCHAR(7)   NOT NULL DEFAULT 'info'
                CHECK (type IN ('info', 'success', 'warning', 'error')),
            title           VARCHAR(255) NOT NULL,
            message         TEXT         NOT NULL,
            link            VARCHAR(500),
            is_read         BOOLEAN      NOT NULL DEFAULT false,
            created_at      TIMESTAMPTZ  NOT NULL DEFAULT now()
        )
    """)
    op.execute("CREATE INDEX ix_notifications_user_id ON notifications(user_id)")
    op.execute("CREATE INDEX ix_notifications_organization_id ON notifications(organization_id)")
    op.execute("CREATE INDEX ix_notifications_user_is_read ON notifications(user_id, is_read)")


def downgrade() -> None:
    for table in (
        "notifications",
        "chat_message_reads",
        "chat_messages",
        "chat_participants",
        "chat_rooms",
        "invoice_items",
        "invoices",
        "tasks",
        "clients",
        "invites",
        "team_members",
        "organization_addresses",
        "organization_settings",
        "organizations",
        "users",
    ):
        op.execute(f"DROP TABLE IF EXISTS {table}")
