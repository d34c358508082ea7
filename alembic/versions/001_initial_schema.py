"""001 – Initial schema: users, registrations, documents, compliance,
notifications, shifts, timesheets, rate cards, audit trail.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-18 09:00:00.000000+01:00
"""

from alembic import op

# Revision identifiers
revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    # ── Extensions ────────────────────────────────────────────────────────
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    # ── 1. organisations ──────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE organisations (
            id                      UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            name                    VARCHAR(200) NOT NULL,
            org_type                VARCHAR(30)  NOT NULL,
            address                 TEXT,
            postcode                VARCHAR(10),
            phone                   VARCHAR(30),
            email                   VARCHAR(255),
            cqc_registration_number VARCHAR(50),
            is_active               BOOLEAN DEFAULT TRUE,
            created_at              TIMESTAMPTZ DEFAULT NOW(),
            updated_at              TIMESTAMPTZ DEFAULT NOW()
        )
    """)

    # ── 2. users ──────────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE users (
            id                     UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            auth_subject           VARCHAR(255) UNIQUE,
            email                  VARCHAR(255) NOT NULL UNIQUE,
            first_name             VARCHAR(100) NOT NULL,
            last_name              VARCHAR(100) NOT NULL,
            phone                  VARCHAR(30),
            date_of_birth          DATE,
            address                TEXT,
            postcode               VARCHAR(10),
            user_type              VARCHAR(30)  NOT NULL,
            profession             VARCHAR(50),
            professional_body      VARCHAR(20),
            registration_number    VARCHAR(50),
            nhs_band               VARCHAR(20),
            years_experience       INTEGER DEFAULT 0,
            specializations        JSONB DEFAULT '[]'::jsonb,
            availability           JSONB DEFAULT '[]'::jsonb,
            preferred_locations    JSONB DEFAULT '[]'::jsonb,
            onboarding_status      VARCHAR(20),
            onboarding_notes       TEXT,
            onboarding_reviewed_at TIMESTAMPTZ,
            organisation_id        UUID REFERENCES organisations(id) ON DELETE SET NULL,
            department             VARCHAR(100),
            permissions            JSONB DEFAULT '{}'::jsonb,
            is_active              BOOLEAN DEFAULT TRUE,
            created_at             TIMESTAMPTZ DEFAULT NOW(),
            updated_at             TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_users_user_type         ON users(user_type)")
    op.execute("CREATE INDEX ix_users_onboarding_status ON users(onboarding_status)")

    # ── 3. enquiries ──────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE enquiries (
            id                UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            kind              VARCHAR(20)  NOT NULL,
            contact_name      VARCHAR(200) NOT NULL,
            email             VARCHAR(255) NOT NULL,
            organisation_name VARCHAR(200) NOT NULL,
            phone             VARCHAR(30)  NOT NULL,
            postcode          VARCHAR(10),
            payload           JSONB DEFAULT '{}'::jsonb,
            status            VARCHAR(20)  NOT NULL DEFAULT 'new',
            admin_notes       TEXT,
            created_at        TIMESTAMPTZ DEFAULT NOW(),
            updated_at        TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_enquiries_kind_status ON enquiries(kind, status)")

    # ── 4. documents ──────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE documents (
            id                 UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            entity_type        VARCHAR(20)  NOT NULL,
            entity_id          UUID         NOT NULL,
            document_type      VARCHAR(100) NOT NULL,
            title              VARCHAR(255) NOT NULL,
            filename           VARCHAR(255) NOT NULL,
            storage_path       VARCHAR(500) NOT NULL,
            mime_type          VARCHAR(100) NOT NULL,
            file_size          INTEGER      NOT NULL DEFAULT 0,
            status             VARCHAR(20)  NOT NULL DEFAULT 'pending',
            notes              TEXT,
            rejection_reason   TEXT,
            issued_date        DATE,
            expiry_date        DATE,
            tags               JSONB DEFAULT '[]'::jsonb,
            uploaded_by_id     UUID REFERENCES users(id) ON DELETE SET NULL,
            verified_by_id     UUID REFERENCES users(id) ON DELETE SET NULL,
            verified_at        TIMESTAMPTZ,
            last_reminder_days INTEGER,
            created_at         TIMESTAMPTZ DEFAULT NOW(),
            updated_at         TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_documents_entity      ON documents(entity_type, entity_id)")
    op.execute("CREATE INDEX ix_documents_status      ON documents(status)")
    op.execute("CREATE INDEX ix_documents_expiry_date ON documents(expiry_date)")

    # ── 5. compliance_records ─────────────────────────────────────────────
    op.execute("""
        CREATE TABLE compliance_records (
            id                  UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            staff_id            UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            type                VARCHAR(100) NOT NULL,
            title               VARCHAR(255) NOT NULL,
            issue_date          DATE,
            expiry_date         DATE,
            required_by         VARCHAR(255),
            is_required         BOOLEAN DEFAULT TRUE,
            is_mandatory        BOOLEAN DEFAULT TRUE,
            compliance_category VARCHAR(30) NOT NULL DEFAULT 'legal_safety',
            reminder_service    BOOLEAN DEFAULT FALSE,
            document_id         UUID REFERENCES documents(id) ON DELETE SET NULL,
            created_at          TIMESTAMPTZ DEFAULT NOW(),
            updated_at          TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_compliance_records_staff_id    ON compliance_records(staff_id)")
    op.execute("CREATE INDEX ix_compliance_records_expiry_date ON compliance_records(expiry_date)")

    # ── 6. dbs_checks ─────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE dbs_checks (
            id                   UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            staff_id             UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            certificate_number   VARCHAR(50) NOT NULL,
            update_service_id    VARCHAR(50),
            is_on_update_service BOOLEAN DEFAULT FALSE,
            issue_date           DATE NOT NULL,
            expiry_date          DATE,
            check_level          VARCHAR(40) NOT NULL,
            workforce_type       VARCHAR(10) NOT NULL,
            verification_status  VARCHAR(20) NOT NULL DEFAULT 'pending',
            requested_by         VARCHAR(255),
            notes                TEXT,
            document_id          UUID REFERENCES documents(id) ON DELETE SET NULL,
            verified_by_id       UUID REFERENCES users(id) ON DELETE SET NULL,
            verified_at          TIMESTAMPTZ,
            created_at           TIMESTAMPTZ DEFAULT NOW(),
            updated_at           TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_dbs_checks_staff_id            ON dbs_checks(staff_id)")
    op.execute("CREATE INDEX ix_dbs_checks_verification_status ON dbs_checks(verification_status)")

    # ── 7. notifications ──────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE notifications (
            id           UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            recipient_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            type         VARCHAR(30)  NOT NULL DEFAULT 'info',
            priority     VARCHAR(10)  NOT NULL DEFAULT 'medium',
            title        VARCHAR(200) NOT NULL,
            message      TEXT         NOT NULL,
            action_url   VARCHAR(500),
            entity_type  VARCHAR(50),
            entity_id    UUID,
            data         JSONB DEFAULT '{}'::jsonb,
            is_read      BOOLEAN DEFAULT FALSE,
            read_at      TIMESTAMPTZ,
            created_at   TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX ix_notifications_recipient_unread
            ON notifications(recipient_id, is_read)
    """)

    # ── 8. notification_preferences ───────────────────────────────────────
    op.execute("""
        CREATE TABLE notification_preferences (
            id                              UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            user_id                         UUID NOT NULL UNIQUE REFERENCES users(id) ON DELETE CASCADE,
            daily_shift_updates_email       BOOLEAN DEFAULT TRUE,
            daily_shift_updates_push        BOOLEAN DEFAULT TRUE,
            emergency_shifts_email          BOOLEAN DEFAULT TRUE,
            emergency_shifts_push           BOOLEAN DEFAULT TRUE,
            permanent_jobs_email            BOOLEAN DEFAULT FALSE,
            permanent_jobs_push             BOOLEAN DEFAULT FALSE,
            shift_application_updates_email BOOLEAN DEFAULT TRUE,
            shift_application_updates_push  BOOLEAN DEFAULT TRUE,
            profile_alerts_email            BOOLEAN DEFAULT TRUE,
            profile_alerts_push             BOOLEAN DEFAULT TRUE,
            important_news_email            BOOLEAN DEFAULT TRUE,
            important_news_push             BOOLEAN DEFAULT FALSE,
            created_at                      TIMESTAMPTZ DEFAULT NOW(),
            updated_at                      TIMESTAMPTZ DEFAULT NOW()
        )
    """)

    # ── 9. shifts ─────────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE shifts (
            id                UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            organisation_id   UUID NOT NULL REFERENCES organisations(id) ON DELETE CASCADE,
            role              VARCHAR(50) NOT NULL,
            shift_date        DATE NOT NULL,
            start_time        TIME NOT NULL,
            end_time          TIME NOT NULL,
            hourly_rate       NUMERIC(8,2),
            required_skills   JSONB DEFAULT '[]'::jsonb,
            is_urgent         BOOLEAN DEFAULT FALSE,
            status            VARCHAR(20) NOT NULL DEFAULT 'open',
            assigned_staff_id UUID REFERENCES users(id) ON DELETE SET NULL,
            notes             TEXT,
            created_by_id     UUID REFERENCES users(id) ON DELETE SET NULL,
            created_at        TIMESTAMPTZ DEFAULT NOW(),
            updated_at        TIMESTAMPTZ DEFAULT NOW(),
            CHECK (end_time > start_time)
        )
    """)
    op.execute("CREATE INDEX ix_shifts_shift_date      ON shifts(shift_date)")
    op.execute("CREATE INDEX ix_shifts_status          ON shifts(status)")
    op.execute("CREATE INDEX ix_shifts_organisation_id ON shifts(organisation_id)")

    # ── 10. allocation_reports / allocation_candidates ────────────────────
    op.execute("""
        CREATE TABLE allocation_reports (
            id              UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            shift_id        UUID NOT NULL UNIQUE REFERENCES shifts(id) ON DELETE CASCADE,
            status          VARCHAR(20) NOT NULL DEFAULT 'draft',
            generated_by_id UUID REFERENCES users(id) ON DELETE SET NULL,
            generated_at    TIMESTAMPTZ,
            completed_at    TIMESTAMPTZ,
            created_at      TIMESTAMPTZ DEFAULT NOW(),
            updated_at      TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE TABLE allocation_candidates (
            id              UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            report_id       UUID NOT NULL REFERENCES allocation_reports(id) ON DELETE CASCADE,
            staff_id        UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            rank            INTEGER NOT NULL,
            match_score     INTEGER NOT NULL DEFAULT 0,
            match_reasons   JSONB DEFAULT '[]'::jsonb,
            response_status VARCHAR(20) NOT NULL DEFAULT 'pending',
            contact_notes   TEXT,
            last_contacted  TIMESTAMPTZ,
            created_at      TIMESTAMPTZ DEFAULT NOW(),
            updated_at      TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT uq_allocation_candidates_report_staff UNIQUE (report_id, staff_id)
        )
    """)

    # ── 11. timesheets ────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE timesheets (
            id              UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            staff_id        UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            organisation_id UUID NOT NULL REFERENCES organisations(id) ON DELETE CASCADE,
            shift_id        UUID REFERENCES shifts(id) ON DELETE SET NULL,
            week_start      DATE NOT NULL,
            week_end        DATE NOT NULL,
            daily_hours     JSONB DEFAULT '{}'::jsonb,
            total_hours     NUMERIC(6,2) NOT NULL DEFAULT 0,
            status          VARCHAR(30)  NOT NULL DEFAULT 'draft',
            submitted_at    TIMESTAMPTZ,
            approved_at     TIMESTAMPTZ,
            approved_by_id  UUID REFERENCES users(id) ON DELETE SET NULL,
            approved_notes  TEXT,
            created_at      TIMESTAMPTZ DEFAULT NOW(),
            updated_at      TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT uq_timesheets_staff_org_week UNIQUE (staff_id, organisation_id, week_start)
        )
    """)
    op.execute("CREATE INDEX ix_timesheets_status          ON timesheets(status)")
    op.execute("CREATE INDEX ix_timesheets_organisation_id ON timesheets(organisation_id)")

    # ── 12. rate_cards ────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE rate_cards (
            id                   UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            role                 VARCHAR(100) NOT NULL UNIQUE,
            worker_pay_rate_min  NUMERIC(8,2) NOT NULL,
            worker_pay_rate_max  NUMERIC(8,2) NOT NULL,
            client_bill_rate_min NUMERIC(8,2) NOT NULL,
            client_bill_rate_max NUMERIC(8,2) NOT NULL,
            agency_markup_min    NUMERIC(6,2),
            agency_markup_max    NUMERIC(6,2),
            notes                TEXT,
            is_active            BOOLEAN DEFAULT TRUE,
            created_at           TIMESTAMPTZ DEFAULT NOW(),
            updated_at           TIMESTAMPTZ DEFAULT NOW()
        )
    """)

    # ── 13. audit_trail ───────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE audit_trail (
            id          UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            actor_id    UUID REFERENCES users(id) ON DELETE SET NULL,
            action      VARCHAR(50) NOT NULL,
            entity_type VARCHAR(50) NOT NULL,
            entity_id   UUID        NOT NULL,
            old_values  JSONB,
            new_values  JSONB,
            ip_address  INET,
            user_agent  TEXT,
            created_at  TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_audit_trail_actor_id   ON audit_trail(actor_id)")
    op.execute("CREATE INDEX ix_audit_trail_entity     ON audit_trail(entity_type, entity_id)")
    op.execute("CREATE INDEX ix_audit_trail_created_at ON audit_trail(created_at)")
    op.execute("CREATE INDEX ix_audit_trail_action     ON audit_trail(action)")

    # ── Seed: default rate cards ──────────────────────────────────────────
    op.execute("""
        INSERT INTO rate_cards
            (role, worker_pay_rate_min, worker_pay_rate_max,
             client_bill_rate_min, client_bill_rate_max,
             agency_markup_min, agency_markup_max)
        VALUES
            ('gp',                          80.00, 120.00, 100.00, 150.00, 25.00, 25.00),
            ('advanced_nurse_practitioner', 45.00,  65.00,  58.00,  85.00, 28.89, 30.77),
            ('nurse_practitioner',          35.00,  50.00,  45.00,  65.00, 28.57, 30.00),
            ('clinical_pharmacist',         40.00,  55.00,  52.00,  72.00, 30.00, 30.91),
            ('allied_healthcare',           25.00,  40.00,  32.00,  52.00, 28.00, 30.00)
    """)


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    # Drop tables in reverse dependency order
    tables = [
        "audit_trail",
        "rate_cards",
        "timesheets",
        "allocation_candidates",
        "allocation_reports",
        "shifts",
        "notification_preferences",
        "notifications",
        "dbs_checks",
        "compliance_records",
        "documents",
        "enquiries",
        "users",
        "organisations",
    ]
    for t in tables:
        op.execute(f"DROP TABLE IF EXISTS {t} CASCADE")
