"""Initial marketplace schema.

Revision ID: 001_initial_marketplace_schema
Revises:
Create Date: 2026-10-19

"""

from alembic import op
import sqlalchemy as sa


revision = "001_initial_marketplace_schema"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("hashed_password", sa.String(length=1024), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_superuser", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("full_name", sa.String(), nullable=True),
        sa.Column("account_type", sa.String(), nullable=False, server_default="talent"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "organizations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("slug", sa.String(), nullable=True),
        sa.Column("location", sa.String(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_organizations_id", "organizations", ["id"])
    op.create_index("ix_organizations_slug", "organizations", ["slug"], unique=True)
    op.create_index("ix_organizations_location", "organizations", ["location"])

    op.create_table(
        "org_memberships",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("organization_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("role", sa.String(), nullable=False, server_default="member"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("organization_id", "user_id", name="uq_org_membership"),
    )
    op.create_index("ix_org_memberships_organization_id", "org_memberships", ["organization_id"])
    op.create_index("ix_org_memberships_user_id", "org_memberships", ["user_id"])

    op.create_table(
        "listings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("organization_id", sa.Integer(), nullable=False),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("role_key", sa.String(), nullable=False),
        sa.Column("listing_type", sa.String(), nullable=False, server_default="job"),
        sa.Column("location", sa.String(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("shift_start", sa.DateTime(timezone=True), nullable=True),
        sa.Column("shift_end", sa.DateTime(timezone=True), nullable=True),
        sa.Column("housing_offered", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("required_badges", sa.JSON(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="draft"),
        sa.Column("demo_session_id", sa.String(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"]),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_listings_id", "listings", ["id"])
    op.create_index("ix_listings_organization_id", "listings", ["organization_id"])
    op.create_index("ix_listings_role_key", "listings", ["role_key"])
    op.create_index("ix_listings_location", "listings", ["location"])
    op.create_index("ix_listings_status", "listings", ["status"])
    op.create_index("ix_listings_demo_session_id", "listings", ["demo_session_id"])

    op.create_table(
        "talent_profiles",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("location", sa.String(), nullable=True),
        sa.Column("role_key", sa.String(), nullable=True),
        sa.Column("skills", sa.JSON(), nullable=True),
        sa.Column("housing_needed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("visibility_scope", sa.String(), nullable=False, server_default="public"),
        sa.Column("available_for_extra_hours", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_talent_profiles_id", "talent_profiles", ["id"])
    op.create_index("ix_talent_profiles_user_id", "talent_profiles", ["user_id"], unique=True)
    op.create_index("ix_talent_profiles_location", "talent_profiles", ["location"])
    op.create_index("ix_talent_profiles_role_key", "talent_profiles", ["role_key"])

    op.create_table(
        "busy_blocks",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("talent_user_id", sa.Integer(), nullable=False),
        sa.Column("start_ts", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_ts", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reason", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.ForeignKeyConstraint(["talent_user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_busy_blocks_id", "busy_blocks", ["id"])
    op.create_index("ix_busy_blocks_talent_user_id", "busy_blocks", ["talent_user_id"])

    for table, stamp in (
        ("saved_jobs", "created_at"),
        ("job_dismissals", "dismissed_at"),
    ):
        op.create_table(
            table,
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("candidate_id", sa.Integer(), nullable=False),
            sa.Column("listing_id", sa.Integer(), nullable=False),
            sa.Column("demo_session_id", sa.String(), nullable=True),
            sa.Column(stamp, sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
            sa.ForeignKeyConstraint(["candidate_id"], ["users.id"]),
            sa.ForeignKeyConstraint(["listing_id"], ["listings.id"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint(
                "candidate_id",
                "listing_id",
                name="uq_saved_job_candidate_listing" if table == "saved_jobs" else "uq_job_dismissal_candidate_listing",
            ),
        )
        op.create_index(f"ix_{table}_id", table, ["id"])
        op.create_index(f"ix_{table}_candidate_id", table, ["candidate_id"])
        op.create_index(f"ix_{table}_listing_id", table, ["listing_id"])
        op.create_index(f"ix_{table}_demo_session_id", table, ["demo_session_id"])

    op.create_table(
        "job_applications",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("candidate_id", sa.Integer(), nullable=False),
        sa.Column("listing_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="draft"),
        sa.Column("payload", sa.JSON(), nullable=True),
        sa.Column("demo_session_id", sa.String(), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["candidate_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["listing_id"], ["listings.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("candidate_id", "listing_id", name="uq_job_application_candidate_listing"),
    )
    op.create_index("ix_job_applications_id", "job_applications", ["id"])
    op.create_index("ix_job_applications_candidate_id", "job_applications", ["candidate_id"])
    op.create_index("ix_job_applications_listing_id", "job_applications", ["listing_id"])
    op.create_index("ix_job_applications_demo_session_id", "job_applications", ["demo_session_id"])

    op.create_table(
        "talent_job_swipes",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("talent_user_id", sa.Integer(), nullable=False),
        sa.Column("listing_id", sa.Integer(), nullable=False),
        sa.Column("direction", sa.String(), nullable=False),
        sa.Column("demo_session_id", sa.String(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["talent_user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["listing_id"], ["listings.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("talent_user_id", "listing_id", name="uq_talent_job_swipe"),
    )
    op.create_index("ix_talent_job_swipes_id", "talent_job_swipes", ["id"])
    op.create_index("ix_talent_job_swipes_talent_user_id", "talent_job_swipes", ["talent_user_id"])
    op.create_index("ix_talent_job_swipes_listing_id", "talent_job_swipes", ["listing_id"])
    op.create_index("ix_talent_job_swipes_demo_session_id", "talent_job_swipes", ["demo_session_id"])

    op.create_table(
        "employer_talent_swipes",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("organization_id", sa.Integer(), nullable=False),
        sa.Column("listing_id", sa.Integer(), nullable=False),
        sa.Column("talent_user_id", sa.Integer(), nullable=False),
        sa.Column("swiper_user_id", sa.Integer(), nullable=True),
        sa.Column("direction", sa.String(), nullable=False),
        sa.Column("demo_session_id", sa.String(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"]),
        sa.ForeignKeyConstraint(["listing_id"], ["listings.id"]),
        sa.ForeignKeyConstraint(["talent_user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["swiper_user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("organization_id", "listing_id", "talent_user_id", name="uq_employer_talent_swipe"),
    )
    op.create_index("ix_employer_talent_swipes_id", "employer_talent_swipes", ["id"])
    op.create_index("ix_employer_talent_swipes_organization_id", "employer_talent_swipes", ["organization_id"])
    op.create_index("ix_employer_talent_swipes_listing_id", "employer_talent_swipes", ["listing_id"])
    op.create_index("ix_employer_talent_swipes_talent_user_id", "employer_talent_swipes", ["talent_user_id"])
    op.create_index("ix_employer_talent_swipes_demo_session_id", "employer_talent_swipes", ["demo_session_id"])

    op.create_table(
        "matches",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("organization_id", sa.Integer(), nullable=False),
        sa.Column("listing_id", sa.Integer(), nullable=False),
        sa.Column("talent_user_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="matched"),
        sa.Column("demo_session_id", sa.String(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"]),
        sa.ForeignKeyConstraint(["listing_id"], ["listings.id"]),
        sa.ForeignKeyConstraint(["talent_user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("listing_id", "talent_user_id", name="uq_match_listing_talent"),
    )
    op.create_index("ix_matches_id", "matches", ["id"])
    op.create_index("ix_matches_organization_id", "matches", ["organization_id"])
    op.create_index("ix_matches_listing_id", "matches", ["listing_id"])
    op.create_index("ix_matches_talent_user_id", "matches", ["talent_user_id"])
    op.create_index("ix_matches_demo_session_id", "matches", ["demo_session_id"])

    op.create_table(
        "shift_bookings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("organization_id", sa.Integer(), nullable=False),
        sa.Column("talent_user_id", sa.Integer(), nullable=False),
        sa.Column("start_ts", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_ts", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="active"),
        sa.Column("source", sa.String(), nullable=False, server_default="direct"),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("demo_session_id", sa.String(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"]),
        sa.ForeignKeyConstraint(["talent_user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_shift_bookings_id", "shift_bookings", ["id"])
    op.create_index("ix_shift_bookings_organization_id", "shift_bookings", ["organization_id"])
    op.create_index("ix_shift_bookings_talent_user_id", "shift_bookings", ["talent_user_id"])
    op.create_index("ix_shift_bookings_start_ts", "shift_bookings", ["start_ts"])
    op.create_index("ix_shift_bookings_demo_session_id", "shift_bookings", ["demo_session_id"])

    op.create_table(
        "release_offers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("booking_id", sa.Integer(), nullable=False),
        sa.Column("from_org_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="open"),
        sa.Column("taken_by_org_id", sa.Integer(), nullable=True),
        sa.Column("new_booking_id", sa.Integer(), nullable=True),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.ForeignKeyConstraint(["booking_id"], ["shift_bookings.id"]),
        sa.ForeignKeyConstraint(["from_org_id"], ["organizations.id"]),
        sa.ForeignKeyConstraint(["taken_by_org_id"], ["organizations.id"]),
        sa.ForeignKeyConstraint(["new_booking_id"], ["shift_bookings.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_release_offers_id", "release_offers", ["id"])
    op.create_index("ix_release_offers_booking_id", "release_offers", ["booking_id"])
    op.create_index("ix_release_offers_from_org_id", "release_offers", ["from_org_id"])
    op.create_index("ix_release_offers_status", "release_offers", ["status"])

    op.create_table(
        "offers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("organization_id", sa.Integer(), nullable=False),
        sa.Column("talent_user_id", sa.Integer(), nullable=False),
        sa.Column("match_id", sa.Integer(), nullable=True),
        sa.Column("listing_id", sa.Integer(), nullable=True),
        sa.Column("listing_type", sa.String(), nullable=False, server_default="job"),
        sa.Column("status", sa.String(), nullable=False, server_default="draft"),
        sa.Column("active_slot", sa.String(), nullable=True),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("location", sa.String(), nullable=True),
        sa.Column("role_title", sa.String(), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("shift_start", sa.DateTime(timezone=True), nullable=True),
        sa.Column("shift_end", sa.DateTime(timezone=True), nullable=True),
        sa.Column("hours_per_week", sa.Float(), nullable=True),
        sa.Column("hourly_rate", sa.Float(), nullable=True),
        sa.Column("currency", sa.String(), nullable=False, server_default="SEK"),
        sa.Column("housing_included", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("housing_note", sa.Text(), nullable=True),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("booking_id", sa.Integer(), nullable=True),
        sa.Column("demo_session_id", sa.String(), nullable=True),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"]),
        sa.ForeignKeyConstraint(["talent_user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["match_id"], ["matches.id"]),
        sa.ForeignKeyConstraint(["listing_id"], ["listings.id"]),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"]),
        sa.ForeignKeyConstraint(["booking_id"], ["shift_bookings.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("active_slot"),
    )
    op.create_index("ix_offers_id", "offers", ["id"])
    op.create_index("ix_offers_organization_id", "offers", ["organization_id"])
    op.create_index("ix_offers_talent_user_id", "offers", ["talent_user_id"])
    op.create_index("ix_offers_match_id", "offers", ["match_id"])
    op.create_index("ix_offers_listing_id", "offers", ["listing_id"])
    op.create_index("ix_offers_status", "offers", ["status"])
    op.create_index("ix_offers_demo_session_id", "offers", ["demo_session_id"])

    op.create_table(
        "circle_links",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("from_org_id", sa.Integer(), nullable=False),
        sa.Column("to_org_id", sa.Integer(), nullable=False),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.ForeignKeyConstraint(["from_org_id"], ["organizations.id"]),
        sa.ForeignKeyConstraint(["to_org_id"], ["organizations.id"]),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_circle_links_id", "circle_links", ["id"])
    op.create_index("ix_circle_links_from_org_id", "circle_links", ["from_org_id"])
    op.create_index("ix_circle_links_to_org_id", "circle_links", ["to_org_id"])
    op.create_index("ix_circle_links_status", "circle_links", ["status"])

    op.create_table(
        "circles",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("owner_org_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.ForeignKeyConstraint(["owner_org_id"], ["organizations.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("owner_org_id", "name", name="uq_circle_owner_name"),
    )
    op.create_index("ix_circles_id", "circles", ["id"])
    op.create_index("ix_circles_owner_org_id", "circles", ["owner_org_id"])

    op.create_table(
        "circle_memberships",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("circle_id", sa.Integer(), nullable=False),
        sa.Column("organization_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.ForeignKeyConstraint(["circle_id"], ["circles.id"]),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("circle_id", "organization_id", name="uq_circle_membership"),
    )
    op.create_index("ix_circle_memberships_id", "circle_memberships", ["id"])
    op.create_index("ix_circle_memberships_circle_id", "circle_memberships", ["circle_id"])
    op.create_index("ix_circle_memberships_organization_id", "circle_memberships", ["organization_id"])

    op.create_table(
        "borrow_requests",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("organization_id", sa.Integer(), nullable=False),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("location", sa.String(), nullable=False),
        sa.Column("role_key", sa.String(), nullable=False),
        sa.Column("start_ts", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_ts", sa.DateTime(timezone=True), nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("scope", sa.String(), nullable=False, server_default="local"),
        sa.Column("circle_id", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="open"),
        sa.Column("filled_by_offer_id", sa.Integer(), nullable=True),
        sa.Column("demo_session_id", sa.String(), nullable=True),
        sa.Column("closed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"]),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"]),
        sa.ForeignKeyConstraint(["circle_id"], ["circles.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_borrow_requests_id", "borrow_requests", ["id"])
    op.create_index("ix_borrow_requests_organization_id", "borrow_requests", ["organization_id"])
    op.create_index("ix_borrow_requests_location", "borrow_requests", ["location"])
    op.create_index("ix_borrow_requests_status", "borrow_requests", ["status"])
    op.create_index("ix_borrow_requests_demo_session_id", "borrow_requests", ["demo_session_id"])

    op.create_table(
        "borrow_offers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("borrow_request_id", sa.Integer(), nullable=False),
        sa.Column("talent_user_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("accepted_request_id", sa.Integer(), nullable=True),
        sa.Column("booking_id", sa.Integer(), nullable=True),
        sa.Column("demo_session_id", sa.String(), nullable=True),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.ForeignKeyConstraint(["borrow_request_id"], ["borrow_requests.id"]),
        sa.ForeignKeyConstraint(["talent_user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["booking_id"], ["shift_bookings.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("borrow_request_id", "talent_user_id", name="uq_borrow_offer_request_talent"),
        sa.UniqueConstraint("accepted_request_id"),
    )
    op.create_index("ix_borrow_offers_id", "borrow_offers", ["id"])
    op.create_index("ix_borrow_offers_borrow_request_id", "borrow_offers", ["borrow_request_id"])
    op.create_index("ix_borrow_offers_talent_user_id", "borrow_offers", ["talent_user_id"])
    op.create_index("ix_borrow_offers_status", "borrow_offers", ["status"])
    op.create_index("ix_borrow_offers_demo_session_id", "borrow_offers", ["demo_session_id"])


def downgrade() -> None:
    for table in (
        "borrow_offers",
        "borrow_requests",
        "circle_memberships",
        "circles",
        "circle_links",
        "offers",
        "release_offers",
        "shift_bookings",
        "matches",
        "employer_talent_swipes",
        "talent_job_swipes",
        "job_applications",
        "job_dismissals",
        "saved_jobs",
        "busy_blocks",
        "talent_profiles",
        "listings",
        "org_memberships",
        "organizations",
        "users",
    ):
        op.drop_table(table)
