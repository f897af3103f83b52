"""Unit tests for DDL module."""

from newsletter_queue.ddl import (
    CAMPAIGN_SENT_TABLE_DDL,
    DIRECTORY_TABLES_DDL,
    QUEUE_TABLE_DDL,
)


def test_queue_table_ddl_contains_create_table():
    """Test that DDL contains CREATE TABLE statement."""
    assert "CREATE TABLE newsletter_queue" in QUEUE_TABLE_DDL


def test_queue_table_ddl_contains_required_columns():
    """Test that DDL contains all required columns."""
    required_columns = [
        "id",
        "campaign_id",
        "subscriber_id",
        "status",
        "priority",
        "attempts",
        "max_attempts",
        "scheduled_at",
        "processed_at",
        "error",
        "created_at",
        "updated_at",
    ]

    for column in required_columns:
        assert column in QUEUE_TABLE_DDL, f"Column {column} not found in DDL"


def test_queue_table_ddl_bounds_attempts():
    assert "CHECK (attempts <= max_attempts)" in QUEUE_TABLE_DDL


def test_queue_table_ddl_contains_indexes():
    """Test that DDL contains the ready-jobs and campaign indexes."""
    assert "idx_newsletter_queue_ready" in QUEUE_TABLE_DDL
    assert "idx_newsletter_queue_campaign_status" in QUEUE_TABLE_DDL


def test_campaign_sent_ddl_is_unique_per_subscriber():
    assert "CREATE TABLE newsletter_campaign_sent" in CAMPAIGN_SENT_TABLE_DDL
    assert "UNIQUE (campaign_id, subscriber_id)" in CAMPAIGN_SENT_TABLE_DDL


def test_directory_tables_ddl():
    for table in (
        "newsletter_campaigns",
        "newsletter_attachments",
        "newsletter_subscribers",
        "newsletter_preferences",
        "events",
        "places",
        "posts",
    ):
        assert f"CREATE TABLE {table}" in DIRECTORY_TABLES_DDL
