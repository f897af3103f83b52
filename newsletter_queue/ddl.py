"""Database schema DDL for the newsletter queue."""

QUEUE_TABLE_DDL = """
CREATE TABLE newsletter_queue (
  id             UUID PRIMARY KEY,
  campaign_id    TEXT NOT NULL,
  subscriber_id  TEXT NOT NULL,

  status         TEXT NOT NULL DEFAULT 'PENDING'
                 CHECK (status IN ('PENDING', 'PROCESSING', 'COMPLETED', 'FAILED')),
  priority       INT NOT NULL DEFAULT 0,

  attempts       INT NOT NULL DEFAULT 0,
  max_attempts   INT NOT NULL DEFAULT 3,
  scheduled_at   TIMESTAMPTZ NOT NULL DEFAULT now(),
  processed_at   TIMESTAMPTZ,
  error          TEXT,

  created_at     TIMESTAMPTZ NOT NULL DEFAULT now(),
  updated_at     TIMESTAMPTZ NOT NULL DEFAULT now(),

  CHECK (attempts <= max_attempts)
);

-- Ready-job fetch: status filter, then priority desc / scheduled_at asc
CREATE INDEX idx_newsletter_queue_ready
ON newsletter_queue (priority DESC, scheduled_at ASC)
WHERE status = 'PENDING';

CREATE INDEX idx_newsletter_queue_campaign_status
ON newsletter_queue (campaign_id, status);
"""

CAMPAIGN_SENT_TABLE_DDL = """
CREATE TABLE newsletter_campaign_sent (
  id             BIGSERIAL PRIMARY KEY,
  campaign_id    TEXT NOT NULL,
  subscriber_id  TEXT NOT NULL,
  sent_at        TIMESTAMPTZ,
  status         TEXT NOT NULL CHECK (status IN ('SENT', 'DELIVERED', 'FAILED')),
  error_message  TEXT,
  UNIQUE (campaign_id, subscriber_id)
);
"""

# Directory tables owned by the surrounding application. Only the columns
# the queue reads or writes are listed; used to bootstrap test databases.
DIRECTORY_TABLES_DDL = """
CREATE TABLE newsletter_campaigns (
  id                TEXT PRIMARY KEY,
  title             TEXT NOT NULL,
  subject           TEXT NOT NULL,
  content           TEXT NOT NULL DEFAULT '',
  type              TEXT NOT NULL DEFAULT 'NEWSLETTER',
  status            TEXT NOT NULL DEFAULT 'DRAFT',
  included_events   TEXT[] NOT NULL DEFAULT '{}',
  included_places   TEXT[] NOT NULL DEFAULT '{}',
  included_posts    TEXT[] NOT NULL DEFAULT '{}',
  total_recipients  INT NOT NULL DEFAULT 0,
  total_sent        INT NOT NULL DEFAULT 0,
  total_delivered   INT NOT NULL DEFAULT 0,
  sent_at           TIMESTAMPTZ
);

CREATE TABLE newsletter_attachments (
  id             TEXT PRIMARY KEY,
  campaign_id    TEXT NOT NULL REFERENCES newsletter_campaigns (id) ON DELETE CASCADE,
  original_name  TEXT NOT NULL,
  file_path      TEXT NOT NULL,
  file_size      INT NOT NULL DEFAULT 0,
  file_type      TEXT NOT NULL
);

CREATE TABLE newsletter_subscribers (
  id                 TEXT PRIMARY KEY,
  email              TEXT NOT NULL UNIQUE,
  first_name         TEXT,
  unsubscribe_token  TEXT NOT NULL,
  is_active          BOOLEAN NOT NULL DEFAULT TRUE,
  is_verified        BOOLEAN NOT NULL DEFAULT FALSE
);

CREATE TABLE newsletter_preferences (
  subscriber_id  TEXT PRIMARY KEY REFERENCES newsletter_subscribers (id) ON DELETE CASCADE,
  events         BOOLEAN NOT NULL DEFAULT TRUE,
  places         BOOLEAN NOT NULL DEFAULT TRUE,
  offers         BOOLEAN NOT NULL DEFAULT TRUE,
  news           BOOLEAN NOT NULL DEFAULT TRUE
);

CREATE TABLE events (
  id                TEXT PRIMARY KEY,
  title             TEXT NOT NULL,
  slug              TEXT NOT NULL,
  summary           TEXT,
  start_date        TIMESTAMPTZ,
  end_date          TIMESTAMPTZ,
  is_all_day        BOOLEAN NOT NULL DEFAULT FALSE,
  location_name     TEXT,
  location_city     TEXT,
  cover_image       TEXT
);

CREATE TABLE places (
  id           TEXT PRIMARY KEY,
  name         TEXT NOT NULL,
  slug         TEXT NOT NULL,
  summary      TEXT,
  street       TEXT,
  city         TEXT,
  phone        TEXT,
  website      TEXT,
  cover_image  TEXT
);

CREATE TABLE posts (
  id            TEXT PRIMARY KEY,
  title         TEXT NOT NULL,
  slug          TEXT NOT NULL,
  excerpt       TEXT,
  cover_image   TEXT,
  published_at  TIMESTAMPTZ
);
"""
