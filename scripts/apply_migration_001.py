#!/usr/bin/env python3
"""Apply migration 001: post_jobs queue and notifications tables."""
import asyncio
import asyncpg
import os

MIGRATION = """
CREATE TABLE IF NOT EXISTS post_jobs (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id UUID NOT NULL,
    post_id UUID,
    platform TEXT NOT NULL,
    content TEXT NOT NULL DEFAULT '',
    media_urls TEXT[],
    payload JSONB NOT NULL DEFAULT '{}',
    run_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    idempotency_key TEXT,
    status TEXT NOT NULL DEFAULT 'pending'
        CHECK (status IN ('pending', 'processing', 'succeeded', 'failed', 'cancelled')),
    attempts INTEGER NOT NULL DEFAULT 0,
    max_attempts INTEGER NOT NULL DEFAULT 3,
    error TEXT,
    claimed_at TIMESTAMPTZ,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_post_jobs_due ON post_jobs(run_at) WHERE status = 'pending';
CREATE INDEX IF NOT EXISTS idx_post_jobs_user ON post_jobs(user_id);
CREATE INDEX IF NOT EXISTS idx_post_jobs_processing ON post_jobs(claimed_at) WHERE status = 'processing';
CREATE UNIQUE INDEX IF NOT EXISTS uq_post_jobs_idempotency_key
    ON post_jobs(idempotency_key) WHERE idempotency_key IS NOT NULL;

CREATE TABLE IF NOT EXISTS notifications (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id TEXT NOT NULL,
    title VARCHAR(255) NOT NULL,
    message TEXT NOT NULL,
    type VARCHAR(50) NOT NULL
        CHECK (type IN ('post_published', 'post_failed', 'integration_error', 'other')),
    read BOOLEAN DEFAULT false,
    metadata JSONB,
    created_at TIMESTAMPTZ DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_notifications_user_id_read
    ON notifications(user_id, read) WHERE read = false;
"""

async def main():
    conn = await asyncpg.connect(os.environ["DATABASE_URL"], statement_cache_size=0)
    try:
        await conn.execute(MIGRATION)
        print("Migration 001 applied: post_jobs and notifications tables created")

        # Verify
        count = await conn.fetchval(
            "SELECT COUNT(*) FROM information_schema.columns WHERE table_name = 'post_jobs'"
        )
        print(f"post_jobs has {count} columns")
    finally:
        await conn.close()

if __name__ == "__main__":
    asyncio.run(main())
