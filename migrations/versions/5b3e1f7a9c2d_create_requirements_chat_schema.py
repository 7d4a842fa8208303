"""create requirements chat schema

Revision ID: 5b3e1f7a9c2d
Revises:
Create Date: 2026-10-19 10:12:04.318275

"""
from typing import Sequence, Union

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '5b3e1f7a9c2d'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    # Step 1: Create the function (required before triggers)
    op.execute('''
        CREATE OR REPLACE FUNCTION update_updated_at_column()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ language 'plpgsql'
    ''')

    # Step 2: Create tables. event_participants belongs to the event system and
    # normally exists already; it is only created here when missing and is
    # never dropped by downgrade
    op.execute("""
        CREATE TABLE IF NOT EXISTS event_participants (
            id UUID PRIMARY KEY,
            event_id UUID NOT NULL,
            name VARCHAR(255) NOT NULL,
            profile_image VARCHAR(1024),
            position VARCHAR(255),
            created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
        )
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS requirements (
            id UUID PRIMARY KEY,
            event_id UUID NOT NULL,
            posted_by UUID NOT NULL REFERENCES event_participants(id),
            title VARCHAR(255) NOT NULL,
            description TEXT NOT NULL,
            budget NUMERIC(12, 2) CHECK (budget IS NULL OR budget >= 0),
            currency VARCHAR(3),
            location_preference VARCHAR(255),
            bidders_count INTEGER NOT NULL DEFAULT 0 CONSTRAINT ck_requirements_bidders_count CHECK (bidders_count >= 0),
            created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
            updated_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
        )
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS chats (
            id UUID PRIMARY KEY,
            requirement_id UUID NOT NULL REFERENCES requirements(id),
            posted_by UUID NOT NULL REFERENCES event_participants(id),
            bidder_id UUID NOT NULL REFERENCES event_participants(id),
            last_activity TIMESTAMP WITH TIME ZONE NOT NULL,
            unread_posted_by INTEGER NOT NULL DEFAULT 0,
            unread_bidder INTEGER NOT NULL DEFAULT 0,
            message_seq INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
            updated_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
            CONSTRAINT uq_chats_requirement_bidder UNIQUE (requirement_id, bidder_id),
            CONSTRAINT ck_chats_not_self CHECK (posted_by <> bidder_id),
            CONSTRAINT ck_chats_unread_non_negative CHECK (unread_posted_by >= 0 AND unread_bidder >= 0)
        )
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS messages (
            id UUID PRIMARY KEY,
            chat_id UUID NOT NULL REFERENCES chats(id),
            sender_id UUID NOT NULL REFERENCES event_participants(id),
            seq INTEGER NOT NULL,
            text TEXT,
            attachments JSON DEFAULT '[]'::json,
            created_at TIMESTAMP WITH TIME ZONE NOT NULL,
            CONSTRAINT uq_messages_chat_seq UNIQUE (chat_id, seq)
        )
    """)

    # Step 3: Create indexes (skip if they already exist)
    op.execute('CREATE INDEX IF NOT EXISTS idx_event_participants_event ON event_participants(event_id)')
    op.execute('CREATE INDEX IF NOT EXISTS idx_requirements_event_created ON requirements(event_id, created_at DESC)')
    op.execute('CREATE INDEX IF NOT EXISTS idx_requirements_posted_by ON requirements(posted_by)')
    op.execute('CREATE INDEX IF NOT EXISTS idx_chats_posted_by_activity ON chats(posted_by, last_activity DESC)')
    op.execute('CREATE INDEX IF NOT EXISTS idx_chats_bidder_activity ON chats(bidder_id, last_activity DESC)')
    op.execute('CREATE INDEX IF NOT EXISTS idx_chats_requirement_activity ON chats(requirement_id, last_activity DESC)')

    # Step 4: Create triggers (only after tables exist)
    op.execute('''
        CREATE TRIGGER update_requirements_updated_at
            BEFORE UPDATE ON requirements
            FOR EACH ROW EXECUTE FUNCTION update_updated_at_column()
    ''')

    op.execute('''
        CREATE TRIGGER update_chats_updated_at
            BEFORE UPDATE ON chats
            FOR EACH ROW EXECUTE FUNCTION update_updated_at_column()
    ''')


def downgrade() -> None:
    """Downgrade schema."""
    # Reverse order of upgrade: triggers, tables, then the trigger function
    op.execute('DROP TRIGGER IF EXISTS update_chats_updated_at ON chats')
    op.execute('DROP TRIGGER IF EXISTS update_requirements_updated_at ON requirements')

    op.execute('DROP TABLE IF EXISTS messages')
    op.execute('DROP TABLE IF EXISTS chats')
    op.execute('DROP TABLE IF EXISTS requirements')

    op.execute('DROP FUNCTION IF EXISTS update_updated_at_column()')
