# Supabase tables: groups, group_members
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

groups:
- id: uuid (primary key, default: gen_random_uuid())
- name: text (not null)
- description: text (nullable)
- owner_id: uuid (foreign key to auth.users.id, not null)
- created_at: timestamptz (default: now())

group_members:
- id: uuid (primary key)
- group_id: uuid (foreign key to groups.id ON DELETE CASCADE, not null)
- user_id: uuid (foreign key to auth.users.id, not null)
- role: text (not null, default: 'member') - values: admin, member, readonly
- created_at: timestamptz (default: now())
- unique constraint on (group_id, user_id)

Deleting a group cascades to group_members, invitations and foods through the
foreign keys above; the application never deletes those rows itself.
Row-level security restricts every table to rows whose group_id the caller
has a group_members row for.
"""
