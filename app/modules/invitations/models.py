# Supabase table: invitations
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

invitations:
- id: uuid (primary key, default: gen_random_uuid())
- group_id: uuid (foreign key to groups.id ON DELETE CASCADE, not null)
- token: text (unique, not null) - 32 hex chars, 128 bits from a CSPRNG
- role: text (not null) - role granted on redemption: admin, member, readonly
- email: text (nullable) - when set, only this address may redeem (case-insensitive)
- max_uses: integer (nullable) - NULL means unlimited
- used_count: integer (not null, default: 0)
- status: text (not null, default: 'active') - values: active, used, revoked
- created_by: uuid (foreign key to auth.users.id, not null)
- created_at: timestamptz (default: now())
- last_used_at: timestamptz (nullable)

Redemption claims a use with a conditional UPDATE
(... WHERE id = ? AND status = 'active' AND used_count = <read value>),
so two concurrent redemptions cannot both take the last slot.
"""
