# Supabase Auth + profiles table
# Sign-in goes through Supabase Auth (OAuth provider configured in settings).
# Each successful authentication upserts the caller into public.profiles.

"""
Supabase Auth provides:
- auth.sign_in_with_oauth() - Provider redirect URL for sign-in
- auth.get_user() - Get current user from JWT token
- auth.get_session() - Current session of this client
- auth.sign_out() - Logout users
- auth.on_auth_state_change() - (event, session) notifications

profiles:
- id: uuid (primary key, foreign key to auth.users.id)
- email: text (nullable)
- display_name: text (nullable)
- avatar_url: text (nullable)
- identities: jsonb (default: '[]') - [{"provider": ..., "identity_id": ...}]
- updated_at: timestamptz

Profiles are upserted on id and never deleted by the application.
"""
