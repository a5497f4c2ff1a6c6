# Supabase table: ratings
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

ratings:
- id: uuid (primary key)
- food_id: uuid (foreign key to foods.id ON DELETE CASCADE, unique, not null)
- stars: integer (not null, check 1 <= stars <= 5)
- rated_by: uuid (nullable) - last user who set the rating
- created_at: timestamptz (default: now())

One shared rating per food for the whole group; writes upsert on food_id.
"""
