# Supabase table: foods
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

foods:
- id: uuid (primary key, default: gen_random_uuid())
- group_id: uuid (foreign key to groups.id ON DELETE CASCADE, not null)
- name: text (not null)
- flavor: text (nullable)
- portion: text (nullable)
- price: text (nullable) - price tier
- guiltindex: text (nullable) - low / medium / high
- businesshours: text (nullable) - "HH:MM-HH:MM", never crossing midnight
- addresstext: text (nullable)
- lat: double precision (nullable) - derived from addresstext
- lng: double precision (nullable) - derived from addresstext
- created_by: uuid (nullable)
- created_at: timestamptz (default: now())

Column names are the lower-cased forms Postgres gives unquoted camelCase
identifiers; app.database.field_mapping translates them.
Name uniqueness (case-insensitive, trimmed) is checked by the API layer only.
"""
