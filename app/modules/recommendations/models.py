# Supabase table: recommend_history
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

recommend_history:
- id: uuid (primary key)
- group_id: uuid (foreign key to groups.id ON DELETE CASCADE, not null)
- food_id: uuid (foreign key to foods.id ON DELETE CASCADE, not null)
- mode: text (not null) - roll (uniform) or recommend (rating-weighted)
- user_id: uuid (nullable)
- recommended_at: timestamptz (default: now())
"""
