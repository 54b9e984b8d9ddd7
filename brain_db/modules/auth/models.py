# Supabase table: auth_allowlist
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- id: uuid (primary key)
- email: text (unique, stored lowercased and trimmed)
- name: text (nullable)
- role: text (default: 'user') - 'admin' grants access to /admin/allowlist
- is_active: boolean (default: true) - inactive rows block signup and signin
- created_at: timestamp (default: now())

Users themselves live in Supabase Auth (auth.users); signup goes through
auth.admin.create_user with the service role key.
"""
