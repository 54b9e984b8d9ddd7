# Supabase tables: material_categories, wfs_streams, wfs_layers
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

material_categories
- id: text (primary key, e.g. 'FB.FL')
- main_category: text (not null)
- sub_category: text (not null)
- label: text (not null)
- created_at: timestamp (default: now())

wfs_streams
- id: uuid (primary key)
- url: text
- bundesland_oder_region: text

wfs_layers
- id: uuid (primary key)
- wfs_id: uuid (foreign key to wfs_streams.id)
- name: text
- titel: text
- abstract: text (nullable)
- schluesselwoerter: text[]
- inspire_thema_codes: text[]
- geometrietyp: text (nullable)
- feature_typ: text (nullable)
- inspire_konformitaet: text - 'konform' when INSPIRE compliant
"""
