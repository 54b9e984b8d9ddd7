# Supabase tables: products, captures
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

products
- id: uuid (primary key)
- produkt_*: text - product column (name/model, manufacturer, series, code, description, URLs, kategorie)
- parameter_*: text/number - technical parameters (dimensions, color, material, fire class, u-value, ...)
- dokumente_*: text - document links (datasheet, technical sheet, catalog, BIM/CAD)
- haendler_*: text/number - retailer name, URLs, availability, einheit, preis, preis_pro_einheit
- erfahrung_*: text - project use, sample status, rating, notes
- erfassung_quell_url: text - URL the product was captured from
- erfassung_erfassungsdatum: timestamp
- erfassung_erfassung_fuer: text (default 'Deutschland')
- erfassung_extraktions_log: text - last extraction step
- source_type: text (manufacturer | reseller)
- source_url: text
- screenshot_path: text (public URL in the productfiles bucket)
- thumbnail_path: text
- created_at: timestamp (default: now())
- updated_at: timestamp

captures
- id: bigint/uuid (primary key)
- url: text (not null)
- title: text (nullable)
- screenshot_url: text - data URI or storage URL
- thumbnail_url: text - data URI or storage URL
- created_at: timestamp (default: now())
"""
