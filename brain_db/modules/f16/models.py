# Supabase tables: f16_blog_posts, f16_blog_comments, f16_settings
# Storage bucket: f16-files (public), one folder per user id
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

f16_blog_posts
- id: uuid (primary key)
- project_id: text (not null, 'F16')
- title: text (not null)
- slug: text (not null)
- content: text (not null)
- excerpt: text
- featured_image_url: text (nullable)
- tags: text[]
- status: text - values: draft, published
- published_at: timestamp
- author_id: uuid (nullable)
- author_name: text (default 'Anonym')
- author_email: text (nullable)
- created_at: timestamp (default: now())

f16_blog_comments
- id: uuid (primary key)
- post_id: uuid (foreign key to f16_blog_posts.id)
- parent_id: uuid (nullable, foreign key to f16_blog_comments.id)
- author_name: text (default 'Anonym')
- author_email: text (nullable)
- author_avatar_url: text (nullable)
- content: text (not null)
- status: text - values: pending, approved, rejected
- created_at: timestamp (default: now())

f16_settings
- id: uuid (primary key)
- project_id: text (unique, 'f16')
- model_path: text (nullable) - "<acc project id>/items/<item urn>"
- updated_at: timestamp
"""
