"""
SQL schema for the try-on tables and storage buckets.
Run these queries in your Supabase SQL editor.
"""

CREATE_USER_IMAGES_TABLE = """
-- Photos uploaded by users (objects live in the user_uploads bucket)
CREATE TABLE IF NOT EXISTS user_images (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id UUID NOT NULL REFERENCES auth.users(id) ON DELETE CASCADE,
    image_url TEXT NOT NULL,
    mime_type VARCHAR(64),
    created_at TIMESTAMPTZ DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_user_images_user_id ON user_images(user_id);

ALTER TABLE user_images ENABLE ROW LEVEL SECURITY;

-- Policy: Users can read their own images
CREATE POLICY user_images_select_own ON user_images
    FOR SELECT
    USING (auth.uid() = user_id);
"""

CREATE_CLOTHING_ITEMS_TABLE = """
-- Catalogue garments, referenced by external image URL
CREATE TABLE IF NOT EXISTS clothing_items (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    title VARCHAR(255) NOT NULL,
    image_url TEXT NOT NULL,
    created_at TIMESTAMPTZ DEFAULT NOW()
);
"""

CREATE_TRYON_RESULTS_TABLE = """
-- One row per (user, clothing, user image) combination
CREATE TABLE IF NOT EXISTS tryon_results (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id UUID NOT NULL REFERENCES auth.users(id) ON DELETE CASCADE,
    clothing_id UUID NOT NULL REFERENCES clothing_items(id) ON DELETE CASCADE,
    user_image_id UUID NOT NULL REFERENCES user_images(id) ON DELETE CASCADE,
    tryon_count INTEGER NOT NULL DEFAULT 1 CHECK (tryon_count >= 1),
    image_url TEXT,
    created_at TIMESTAMPTZ DEFAULT NOW(),
    CONSTRAINT tryon_results_combination_key
        UNIQUE (user_id, clothing_id, user_image_id)
);

CREATE INDEX IF NOT EXISTS idx_tryon_results_user_id ON tryon_results(user_id);

ALTER TABLE tryon_results ENABLE ROW LEVEL SECURITY;

-- Policy: Users can read their own try-on results
CREATE POLICY tryon_results_select_own ON tryon_results
    FOR SELECT
    USING (auth.uid() = user_id);

-- Policy: Service role can do everything (for API)
CREATE POLICY tryon_results_service_role_all ON tryon_results
    FOR ALL
    USING (auth.role() = 'service_role');
"""

CREATE_STORAGE_BUCKETS = """
-- Private buckets; results are shared through signed URLs only
INSERT INTO storage.buckets (id, name, public) VALUES
    ('user_uploads', 'user_uploads', false),
    ('tryon_results', 'tryon_results', false),
    ('tryon_combination_results', 'tryon_combination_results', false),
    ('videos', 'videos', false)
ON CONFLICT (id) DO NOTHING;
"""

# Combined setup script
FULL_SCHEMA_SETUP = f"""
-- =====================================================
-- Try-On Studio Schema Setup
-- =====================================================
-- Run this in your Supabase SQL Editor
-- =====================================================

{CREATE_USER_IMAGES_TABLE}

{CREATE_CLOTHING_ITEMS_TABLE}

{CREATE_TRYON_RESULTS_TABLE}

{CREATE_STORAGE_BUCKETS}

-- =====================================================
-- Setup Complete!
-- =====================================================
"""

if __name__ == "__main__":
    print(FULL_SCHEMA_SETUP)
