"""Public image uploads (profile pictures, company logos)."""
