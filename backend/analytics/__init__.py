"""Visit analytics for public profile pages."""
