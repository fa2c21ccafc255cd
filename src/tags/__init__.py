"""Tag data models, data sources and the tag cache service."""
