"""Enum taxonomies shared across tickwise (indicator kinds, categories, stance)."""
