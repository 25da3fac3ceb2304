"""Admin authorization and roster management for the storefront dashboard."""
