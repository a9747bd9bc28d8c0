"""Public read API for the storefront."""
