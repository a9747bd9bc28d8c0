"""Admin content management: upload intake, orchestration and routes."""
