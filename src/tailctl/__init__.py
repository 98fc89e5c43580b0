"""Command line and environment configuration for mongotail."""
