"""Command line interface for Lanlearner."""
