"""Standalone sync runner for cron-style schedulers."""
