"""Trigger surfaces: the cron HTTP endpoint and the command line."""
