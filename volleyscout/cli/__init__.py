"""Command line interface for VolleyScout."""
