"""Command line tools for the clinic chart."""
