"""Web surface for the clinic chart."""
