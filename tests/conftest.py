"""Pytest configuration and shared fixtures."""

from hypothesis import settings

# Create a profile named "no_deadline" with deadline disabled.
#
# Property tests drive async code through asyncio.run, whose startup cost
# varies too much for per-example deadlines.
settings.register_profile("no_deadline", deadline=None)
settings.load_profile("no_deadline")
