"""
Pickleball Session Planner: balanced doubles sessions for a player pool.
"""

__version__ = "1.0.0"
