"""
Lava lamp guard: alert-driven lamp switching with time window, rest time and
maximum on-time rules.
"""
