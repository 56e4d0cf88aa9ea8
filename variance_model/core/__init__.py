"""
Core variance computations: seasonality, trailing performance, revenue and tiers
"""
