"""
UI-ready shaping of variance results
"""
