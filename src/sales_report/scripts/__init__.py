"""
Operator command-line entry points.
"""
