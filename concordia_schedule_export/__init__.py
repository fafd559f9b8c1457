"""
Concordia schedule export: turn enrolled courses into calendar-import files.
"""
__version__ = "0.1.0"
