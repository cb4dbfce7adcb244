"""
fluency: progress & mastery engine for language practice.
"""

__version__ = "0.1.0"
