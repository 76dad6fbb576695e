"""
tracksmith: a multi-track audio editing core.
"""
__version__ = "0.1.0"
