"""
pcapmux command line interface.
"""
