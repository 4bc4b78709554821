"""
Command line tools for the pair-verify client.
"""
