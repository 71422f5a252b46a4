"""
Command line interface of release-flow.
"""
