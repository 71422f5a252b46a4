"""
release-flow: branch based semantic versioning driven by pull requests.
"""

__version__ = '0.1.0'
