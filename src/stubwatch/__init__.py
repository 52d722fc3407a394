"""
stubwatch - regenerate type-interface files when a project's sources change.
"""

__version__ = "0.1.0"
