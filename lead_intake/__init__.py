"""
Lead intake API: accepts landing-page form submissions and records leads.
"""

__version__ = "1.0.0"
