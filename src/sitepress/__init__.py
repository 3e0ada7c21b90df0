"""Static site generation and publish pipeline for a multi-site CMS."""

__version__ = "0.4.0"
