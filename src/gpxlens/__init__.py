"""GPX Track Library and Analytics CLI Tool.

A command-line tool to import GPX track recordings, clean GPS outliers,
derive elevation series, merge tracks chronologically, and query
interpolated positions along a track or a merged series.
"""

__version__ = "0.1.0"

__author__ = "gpxlens contributors"
__license__ = "Apache-2.0"

__all__ = ["__version__"]
