"""
Tamilarr keeps a deduplicated movie catalog in sync with the Tamilan24
listings and links each title to its TMDB/IMDb identity.
"""

__version__ = "0.1.0"
