"""A small microblogging HTTP server with token authentication and SQLite storage."""

__version__ = "0.1.0"