"""
Applications Package
Command-line entry points for the crawler and the read queries.
"""
