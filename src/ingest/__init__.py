"""File ingestion pipeline.

This package fetches delivered files, parses them into file records,
and drives phone-number extraction and registry merges.
"""
