"""
QuerySmith
Abstract search queries compiled for OpenSearch, results mapped back
"""
