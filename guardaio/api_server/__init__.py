"""
API server package — HTTP interface for shared analyses.

Serves analyses that their owners chose to share, looked up by share token.
"""
