"""
Analysis backend client: HTTP access to the remote analysis function.
"""

from guardaio.backend_client.client import (
    AnalysisBackend,
    HttpAnalysisBackend,
    build_payload,
    encode_for_upload,
)

__all__ = [
    "AnalysisBackend",
    "HttpAnalysisBackend",
    "build_payload",
    "encode_for_upload",
]
