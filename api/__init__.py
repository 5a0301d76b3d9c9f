"""
Claim Service API (FastAPI)

HTTP API over a built results document:
- GET /health - Health check
- GET /root - Current root and tree metadata
- GET /proofs/{address} - Circuit inputs for one claimant
- POST /verify - Verify a submitted inclusion proof

Usage:
    uvicorn api.app:app --reload
"""

__version__ = "0.1.0"
