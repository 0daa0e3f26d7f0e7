#!/usr/bin/env python3
"""Run the ICE broker server."""
import os
import uvicorn

if __name__ == "__main__":
    # Enable reload only in debug/development mode
    reload = os.getenv("DEBUG", "false").lower() == "true"

    # NOTE: Single worker keeps one credential cache and one in-flight fetch.
    # Extra workers would each fetch and cache TURN credentials separately.
    uvicorn.run(
        "icebroker.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=reload,
        log_level="info",
        loop="uvloop" if not reload else "auto",  # uvloop for production perf
        proxy_headers=True,
        forwarded_allow_ips="*",
    )
