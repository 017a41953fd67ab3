"""
Run the session planner API with uvicorn.
Host, port and log level come from the environment (API_HOST, API_PORT, LOG_LEVEL).
"""

import argparse
import os
import sys

import uvicorn

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from planner.core.config import API_HOST, API_PORT, LOG_LEVEL


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Pickleball Session Planner API server")
    parser.add_argument("--reload", action="store_true", help="Restart on code changes")
    args = parser.parse_args()

    print("=" * 60)
    print("Pickleball Session Planner API Server")
    print(f"Generate sessions at http://{API_HOST}:{API_PORT}/api/session")
    print(f"API Documentation: http://{API_HOST}:{API_PORT}/docs")
    print("=" * 60)

    uvicorn.run(
        "planner.main:app",
        host=API_HOST,
        port=API_PORT,
        reload=args.reload,
        log_level=LOG_LEVEL.lower()
    )
