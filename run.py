"""
RUN SCRIPT - Start the AETHER server
====================================

PURPOSE:
  Single entry point to start the backend.

WHAT IT DOES:
  - Runs the FastAPI app from aether.main with uvicorn on 0.0.0.0:8000.
  - reload=True restarts the server when Python files change (development).

USAGE:
  python run.py

  API docs: http://localhost:8000/docs

NOTE:
  Set GROQ_API_KEY in .env before running. TAVILY_API_KEY enables URL
  extraction; the CLERK_* and FIREBASE_* settings enable sessions and the
  Firebase token bridge.
"""

import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "aether.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
