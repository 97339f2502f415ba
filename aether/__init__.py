"""
AETHER APPLICATION PACKAGE
==========================

Main Python package for the Aether backend:

  from aether.main import app
  from aether.models import ChatRequest
  from aether.services.study_assistant import StudyAssistantService

FILE STRUCTURE:
  aether/
    __init__.py   - This file.
    main.py       - FastAPI app and all HTTP endpoints.
    models.py     - Pydantic models for requests, responses and stored sessions.
    prompts.py    - Named prompt templates with their input/output models.
    services/     - Flows, prompt invoker, session store, auth bridge, ingestion.
    utils/        - Retry with backoff, current date/time for the chat prompt.
"""
