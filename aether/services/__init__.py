"""
SERVICES PACKAGE
=================

Business logic lives here. The API layer (aether.main) calls these services;
they don't handle HTTP.

MODULES:
    prompt_invoker  - Runs named prompts against Groq through LangChain (structured output).
    study_assistant - Classify -> optional summary -> answer over a document.
    chat_memory     - One chat turn with caller-supplied history and mode.
    task_automation - Automation script + explanation for a task description.
    code_generation - Code snippet from a voice command.
    session_store   - Per-user chat sessions and messages as JSON files.
    auth_bridge     - Clerk session verification and Firebase custom tokens.
    ingestion       - Text from URLs (Tavily) and PDFs (pypdf).
"""
