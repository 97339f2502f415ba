"""
AETHER TEST SCRIPT - Interactive Tool Selector
==============================================

PURPOSE:
Command-line client for trying the AETHER API without the browser UI. Pick a
tool, type your input, and see what the server returns (including the
fallback answers when the model is unavailable).

USAGE:
    python test.py

    Make sure the server is running first: python run.py

COMMANDS:
    1 - Chat (keeps the conversation history locally and sends it each turn)
    2 - Study assistant (asks for a document file path, then questions)
    3 - Task automation
    4 - Code generation
    /mode <name> - Chat mode: general, coding, cognitive, knowledge, task
    /history     - Show the local chat history
    /clear       - Forget the chat history
    /quit or /exit - Exit
"""

from pathlib import Path

import requests


# -----------------------------------------------------------------------------
# CONFIGURATION
# -----------------------------------------------------------------------------
BASE_URL = "http://localhost:8000"
CHAT_MODES = ("general", "coding", "cognitive", "knowledge", "task")

TOOL = None
CHAT_MODE = "general"
CHAT_HISTORY = []   # [{"role": "user" | "assistant", "content": str}, ...]
DOCUMENT = None


def print_header():
    print("\n" + "=" * 60)
    print("AETHER - Tool Tester")
    print("=" * 60)
    print("\nTools:")
    print("  1 = Chat      2 = Study assistant")
    print("  3 = Automate  4 = Code generation")
    print("\nCommands: /mode <name>, /history, /clear, /quit")
    print("=" * 60 + "\n")


def post(path, payload, timeout=120):
    """POST JSON and return (data, error_text)."""
    try:
        response = requests.post(f"{BASE_URL}{path}", json=payload, timeout=timeout)
    except requests.exceptions.ConnectionError:
        return None, "Cannot connect to backend. Start it with: python run.py"
    except requests.exceptions.Timeout:
        return None, "Request timed out."
    if response.status_code != 200:
        return None, f"Error: {response.status_code} - {response.text}"
    return response.json(), None


# -----------------------------------------------------------------------------
# TOOLS
# -----------------------------------------------------------------------------

def run_chat(message):
    data, error = post("/chat", {"message": message, "chatHistory": CHAT_HISTORY, "mode": CHAT_MODE})
    if error:
        return error
    reply = data.get("response", "")
    CHAT_HISTORY.append({"role": "user", "content": message})
    CHAT_HISTORY.append({"role": "assistant", "content": reply})
    return reply


def run_study(query):
    data, error = post("/study", {"query": query, "document": DOCUMENT})
    if error:
        return error
    lines = []
    if data.get("summary"):
        lines.append(f"[summary] {data['summary']}\n")
    lines.append(data.get("answer", ""))
    return "\n".join(lines)


def run_automate(task):
    data, error = post("/automate", {"taskDescription": task})
    if error:
        return error
    return f"{data.get('automationScript', '')}\n\n{data.get('explanation', '')}"


def run_code(command):
    data, error = post("/code", {"voiceCommand": command})
    if error:
        return error
    return data.get("codeSnippet", "")


TOOLS = {"1": ("Chat", run_chat), "2": ("Study", run_study), "3": ("Automate", run_automate), "4": ("Code", run_code)}


def load_document():
    global DOCUMENT
    path = input("Document file path: ").strip()
    try:
        DOCUMENT = Path(path).read_text(encoding="utf-8")
        print(f"Loaded {len(DOCUMENT)} characters.\n")
        return True
    except OSError as e:
        print(f"Could not read {path}: {e}")
        return False


# -----------------------------------------------------------------------------
# MAIN LOOP
# -----------------------------------------------------------------------------

def main():
    global TOOL, CHAT_MODE
    print_header()
    print("Select a tool first (1-4):\n")

    while True:
        try:
            user_input = input("\nYou: ").strip()
        except (KeyboardInterrupt, EOFError):
            print("\nGoodbye!")
            break

        if user_input in TOOLS:
            TOOL = user_input
            if TOOL == "2" and not load_document():
                TOOL = None
                continue
            print(f"Switched to {TOOLS[TOOL][0]}\n")
            continue
        if user_input in ("/quit", "/exit"):
            print("\nGoodbye!")
            break
        if user_input == "/history":
            for i, msg in enumerate(CHAT_HISTORY, 1):
                print(f"{i}. {msg['role']}: {msg['content']}")
            continue
        if user_input == "/clear":
            CHAT_HISTORY.clear()
            print("Chat history cleared.")
            continue
        if user_input.startswith("/mode"):
            mode = user_input[len("/mode"):].strip()
            if mode not in CHAT_MODES:
                print(f"Unknown mode. Choose one of: {', '.join(CHAT_MODES)}")
            else:
                CHAT_MODE = mode
                print(f"Chat mode: {CHAT_MODE}")
            continue
        if user_input.startswith("/"):
            print(f"Unknown command: {user_input}")
            continue
        if not TOOL:
            print("Please select a tool first (1-4)")
            continue
        if not user_input:
            continue

        name, handler = TOOLS[TOOL]
        print(f"AETHER ({name}): ", end="", flush=True)
        print(handler(user_input))


if __name__ == "__main__":
    main()
