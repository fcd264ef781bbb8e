"""Main application entry point.

Runs FastAPI (port 8000) with the NiceGUI chat page mounted at "/".
Environment variables are loaded from .env file.
"""

import logging
import os
import subprocess
import sys
import time

from dotenv import load_dotenv

# Load environment variables before any other imports that might need them
load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


def run_integrated() -> None:
    """Serve the API and the chat page from one process on port 8000."""
    import uvicorn
    from nicegui import ui

    from docchat.api.app import create_app
    from docchat.ui.chat_page import chat_page  # noqa: F401 - Registers the page

    app = create_app()

    ui.run_with(
        app,
        title="ERM Risk Chatbot",
        storage_secret=os.getenv("NICEGUI_STORAGE_SECRET", "docchat-secret"),
    )

    port = int(os.getenv("PORT", "8000"))
    logger.info(f"Chat UI available at http://localhost:{port}/")
    logger.info(f"API docs available at http://localhost:{port}/docs")

    uvicorn.run(
        app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=port,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )


def run_separate() -> None:
    """Run the API on port 8000 and the chat page on port 8080.

    The page reaches the API through API_BASE_URL.
    """
    logger.info("Starting API on http://localhost:8000")
    logger.info("Starting chat UI on http://localhost:8080")

    api_proc = subprocess.Popen(
        [
            sys.executable,
            "-m",
            "uvicorn",
            "docchat.api.app:app",
            "--host",
            os.getenv("HOST", "0.0.0.0"),
            "--port",
            "8000",
        ]
    )
    ui_proc = subprocess.Popen(
        [sys.executable, "-c", "from docchat.ui.chat_page import main; main()"]
    )

    try:
        while api_proc.poll() is None and ui_proc.poll() is None:
            time.sleep(1)
    except KeyboardInterrupt:
        logger.info("Shutting down servers...")
    finally:
        for proc in (api_proc, ui_proc):
            proc.terminate()
            proc.wait()


def main() -> None:
    """Application entry point.

    Set RUN_MODE=separate to run the API and the UI on different ports.
    """
    mode = os.getenv("RUN_MODE", "integrated").lower()
    logger.info(f"Starting document chat in {mode} mode")

    if mode == "separate":
        run_separate()
    else:
        run_integrated()


if __name__ == "__main__":
    main()
