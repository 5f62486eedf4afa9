"""Application entry point for the QuizGate service."""

from __future__ import annotations

from quiz_gate.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from quiz_gate.constants.storage_constants import DEFAULT_DATA_DIR
from quiz_gate.core.session_gate import QuizSessionGate
from quiz_gate.core.storage.key_value_store import JsonFileStore
from quiz_gate.server.api_server import run_api_server
from quiz_gate.utils.logging_config import configure_logging


def main() -> None:
    """Initialize logging, open the local store, and serve the API."""
    logger = configure_logging()
    store = JsonFileStore(DEFAULT_DATA_DIR)
    logger.info("Starting QuizGate with data in %s", store.data_dir)

    gate = QuizSessionGate(store)
    logger.info("Results page available at http://%s:%d/", DEFAULT_HOST, DEFAULT_PORT)
    run_api_server(gate, host=DEFAULT_HOST, port=DEFAULT_PORT)


if __name__ == "__main__":
    main()
