#!/usr/bin/env python3
"""Start the Search Consultation Gateway API server."""
import os
import sys

import uvicorn

from app.config import load_settings

DEFAULT_PORT = 8081


def describe_settings():
    """Print the startup configuration the server will run with."""
    settings = load_settings()
    print("=" * 80)
    print(f"Model: {settings.model_name} via {settings.completion.base_url}")
    print(f"Restricted mode: {settings.restricted_mode}")
    if settings.restricted_mode:
        print("  - local_search_server backend disabled")
        print("  - /query/summarize disabled")
    print(f"Max search results: {settings.search.max_search_results}")
    print(f"Size limit per result: {settings.search.size_per_search_result}")
    print("=" * 80)
    print()


if __name__ == "__main__":
    describe_settings()

    port = int(os.environ.get("PORT", DEFAULT_PORT))
    if len(sys.argv) > 1:
        try:
            port = int(sys.argv[1])
        except ValueError:
            print(f"Invalid port: {sys.argv[1]}. Using default port {DEFAULT_PORT}.")
            port = DEFAULT_PORT

    print(f"Starting server on http://0.0.0.0:{port}")
    print()

    uvicorn.run(
        "app.main:app",
        host=os.environ.get("HOST", "0.0.0.0"),
        port=port,
        log_level="info",
    )
