"""
Run the Supaprofile web server.

Usage:
    python -m supaprofile.run_api
"""

import logging

import uvicorn

from supaprofile.config import Config


def main():
    config = Config()
    logging.basicConfig(
        level=config.log_level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    print("🚀 Starting Supaprofile server...")
    print(f"🔐 Login page: http://localhost:{config.api_port}/login")
    print(f"📊 Health check: http://localhost:{config.api_port}/health")
    print("")

    uvicorn.run(
        "supaprofile.api:app",
        host=config.api_host,
        port=config.api_port,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    main()
