import logging
import os

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("entrypoint")


def main() -> None:
  """Launch the ping service under uvicorn."""
  port = os.getenv("PINGS_PORT", "8080")
  logger.info("Starting ping service on port %s...", port)
  # Replace the current process so uvicorn receives SIGTERM directly.
  os.execvp("uvicorn", ["uvicorn", "pings.main:app", "--host", "0.0.0.0", "--port", port, "--no-server-header"])


if __name__ == "__main__":
  main()
