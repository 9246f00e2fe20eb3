import logging
import os
import sys
from pathlib import Path

handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]

log_file = os.getenv("LOG_FILE")
if log_file:
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    handlers=handlers,
)

logger = logging.getLogger("clientportal")
