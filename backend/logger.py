import logging
import os
from datetime import datetime
from typing import Optional

LOG_FORMAT = "[%(asctime)s] %(lineno)d %(name)s - %(levelname)s - %(message)s"

_configured = False


def configure_logging(level: str = "INFO", log_dir: Optional[str] = None) -> None:
    """Configure root logging once per process.

    With ``log_dir`` set, records go to a timestamped file inside it;
    otherwise they go to stderr.
    """
    global _configured
    if _configured:
        return

    kwargs = {"format": LOG_FORMAT, "level": getattr(logging, str(level).upper(), logging.INFO)}
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        log_file = f"{datetime.now().strftime('%m__%d__%Y__%H__%M__%S')}.log"
        kwargs["filename"] = os.path.join(log_dir, log_file)

    logging.basicConfig(**kwargs)
    _configured = True
