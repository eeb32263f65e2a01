# log_utils.py
#
# Purpose:
# One place to configure logging for the two frontends (app.py and main.py).
# Library modules only do logging.getLogger(__name__) and never configure handlers.

import logging

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

_configured = False


def setup_logging(level="INFO"):
    """
    Attach a single stream handler to the root logger.

    Streamlit re-runs app.py on every interaction, so this is guarded to avoid
    stacking duplicate handlers.
    """
    global _configured

    numeric = logging.getLevelName(str(level).upper())
    if not isinstance(numeric, int):
        numeric = logging.INFO

    root = logging.getLogger()
    root.setLevel(numeric)

    if not _configured:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
        _configured = True

    # requests/urllib3 are noisy at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)
