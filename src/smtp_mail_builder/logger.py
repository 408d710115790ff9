"""Logging helpers."""

import logging


def get_logger(name: str = "smtp_mail_builder") -> logging.Logger:
    """Return a :class:`logging.Logger` instance.

    Handlers are configured once by the console entry point via
    ``logging.basicConfig``; library code only asks for loggers.
    """
    return logging.getLogger(name)
