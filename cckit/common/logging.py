import logging


class CountingHandler(logging.Handler):
    """Counts warnings and errors emitted while it is attached to a logger."""

    def __init__(self):
        super().__init__()
        self.warnings = 0
        self.errors = 0

    def emit(self, record):
        if record.levelno >= logging.ERROR:
            self.errors += 1
        elif record.levelno >= logging.WARNING:
            self.warnings += 1

    @property
    def has_errors(self) -> bool:
        return self.errors > 0

    def reset(self) -> None:
        self.warnings = 0
        self.errors = 0
