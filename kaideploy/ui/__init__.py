from .reporter import ConsoleReporter

__all__ = ["ConsoleReporter"]
