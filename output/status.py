"""
Status indicator rendering.
"""

import logging
import sys
from abc import ABC, abstractmethod
from typing import Optional, TextIO

from models.constants import Constants, StatusIndicator

logger = logging.getLogger(Constants.LOGGER_NAME)


class StatusRenderer(ABC):
    """Renders one of the three status indicators."""

    @abstractmethod
    def render(self, indicator: StatusIndicator) -> None:
        """Show the given indicator, replacing whatever was shown before."""

    def progress(self, current_step: int, total_steps: int, percent: int, eta_str: str) -> None:
        """Optional progress detail while BUSY; ignored by default."""


class ConsoleStatusRenderer(StatusRenderer):
    """Prints status changes and a one-line progress readout to a text stream."""

    MESSAGES = {
        StatusIndicator.IDLE: "Ready to generate. Run again with --regenerate to create a new track.",
        StatusIndicator.BUSY: "Working...",
        StatusIndicator.READY: "Now playing.",
    }

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream or sys.stdout
        self.current: Optional[StatusIndicator] = None
        self._last_percent = -1

    def render(self, indicator: StatusIndicator) -> None:
        if indicator == self.current:
            return
        if self.current == StatusIndicator.BUSY and self._last_percent >= 0:
            self.stream.write("\n")
        self.current = indicator
        self._last_percent = -1
        logger.debug(f"Status: {indicator.value}")
        self.stream.write(f"[{indicator.value}] {self.MESSAGES[indicator]}\n")
        self.stream.flush()

    def progress(self, current_step: int, total_steps: int, percent: int, eta_str: str) -> None:
        if self.current != StatusIndicator.BUSY or percent == self._last_percent:
            return
        self._last_percent = percent
        self.stream.write(f"\r  {percent:3d}% ({current_step}/{total_steps}) {eta_str}   ")
        self.stream.flush()
