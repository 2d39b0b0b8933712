"""
Logging utilities for Lumen
Provides console setup and structured logging with metadata
"""

import logging
import sys
from typing import Optional, Dict, Any
import json

import colorlog

logger = logging.getLogger(__name__)


class StructuredLogger:
    """Provides structured logging with metadata"""
    
    def __init__(self, name: str, metadata: Optional[Dict[str, Any]] = None):
        """
        Initialize structured logger
        
        Args:
            name: Logger name
            metadata: Default metadata to include in all logs
        """
        self.logger = logging.getLogger(name)
        self.metadata = metadata or {}
        
    def bind(self, **metadata) -> 'StructuredLogger':
        """Return a logger carrying additional default metadata"""
        return StructuredLogger(self.logger.name, {**self.metadata, **metadata})
        
    def _format_message(self, message: str, **kwargs) -> str:
        """Format message with metadata"""
        data = {**self.metadata, **kwargs}
        if data:
            return f"{message} | {json.dumps(data, default=str)}"
        return message
        
    def debug(self, message: str, **kwargs):
        """Log debug message with metadata"""
        self.logger.debug(self._format_message(message, **kwargs))
        
    def info(self, message: str, **kwargs):
        """Log info message with metadata"""
        self.logger.info(self._format_message(message, **kwargs))
        
    def warning(self, message: str, **kwargs):
        """Log warning message with metadata"""
        self.logger.warning(self._format_message(message, **kwargs))
        
    def error(self, message: str, **kwargs):
        """Log error message with metadata"""
        self.logger.error(self._format_message(message, **kwargs))


_console_handler: Optional[logging.Handler] = None


def setup_console_logging(level: str = "INFO", color: bool = True) -> logging.Handler:
    """
    Setup console logging with optional color support
    
    Calling it again replaces the handler installed by the previous call.
    
    Args:
        level: Logging level
        color: Whether to use colored output
        
    Returns:
        The installed handler
    """
    global _console_handler
    
    # Create console handler
    console_handler = logging.StreamHandler(sys.stdout)
    
    # Create formatter
    if color and sys.stdout.isatty():
        formatter = colorlog.ColoredFormatter(
            '%(log_color)s%(asctime)s - %(name)s - %(levelname)s%(reset)s - %(message)s',
            log_colors={
                'DEBUG': 'cyan',
                'INFO': 'green',
                'WARNING': 'yellow',
                'ERROR': 'red',
                'CRITICAL': 'red,bg_white',
            }
        )
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        
    console_handler.setFormatter(formatter)
    
    # Configure root logger
    root_logger = logging.getLogger()
    if _console_handler is not None:
        root_logger.removeHandler(_console_handler)
    root_logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    root_logger.addHandler(console_handler)
    _console_handler = console_handler
    return console_handler
