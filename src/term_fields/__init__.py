"""
Terminal Fields Library

A small library for drawing updateable, optionally bordered text fields at fixed
positions in the terminal using the Blessed library.
"""

import logging

from .term_fields import (
    BorderStyle,
    BoxGlyphs,
    Field,
    FieldManager,
    NotInitializedError,
    ShiftDirection,
    TermFieldsError,
    TerminalSession,
    UnknownBorderStyleError,
    UnknownShiftDirectionError,
)

__all__ = [
    'BorderStyle',
    'BoxGlyphs',
    'Field',
    'FieldManager',
    'NotInitializedError',
    'ShiftDirection',
    'TermFieldsError',
    'TerminalSession',
    'UnknownBorderStyleError',
    'UnknownShiftDirectionError',
]

__version__ = '0.1.0'

logging.getLogger(__name__).addHandler(logging.NullHandler())
