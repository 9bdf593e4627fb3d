"""
Core field classes for terminal-based forms.

This module provides a terminal session that buffers single-cell writes on top
of a Blessed terminal, and a field manager that draws bordered, fixed-position
text fields through that session.
"""

import logging
from contextlib import ExitStack
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Optional, Tuple

from blessed import Terminal

logger = logging.getLogger(__name__)

NULL_GLYPH = '\0'


class TermFieldsError(Exception):
    """Base class for errors raised by term_fields."""


class NotInitializedError(TermFieldsError, RuntimeError):
    """A drawing operation was attempted on a session that is not initialized."""


class UnknownBorderStyleError(TermFieldsError, ValueError):
    """A box was requested in a style outside :class:`BorderStyle`."""


class UnknownShiftDirectionError(TermFieldsError, ValueError):
    """A field was shifted in a direction outside :class:`ShiftDirection`."""


@dataclass(frozen=True)
class BoxGlyphs:
    """The six characters used to draw a box around a field."""
    top_left: str
    top_right: str
    bottom_left: str
    bottom_right: str
    horizontal: str
    vertical: str


# Blanks a previously drawn border; never stored on a Field.
CLEAR_GLYPHS = BoxGlyphs(' ', ' ', ' ', ' ', ' ', ' ')


class BorderStyle(Enum):
    """Box styles that can be drawn around a field."""
    NONE = 'none'
    ASCII = 'ascii'
    UNICODE = 'unicode'

    @property
    def glyphs(self) -> BoxGlyphs:
        return _BORDER_GLYPHS[self]

    @classmethod
    def coerce(cls, style) -> 'BorderStyle':
        """Return ``style`` as a member, accepting members or their values."""
        if isinstance(style, cls):
            return style
        try:
            return cls(style)
        except (ValueError, TypeError):
            raise UnknownBorderStyleError(f"Unknown box style: {style!r}") from None


_BORDER_GLYPHS = {
    BorderStyle.NONE: BoxGlyphs(*(NULL_GLYPH * 6)),
    BorderStyle.ASCII: BoxGlyphs('+', '+', '+', '+', '-', '|'),
    BorderStyle.UNICODE: BoxGlyphs('┌', '┐', '└', '┘', '─', '│'),
}


class ShiftDirection(Enum):
    """One-cell moves, valued as (row delta, column delta)."""
    LEFT = (0, -1)
    RIGHT = (0, 1)
    UP = (-1, 0)
    DOWN = (1, 0)

    @property
    def rows(self) -> int:
        return self.value[0]

    @property
    def columns(self) -> int:
        return self.value[1]

    @classmethod
    def coerce(cls, direction) -> 'ShiftDirection':
        """Return ``direction`` as a member, accepting members or their names."""
        if isinstance(direction, cls):
            return direction
        if isinstance(direction, str) and direction.upper() in cls.__members__:
            return cls[direction.upper()]
        raise UnknownShiftDirectionError(f"Unknown shift direction: {direction!r}")


@dataclass(frozen=True)
class Field:
    """A fixed-width text region on screen.

    ``row`` and ``column`` anchor the text content, not the border. Fields are
    immutable records: every :class:`FieldManager` operation returns a new one.

    Attributes:
        row: Terminal row of the first content cell
        column: Terminal column of the first content cell
        width: Number of cells reserved for content
        border_style: Border currently drawn around the field
        text: Text last written to the content area
    """
    row: int
    column: int
    width: int
    border_style: BorderStyle = BorderStyle.NONE
    text: str = ''


class TerminalSession:
    """A cell-addressed drawing surface on top of a Blessed terminal.

    Cell writes are queued by :meth:`set_cell` and emitted by :meth:`flush`.
    Writes outside the terminal bounds are dropped. The session also keeps the
    characters it has committed to the display, queryable with :meth:`cell`.

    Attributes:
        term: Blessed Terminal instance, created by :meth:`init` if not given
        stream: Output stream for cell writes (``sys.stdout`` when None)
        fullscreen: Whether :meth:`init` switches to the alternate screen
        cbreak: Whether :meth:`init` puts the keyboard in cbreak mode
        hide_cursor: Whether :meth:`init` hides the cursor
    """

    def __init__(
        self,
        term: Optional[Terminal] = None,
        *,
        stream=None,
        fullscreen: bool = True,
        cbreak: bool = True,
        hide_cursor: bool = True,
    ):
        self.term = term
        self.stream = stream
        self.fullscreen = fullscreen
        self.cbreak = cbreak
        self.hide_cursor = hide_cursor
        self._modes: Optional[ExitStack] = None
        self._pending: Dict[Tuple[int, int], Tuple[str, Optional[str], Optional[str]]] = {}
        self._cells: Dict[Tuple[int, int], str] = {}

    def __enter__(self):
        self.init()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @property
    def is_initialized(self) -> bool:
        return self._modes is not None

    def init(self):
        """Enter the configured terminal modes.

        Must be called before any cell writes. Errors raised by Blessed while
        opening the terminal propagate unchanged.
        """
        if self.is_initialized:
            logger.debug("Terminal session already initialized")
            return
        if self.term is None:
            self.term = Terminal(stream=self.stream)
        with ExitStack() as stack:
            if self.fullscreen:
                stack.enter_context(self.term.fullscreen())
            if self.cbreak:
                stack.enter_context(self.term.cbreak())
            if self.hide_cursor:
                stack.enter_context(self.term.hidden_cursor())
            self._modes = stack.pop_all()
        logger.debug("Terminal session initialized (%sx%s)", self.term.width, self.term.height)

    def close(self):
        """Home the cursor and restore the terminal modes entered by :meth:`init`."""
        if not self.is_initialized:
            return
        print(self.term.move_xy(0, 0), end='', file=self.stream, flush=True)
        self._pending.clear()
        self._cells.clear()
        modes, self._modes = self._modes, None
        modes.close()
        logger.debug("Terminal session closed")

    def _check_initialized(self):
        if not self.is_initialized:
            raise NotInitializedError("Term not initialized")

    def set_cell(self, x: int, y: int, char: str, fg: Optional[str] = None, bg: Optional[str] = None):
        """Queue a single character at column ``x``, row ``y``.

        Args:
            x, y: Cell coordinates (0-indexed)
            char: One character; ``NULL_GLYPH`` leaves the cell empty
            fg, bg: Blessed colour names such as ``'red'``, or None for default
        """
        self._check_initialized()
        if not isinstance(char, str) or len(char) != 1:
            raise ValueError(f"Cell content must be a single character, got {char!r}")
        if not (0 <= x < self.term.width and 0 <= y < self.term.height):
            return
        self._pending[(x, y)] = (char, fg, bg)

    def flush(self):
        """Write all queued cells to the terminal in row-major order."""
        self._check_initialized()
        if not self._pending:
            return
        out = []
        for (x, y), (char, fg, bg) in sorted(self._pending.items(), key=lambda item: (item[0][1], item[0][0])):
            if char == NULL_GLYPH:
                self._cells.pop((x, y), None)
                char = ' '
            else:
                self._cells[(x, y)] = char
            out.append(self.term.move_xy(x, y) + self._styled(char, fg, bg))
        logger.debug("Flushing %d cells", len(out))
        self._pending.clear()
        print(''.join(out), end='', file=self.stream, flush=True)

    def _styled(self, char, fg, bg):
        if fg and bg:
            return getattr(self.term, f'{fg}_on_{bg}')(char)
        if fg:
            return getattr(self.term, fg)(char)
        if bg:
            return getattr(self.term, f'on_{bg}')(char)
        return char

    def cell(self, x: int, y: int) -> Optional[str]:
        """Return the character last flushed at ``(x, y)``, or None if empty."""
        return self._cells.get((x, y))


class FieldManager:
    """Draws and moves :class:`Field` records on a :class:`TerminalSession`.

    Every operation takes a field and returns an updated copy. When an
    operation raises, nothing has been drawn and the caller's field still
    describes the screen.
    """

    def __init__(self, session: TerminalSession, *, fg: Optional[str] = None, bg: Optional[str] = None):
        self.session = session
        self.fg = fg
        self.bg = bg

    def _check_initialized(self):
        if not self.session.is_initialized:
            raise NotInitializedError("Term not initialized")

    def _write_text(self, row: int, column: int, text: str):
        for offset, char in enumerate(text):
            self.session.set_cell(column + offset, row, char, self.fg, self.bg)
        self.session.flush()

    def _write_box(self, field: Field, glyphs: BoxGlyphs):
        set_cell = self.session.set_cell
        left = field.column - 1
        right = field.column + field.width + 1
        top = field.row - 1
        bottom = field.row + 1

        # Corners
        set_cell(left, top, glyphs.top_left, self.fg, self.bg)
        set_cell(right, top, glyphs.top_right, self.fg, self.bg)
        set_cell(left, bottom, glyphs.bottom_left, self.fg, self.bg)
        set_cell(right, bottom, glyphs.bottom_right, self.fg, self.bg)
        # Sides
        set_cell(left, field.row, glyphs.vertical, self.fg, self.bg)
        set_cell(right, field.row, glyphs.vertical, self.fg, self.bg)
        # Top and bottom, one cell past the content on the right
        for i in range(field.width + 1):
            set_cell(field.column + i, top, glyphs.horizontal, self.fg, self.bg)
            set_cell(field.column + i, bottom, glyphs.horizontal, self.fg, self.bg)
        self.session.flush()

    def create_field(self, row: int, column: int, width: int, text: str = '') -> Field:
        """Create a field at ``row``, ``column`` and write its initial text.

        No border is drawn; call :meth:`draw_box` for one.
        """
        if width < 0:
            raise ValueError(f"Field width must be non-negative, got {width}")
        return self.update(Field(row, column, width), text)

    def update(self, field: Field, text: str) -> Field:
        """Write ``text`` into the field's content cells, one character per cell.

        The text is neither padded nor truncated to the field width.
        """
        self._check_initialized()
        self._write_text(field.row, field.column, text)
        return replace(field, text=text)

    def draw_box(self, field: Field, style) -> Field:
        """Draw a border around the field.

        Args:
            field: Field to draw around
            style: A :class:`BorderStyle` or its value (``'ascii'`` etc.)

        Raises:
            NotInitializedError: The session is not initialized
            UnknownBorderStyleError: ``style`` is not a known box style
        """
        self._check_initialized()
        style = BorderStyle.coerce(style)
        self._write_box(field, style.glyphs)
        return replace(field, border_style=style)

    def loc(self, field: Field, row: int, column: int) -> Field:
        """Move a field to a new location, clearing its old content and border."""
        self._check_initialized()
        self._write_text(field.row, field.column, ' ' * field.width)
        self._write_box(field, CLEAR_GLYPHS)
        moved = replace(field, row=row, column=column)
        self._write_box(moved, moved.border_style.glyphs)
        self._write_text(moved.row, moved.column, moved.text)
        logger.debug("Moved field from (%d, %d) to (%d, %d)", field.row, field.column, row, column)
        return moved

    def shift(self, field: Field, direction) -> Field:
        """Move a field one cell in ``direction``.

        Only the border is erased before the move; content cells vacated by
        the field are left as they were.
        """
        self._check_initialized()
        direction = ShiftDirection.coerce(direction)
        self._write_box(field, CLEAR_GLYPHS)
        moved = replace(
            field,
            row=field.row + direction.rows,
            column=field.column + direction.columns,
        )
        self._write_box(moved, moved.border_style.glyphs)
        self._write_text(moved.row, moved.column, moved.text)
        return moved
