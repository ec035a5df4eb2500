"""
Format Parser
=============

Parses output format strings such as ``png``, ``pdf`` or ``cat-pdf`` into
validated format directives.

Grammar::

    format   := modifier? core
    core     := "png" | "pdf"
    modifier := "cat-" | "split-" | "split-index-" | "split-id-" | "split-name-"
"""

from typing import Any, Dict, List

from drawio_export.config.logging import get_logger
from drawio_export.core.exceptions import InvalidFormatError, UnsupportedFormatError
from drawio_export.models.schemas import CoreKind, FormatDirective, Modifier

logger = get_logger(__name__)

SPLIT_MODIFIERS = frozenset(
    {Modifier.SPLIT, Modifier.SPLIT_INDEX, Modifier.SPLIT_ID, Modifier.SPLIT_NAME}
)


class FormatParser:
    """Parser and validator for output format strings."""

    _cores: Dict[str, CoreKind] = {core.value: core for core in CoreKind}
    _modifiers: Dict[str, Modifier] = {modifier.value: modifier for modifier in Modifier}

    def __init__(self) -> None:
        self.logger: Any = logger.bind(component="format_parser")

    def parse(self, format_string: str) -> FormatDirective:
        """
        Split a format string into its modifier and core kind.

        Args:
            format_string: Caller supplied format, e.g. ``cat-pdf``

        Returns:
            Unvalidated FormatDirective

        Raises:
            InvalidFormatError: If the string does not match the grammar
            UnsupportedFormatError: If the prefix is not a known modifier
        """
        for suffix, core in self._cores.items():
            if format_string.endswith(suffix):
                prefix = format_string[: -len(suffix)]
                break
        else:
            raise InvalidFormatError(format_string)

        if prefix and not prefix.endswith("-"):
            raise InvalidFormatError(format_string)

        modifier = self._modifiers.get(prefix)
        if modifier is None:
            raise UnsupportedFormatError(
                f"Format prefix {prefix} not allowed, valid options are: "
                f"{', '.join(self.supported_prefixes())}"
            )

        return FormatDirective(core=core, modifier=modifier, raw=format_string)

    def validate(self, directive: FormatDirective) -> FormatDirective:
        """
        Check that a parsed directive can be produced as a single buffer.

        Raises:
            UnsupportedFormatError: For ``cat-png`` and every ``split-`` variant
        """
        if directive.modifier is Modifier.NONE:
            return directive
        if directive.modifier is Modifier.CAT:
            if directive.core is not CoreKind.PDF:
                raise UnsupportedFormatError(
                    f"Format {directive.raw} not allowed, only pdf pages can be concatenated"
                )
            return directive
        if directive.modifier in SPLIT_MODIFIERS:
            raise UnsupportedFormatError(
                f"Format {directive.raw} not allowed, split formats are not supported"
            )
        raise UnsupportedFormatError(f"Format {directive.raw} not allowed")

    @classmethod
    def supported_prefixes(cls) -> List[str]:
        return [value for value in cls._modifiers if value]


def parse_format(format_string: str) -> FormatDirective:
    """
    Parse and validate a format string.

    Args:
        format_string: Caller supplied format

    Returns:
        Validated FormatDirective
    """
    parser = FormatParser()
    directive = parser.validate(parser.parse(format_string))
    parser.logger.debug(
        "Format parsed", format=format_string, core=directive.core.value,
        modifier=directive.modifier.value or None,
    )
    return directive


def get_supported_formats() -> List[str]:
    """List the format strings render() accepts."""
    return [core.value for core in CoreKind] + [f"{Modifier.CAT.value}{CoreKind.PDF.value}"]
