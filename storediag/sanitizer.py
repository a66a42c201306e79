"""Redaction of configuration values for display.

Sensitive values keep their first and last characters and their length so
an operator can tell whether a credential is set and roughly which one it
is, without the secret itself appearing in logs or reports.
"""

from storediag.config import UNSET, ConfigValue

UNSET_MARKER = "(unset)"
MASK_CHAR = "*"
SHORT_MASK = MASK_CHAR * 2


def redact(value: ConfigValue, sensitive: bool) -> str:
    """Return the display form of a configuration value.

    Args:
        value: The configured value, or ``UNSET`` if absent.
        sensitive: Whether the value must be masked.

    Returns:
        ``(unset)`` for absent values, the value itself when not sensitive,
        otherwise a masked form of the same length (``**`` for values of
        two characters or fewer).
    """
    if value is UNSET:
        return UNSET_MARKER
    if not sensitive:
        return value

    length = len(value)
    if length <= 2:
        return SHORT_MASK
    return value[0] + MASK_CHAR * (length - 2) + value[-1]
