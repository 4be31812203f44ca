"""
Submitter Field Validators

Pure predicates for the three fields a customer types. Each one is total:
it never raises and returns False for anything that is not a string.

The same predicates back both the keystroke check (``accepts_draft``) and
the final check at submission, so typing can never produce a value that
submission would reject for a different reason.
"""

import re

# Basic Latin letters plus the Latin-1 accented ranges (skipping × and ÷)
_LETTERS = "A-Za-zÀ-ÖØ-öø-ÿ"

NAME_PATTERN = re.compile(rf"[{_LETTERS} ]+")
REGISTRATION_PATTERN = re.compile(r"[0-9]{4}")
NOTES_PATTERN = re.compile(rf"[{_LETTERS}0-9\s.,!?\-]*")

# Registration drafts may be an incomplete prefix while typing
_REGISTRATION_DRAFT_PATTERN = re.compile(r"[0-9]{0,4}")

NAME = "name"
REGISTRATION = "registration"
NOTES = "notes"
FIELDS = (NAME, REGISTRATION, NOTES)


def is_valid_name(value: object) -> bool:
    """Non-empty, letters (accented Latin included) and spaces only."""
    if not isinstance(value, str):
        return False
    return NAME_PATTERN.fullmatch(value) is not None


def is_valid_registration(value: object) -> bool:
    """Exactly four decimal digits."""
    if not isinstance(value, str):
        return False
    return REGISTRATION_PATTERN.fullmatch(value) is not None


def is_valid_notes(value: object) -> bool:
    """Letters, digits, whitespace and ``. , ! ? -``; empty is valid."""
    if not isinstance(value, str):
        return False
    return NOTES_PATTERN.fullmatch(value) is not None


def accepts_draft(field: str, value: object) -> bool:
    """
    Decide whether a keystroke producing ``value`` is accepted.

    Clearing a field is always allowed. Name and notes drafts must already
    be valid; a registration draft only has to be a digit prefix of at
    most four characters.

    Raises:
        KeyError: If ``field`` is not one of the submitter fields
    """
    if field not in FIELDS:
        raise KeyError(field)
    if not isinstance(value, str):
        return False
    if value == "":
        return True
    if field == NAME:
        return is_valid_name(value)
    if field == REGISTRATION:
        return _REGISTRATION_DRAFT_PATTERN.fullmatch(value) is not None
    return is_valid_notes(value)
