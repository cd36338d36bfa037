"""
Helpers for the structured university identifier, e.g. ``BWU/BCA/23/734``
(institution / course / two-digit enrollment year / roll number).
"""

from collections import namedtuple

UniversityIdParts = namedtuple('UniversityIdParts', ['course', 'batch'])

EMPTY_PARTS = UniversityIdParts(course='', batch='')

COURSE_POSITION = 1
YEAR_POSITION = 2


def decompose_university_id(university_id):
    """
    Split a university identifier into its course and batch.

    The year fragment is expanded to four digits by prefixing "20".
    Missing or malformed pieces come back as empty strings rather than
    raising, so callers can always compare the parts.

    >>> decompose_university_id("BWU/BCA/23/734")
    UniversityIdParts(course='BCA', batch='2023')
    >>> decompose_university_id("malformed")
    UniversityIdParts(course='', batch='')
    """
    if not university_id or not isinstance(university_id, str):
        return EMPTY_PARTS

    tokens = [token.strip() for token in university_id.split('/')]

    course = tokens[COURSE_POSITION] if len(tokens) > COURSE_POSITION else ''

    batch = ''
    if len(tokens) > YEAR_POSITION:
        year = tokens[YEAR_POSITION]
        if len(year) == 2 and year.isdigit():
            batch = f"20{year}"

    return UniversityIdParts(course=course, batch=batch)
