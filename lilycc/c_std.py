"""C language standard revisions, as `__STDC_VERSION__` values."""

from enum import IntEnum


class CStd(IntEnum):
    """C standard revision."""

    C95 = 199409
    C99 = 199901
    C11 = 201112
    C17 = 201710
    C23 = 202311
    MIN = 199409
    MAX = 202311
    INF = 999999
    DEFAULT = 202311