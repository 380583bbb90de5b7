"""Shell commands exposing SQLStyle functionalities.

This module contains the shell commands that can be used to interact with SQLStyle.

SQLStyle (lint)
===============

``sqlstyle`` checks the style of SQL files::

    sqlstyle queries/ reports/monthly.sql

Directories are searched recursively for ``.sql`` files, glob patterns
like ``"queries/**/*.sql"`` are accepted too and ``-`` reads the source from
standard input::

    echo "select id from staff" | sqlstyle -

Violations that can be automatically fixed are fixed in place with ``--fix``::

    sqlstyle --fix queries/

The options of the linter are read from the closest ``.sqlstyle.toml``
or ``pyproject.toml`` file (see :mod:`sqlstyle.config`) and can be
overridden on the command line, run ``sqlstyle --help`` for the full list.
"""
