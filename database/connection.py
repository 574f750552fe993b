# =============================================================================
# database/connection.py
# =============================================================================
# PURPOSE:
#   Handles database connections. This is the ONLY file that knows how to
#   connect to the database. All other code uses this function.
#
# WHY CENTRALIZE CONNECTION?
#   1. If we move to a hosted database, only this file changes
#   2. Tests can point the whole app at a temporary file via config.DB_PATH
#
# SQLITE BASICS:
#   - SQLite is a file-based database (no server needed)
#   - Each connection opens the .db file
#   - Every query function opens its own connection and closes it when done,
#     so there is no transaction spanning several steps of a workflow
# =============================================================================

import sqlite3
import config


def get_db_connection():
    """
    Create and return a connection to the SQLite database.

    WHAT THIS DOES:
        1. Opens (or creates) the database file named by config.DB_PATH
        2. Enables foreign key support
        3. Returns the connection object

    USAGE:
        conn = get_db_connection()
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM sponsors")
        rows = cursor.fetchall()
        conn.close()

    NOTES:
        - DB_PATH is read at call time (not import time) so that tests can
          swap it before calling init_db()
        - Foreign keys are OFF by default in SQLite, we turn them ON
    """
    conn = sqlite3.connect(config.DB_PATH)
    conn.execute("PRAGMA foreign_keys = ON")
    return conn
