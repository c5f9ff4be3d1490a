"""Example: basic sqlitelink usage.

sqlitelink loads the system SQLite library through ctypes. If it cannot be
found automatically, point it at the shared library:

    SQLITELINK_NATIVE_LIB=/path/to/libsqlite3.so python example.py
"""

import os
import tempfile
import sqlitelink


def main():
    # Create a temporary database file for this example.
    db_path = os.path.join(tempfile.gettempdir(), "sqlitelink_example.sqlite")

    with sqlitelink.connect(db_path) as conn:
        # Create a table.
        conn.exec("""
            CREATE TABLE users (
                id    INTEGER PRIMARY KEY,
                name  TEXT NOT NULL,
                email TEXT UNIQUE
            )
        """)

        # Insert rows inside one transaction; each bind() applies one row.
        users = [
            ("Alice", "alice@example.com"),
            ("Bob", "bob@example.com"),
            ("Carol", None),
        ]
        with conn.prepare("INSERT INTO users (name, email) VALUES (?, ?)") as stmt:
            for user in users:
                stmt.bind(*user)

        # Query all users as text.
        rs = conn.query("SELECT id, name, email FROM users ORDER BY id")
        print("Columns:", rs.column_names())
        for row in rs:
            print("  " + " | ".join(row))

        # Typed values tell NULL apart from empty text.
        rs = conn.query("SELECT name, email FROM users WHERE email IS NULL")
        while rs.next():
            name, email = rs.typed_row()
            print(f"\n{name.as_text()} has no email: {email.is_null}")

        # A constraint violation rolls the whole transaction back.
        stmt = conn.prepare("INSERT INTO users (name, email) VALUES (?, ?)")
        try:
            stmt.bind("Dave", "dave@example.com")
            stmt.bind("Eve", "alice@example.com")
        except sqlitelink.SQLiteError as e:
            print(f"\nInsert failed: {str(e).splitlines()[0]}")
        print(f"Statement state: {stmt.state.value}")

        rs = conn.query("SELECT count(*) FROM users")
        rs.next()
        print(f"Total users: {rs.typed_row()[0].as_int()}")

    # Clean up.
    os.unlink(db_path)

    print("\nDone.")


if __name__ == "__main__":
    main()
