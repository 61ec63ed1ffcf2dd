"""
database.py
SQLite database management for the ACI distribution model

Provides:
- Database initialization from CSVs
- Connection management
- Table refresh from CSV
- CSV export from tables
- Settings storage
"""

import sqlite3
import pandas as pd
from pathlib import Path
from typing import Optional, List, Dict, Any
import logging

from config import DEFAULT_SETTINGS

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Database path
DB_PATH = "distribution.db"

# Table definitions with their CSV sources
TABLE_DEFINITIONS = {
    'associates': {
        'csv': 'associates.csv',
        'description': 'Practice associates and participation weights',
        'key_columns': ['id'],
        'ddl': """
            id INTEGER PRIMARY KEY,
            name TEXT NOT NULL,
            profession TEXT NOT NULL DEFAULT '',
            is_manager INTEGER NOT NULL DEFAULT 0,
            join_date TEXT,
            patient_count INTEGER DEFAULT 0,
            participation_weight TEXT NOT NULL DEFAULT '1'
        """,
    },
    'revenues': {
        'csv': 'revenues.csv',
        'description': 'Revenue receipts by category (ACI feeds the pool)',
        'key_columns': ['id'],
        'ddl': """
            id INTEGER PRIMARY KEY,
            source TEXT,
            description TEXT,
            amount TEXT NOT NULL,
            date TEXT NOT NULL,
            category TEXT NOT NULL
        """,
    },
    'expenses': {
        'csv': 'expenses.csv',
        'description': 'Practice expenses deducted from the pool',
        'key_columns': ['id'],
        'ddl': """
            id INTEGER PRIMARY KEY,
            category TEXT,
            description TEXT,
            amount TEXT NOT NULL,
            date TEXT NOT NULL,
            is_recurring INTEGER NOT NULL DEFAULT 0,
            frequency TEXT DEFAULT 'monthly'
        """,
    },
    'rcp_meetings': {
        'csv': 'rcp_meetings.csv',
        'description': 'Coordination meetings',
        'key_columns': ['id'],
        'ddl': """
            id INTEGER PRIMARY KEY,
            date TEXT NOT NULL,
            title TEXT,
            description TEXT,
            duration INTEGER
        """,
    },
    'rcp_attendance': {
        'csv': 'rcp_attendance.csv',
        'description': 'Meeting attendance per associate',
        'key_columns': ['rcp_id', 'associate_id'],
        'ddl': """
            id INTEGER PRIMARY KEY,
            rcp_id INTEGER NOT NULL,
            associate_id INTEGER NOT NULL,
            attended INTEGER NOT NULL DEFAULT 0
        """,
    },
    'projects': {
        'csv': 'projects.csv',
        'description': 'Practice projects and their weights',
        'key_columns': ['id'],
        'ddl': """
            id INTEGER PRIMARY KEY,
            title TEXT NOT NULL,
            description TEXT,
            start_date TEXT,
            end_date TEXT,
            status TEXT NOT NULL DEFAULT 'active',
            weight TEXT NOT NULL DEFAULT '1'
        """,
    },
    'project_assignments': {
        'csv': 'project_assignments.csv',
        'description': 'Associate contributions to projects',
        'key_columns': ['project_id', 'associate_id'],
        'ddl': """
            id INTEGER PRIMARY KEY,
            project_id INTEGER NOT NULL,
            associate_id INTEGER NOT NULL,
            contribution TEXT NOT NULL DEFAULT '1'
        """,
    },
    'settings': {
        'csv': 'settings.csv',
        'description': 'Distribution parameters',
        'key_columns': ['key'],
        'ddl': """
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            key TEXT NOT NULL UNIQUE,
            value TEXT NOT NULL,
            category TEXT NOT NULL DEFAULT 'distribution',
            description TEXT
        """,
    },
}


def get_db_connection(db_path: Optional[str] = None) -> sqlite3.Connection:
    """
    Get database connection with optimizations

    Args:
        db_path: Database file (default: DB_PATH)

    Returns:
        sqlite3.Connection with row_factory set to Row
    """
    conn = sqlite3.connect(db_path or DB_PATH, check_same_thread=False)
    conn.row_factory = sqlite3.Row

    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA synchronous=NORMAL")
    conn.execute("PRAGMA temp_store=MEMORY")

    return conn


def create_tables(conn: sqlite3.Connection):
    """Create every ledger table that does not exist yet"""
    for table_name, table_info in TABLE_DEFINITIONS.items():
        conn.execute(f"CREATE TABLE IF NOT EXISTS {table_name} ({table_info['ddl']})")

    # Data import log
    conn.execute("""
        CREATE TABLE IF NOT EXISTS import_log (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            table_name TEXT NOT NULL,
            rows_imported INTEGER,
            import_mode TEXT,
            imported_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            imported_by TEXT,
            source_file TEXT
        )
    """)

    conn.commit()


def seed_default_settings(conn: sqlite3.Connection) -> int:
    """
    Insert default distribution settings when the settings table is empty

    Returns:
        Number of rows inserted
    """
    count = conn.execute("SELECT COUNT(*) FROM settings").fetchone()[0]
    if count:
        return 0

    conn.executemany(
        "INSERT INTO settings (key, value, category, description) VALUES (?, ?, ?, ?)",
        [(s['key'], s['value'], s['category'], s['description']) for s in DEFAULT_SETTINGS],
    )
    conn.commit()
    return len(DEFAULT_SETTINGS)


def init_database(data_folder: Optional[str] = None, db_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Initialize database from CSV files

    Args:
        data_folder: Path to folder containing CSV files (default: current directory)
        db_path: Database file (default: DB_PATH)

    Returns:
        Dictionary with results: {table_name: {'rows': count, 'status': 'success'|'skipped'|'error'}}
    """
    results = {}
    data_path = Path(data_folder) if data_folder else Path(".")

    conn = get_db_connection(db_path)

    logger.info("=" * 60)
    logger.info("DATABASE INITIALIZATION")
    logger.info("=" * 60)

    create_tables(conn)

    for table_name, table_info in TABLE_DEFINITIONS.items():
        csv_file = data_path / table_info['csv']

        if not csv_file.exists():
            logger.warning(f"Skipped {table_name}: {csv_file} not found")
            results[table_name] = {'rows': 0, 'status': 'skipped', 'file': str(csv_file)}
            continue

        try:
            df = pd.read_csv(csv_file)
            df.columns = [str(c).strip() for c in df.columns]

            df.to_sql(table_name, conn, if_exists='replace', index=False)

            logger.info(f"Loaded {table_name}: {len(df):,} rows from {csv_file.name}")
            results[table_name] = {'rows': len(df), 'status': 'success', 'file': str(csv_file)}

        except Exception as e:
            logger.error(f"Error loading {table_name}: {e}")
            results[table_name] = {'rows': 0, 'status': 'error', 'error': str(e)}

    seeded = seed_default_settings(conn)
    if seeded:
        logger.info(f"Seeded {seeded} default settings")

    conn.close()

    logger.info("DATABASE INITIALIZATION COMPLETE")

    return results


def refresh_table_from_csv(
    table_name: str,
    csv_path: str,
    mode: str = 'replace',
    user: str = None,
    db_path: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Refresh a table from CSV file

    Args:
        table_name: Database table name
        csv_path: Path to CSV file
        mode: 'replace' (delete all, insert new) or 'append' (add to existing)
        user: Username for logging (optional)
        db_path: Database file (default: DB_PATH)

    Returns:
        Dictionary with import results
    """
    if table_name not in TABLE_DEFINITIONS:
        return {'status': 'error', 'table': table_name, 'error': f"unknown table {table_name}"}

    try:
        df = pd.read_csv(csv_path)
        df.columns = [str(c).strip() for c in df.columns]

        conn = get_db_connection(db_path)
        create_tables(conn)

        df.to_sql(table_name, conn, if_exists=mode, index=False)

        conn.execute("""
            INSERT INTO import_log (table_name, rows_imported, import_mode, imported_by, source_file)
            VALUES (?, ?, ?, ?, ?)
        """, (table_name, len(df), mode, user or 'system', str(csv_path)))

        conn.commit()
        conn.close()

        logger.info(f"Refreshed {table_name}: {len(df):,} rows ({mode} mode)")

        return {
            'status': 'success',
            'table': table_name,
            'rows': len(df),
            'mode': mode
        }

    except Exception as e:
        logger.error(f"Error refreshing {table_name}: {e}")
        return {
            'status': 'error',
            'table': table_name,
            'error': str(e)
        }


def export_table_to_csv(table_name: str, csv_path: str, db_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Export database table to CSV

    Returns:
        Dictionary with export results
    """
    if table_name not in TABLE_DEFINITIONS:
        return {'status': 'error', 'table': table_name, 'error': f"unknown table {table_name}"}

    try:
        df = execute_query(f"SELECT * FROM {table_name}", db_path=db_path)
        df.to_csv(csv_path, index=False)

        logger.info(f"Exported {table_name}: {len(df):,} rows to {csv_path}")

        return {
            'status': 'success',
            'table': table_name,
            'rows': len(df),
            'file': csv_path
        }

    except Exception as e:
        logger.error(f"Error exporting {table_name}: {e}")
        return {
            'status': 'error',
            'table': table_name,
            'error': str(e)
        }


def list_all_tables(db_path: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    List all tables in database

    Returns:
        List of table metadata dictionaries
    """
    conn = get_db_connection(db_path)

    tables = pd.read_sql("""
        SELECT name
        FROM sqlite_master
        WHERE type='table' AND name NOT LIKE 'sqlite_%'
        ORDER BY name
    """, conn)

    table_list = []

    for table_name in tables['name']:
        count = pd.read_sql(f"SELECT COUNT(*) as cnt FROM {table_name}", conn)
        description = TABLE_DEFINITIONS.get(table_name, {}).get('description', '')

        table_list.append({
            'name': table_name,
            'rows': int(count['cnt'].iloc[0]),
            'description': description
        })

    conn.close()

    return table_list


def get_setting(key: str, db_path: Optional[str] = None) -> Optional[str]:
    """Return the stored value for a setting key, or None if absent"""
    conn = get_db_connection(db_path)
    try:
        row = conn.execute("SELECT value FROM settings WHERE key = ?", (key,)).fetchone()
    finally:
        conn.close()
    return None if row is None else str(row['value'])


def update_setting(key: str, value: str, category: str = 'distribution',
                   description: str = None, db_path: Optional[str] = None):
    """Insert or update one setting"""
    conn = get_db_connection(db_path)
    try:
        # Tables replaced from CSV lose their UNIQUE constraint, so no upsert clause
        cur = conn.execute("UPDATE settings SET value = ? WHERE key = ?", (str(value), key))
        if cur.rowcount == 0:
            conn.execute(
                "INSERT INTO settings (key, value, category, description) VALUES (?, ?, ?, ?)",
                (key, str(value), category, description),
            )
        conn.commit()
    finally:
        conn.close()

    logger.info(f"Setting {key} = {value}")


def execute_query(query: str, params: tuple = None, db_path: Optional[str] = None) -> pd.DataFrame:
    """
    Execute a SQL query and return results as DataFrame

    Args:
        query: SQL query string
        params: Query parameters (optional)
        db_path: Database file (default: DB_PATH)

    Returns:
        DataFrame with query results
    """
    conn = get_db_connection(db_path)

    try:
        if params:
            df = pd.read_sql(query, conn, params=params)
        else:
            df = pd.read_sql(query, conn)
    finally:
        conn.close()

    return df
