import psycopg2
import psycopg2.extras

from jobtrackr.config import get_secret


def get_conn(db_url: str = None):
    db_url = db_url or get_secret("DATABASE_URL")
    if not db_url:
        raise RuntimeError(
            "DATABASE_URL not set.\n"
            "Local: set env var DATABASE_URL\n"
            "Cloud: add DATABASE_URL to Streamlit Secrets"
        )

    return psycopg2.connect(
        db_url,
        cursor_factory=psycopg2.extras.RealDictCursor,
    )


def init_db(conn):
    with conn.cursor() as cur:
        # applications, one row per job application, scoped by user_id
        cur.execute("""
            CREATE TABLE IF NOT EXISTS applications (
                id SERIAL PRIMARY KEY,
                user_id TEXT NOT NULL,
                company_name TEXT NOT NULL,
                job_title TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT 'Applied',
                job_url TEXT NOT NULL,
                salary_range TEXT,
                location TEXT,
                notes TEXT,
                applied_date TEXT NOT NULL,
                created_at TEXT NOT NULL
            )
        """)

        cur.execute("""
            CREATE INDEX IF NOT EXISTS applications_user_applied_idx
            ON applications(user_id, applied_date DESC)
        """)

    conn.commit()
