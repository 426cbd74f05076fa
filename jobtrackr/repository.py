import logging
from contextlib import closing
from datetime import datetime

import psycopg2

from jobtrackr.errors import RemoteOperationError
from jobtrackr.store import RecordRepository

logger = logging.getLogger(__name__)

TS_FMT = "%Y-%m-%dT%H:%M:%S"


def now_str():
    return datetime.now().strftime(TS_FMT)


def _remote_error(exc: psycopg2.Error) -> RemoteOperationError:
    msg = (getattr(exc, "pgerror", None) or str(exc) or "Database error").strip()
    return RemoteOperationError(msg)


# ---------------- Applications ----------------
def fetch_apps(conn, owner_id: str) -> list:
    with conn.cursor() as cur:
        cur.execute(
            """
            SELECT * FROM applications
            WHERE user_id = %s
            ORDER BY applied_date DESC, id DESC
            """,
            (owner_id,),
        )
        rows = cur.fetchall()
    return [dict(r) for r in rows]


def insert_app(conn, row: dict, owner_id: str) -> dict:
    with conn.cursor() as cur:
        cur.execute(
            """
            INSERT INTO applications
            (user_id, company_name, job_title, status, job_url, salary_range,
             location, notes, applied_date, created_at)
            VALUES (%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
            RETURNING *
            """,
            (
                owner_id, row["company_name"], row["job_title"], row["status"], row["job_url"],
                row.get("salary_range"), row.get("location"), row.get("notes"),
                row["applied_date"], now_str(),
            ),
        )
        created = cur.fetchone()
    conn.commit()
    return dict(created)


def update_app(conn, app_id: int, row: dict, owner_id: str) -> dict:
    with conn.cursor() as cur:
        cur.execute(
            """
            UPDATE applications SET
              company_name=%s,
              job_title=%s,
              status=%s,
              job_url=%s,
              salary_range=%s,
              location=%s,
              notes=%s,
              applied_date=%s
            WHERE id=%s AND user_id=%s
            RETURNING *
            """,
            (
                row["company_name"], row["job_title"], row["status"], row["job_url"],
                row.get("salary_range"), row.get("location"), row.get("notes"),
                row["applied_date"],
                app_id, owner_id,
            ),
        )
        updated = cur.fetchone()
    conn.commit()
    if not updated:
        raise RemoteOperationError("Application not found")
    return dict(updated)


def delete_app(conn, app_id: int, owner_id: str):
    with conn.cursor() as cur:
        cur.execute("DELETE FROM applications WHERE id=%s AND user_id=%s", (app_id, owner_id))
        deleted = cur.rowcount
    conn.commit()
    if not deleted:
        raise RemoteOperationError("Application not found")


class PostgresRepository(RecordRepository):
    """
    Record operations against the hosted Postgres database.

    `connect` is called once per operation and the connection is closed
    afterwards, so the repository can live across Streamlit reruns.
    """

    def __init__(self, connect):
        self.connect = connect

    def _run(self, op, *args):
        try:
            with closing(self.connect()) as conn:
                try:
                    return op(conn, *args)
                except psycopg2.Error:
                    conn.rollback()
                    raise
        except psycopg2.Error as exc:
            logger.warning("%s failed: %s", op.__name__, exc)
            raise _remote_error(exc) from exc

    def fetch(self, owner_id: str) -> list:
        return self._run(fetch_apps, owner_id)

    def insert(self, payload: dict, owner_id: str) -> dict:
        return self._run(insert_app, payload, owner_id)

    def update(self, app_id, payload: dict, owner_id: str) -> dict:
        return self._run(update_app, int(app_id), payload, owner_id)

    def delete(self, app_id, owner_id: str) -> None:
        self._run(delete_app, int(app_id), owner_id)
