from contextlib import closing

from jobtrackr.config import configure_logging, configure_page, load_settings
from jobtrackr.auth import get_gate, require_login
from jobtrackr.db import get_conn, init_db
from jobtrackr.ui import render_app


def main():
    settings = load_settings()
    configure_logging(settings.log_level)
    configure_page()

    with closing(get_conn(settings.database_url)) as conn:
        init_db(conn)

    gate = get_gate(settings)
    require_login(settings, gate)

    render_app(gate)


if __name__ == "__main__":
    main()
