import re
from datetime import date, datetime
from urllib.parse import urlparse

from jobtrackr.errors import ValidationError

DATE_FMT = "%Y-%m-%d"
STATUSES = ["Applied", "Interview Scheduled", "Interviewed", "Offer", "Rejected"]
DEFAULT_STATUS = "Applied"

EDITABLE_FIELDS = [
    "company_name", "job_title", "status", "job_url",
    "salary_range", "location", "notes", "applied_date",
]
COLUMNS = ["id"] + EDITABLE_FIELDS + ["user_id", "created_at"]

MIN_PASSWORD_LENGTH = 6
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
SYMBOL_RE = re.compile(r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>/?]")

POSTING_SITES = {
    "linkedin": "LinkedIn",
    "github": "GitHub",
    "google": "Google",
    "amazon": "Amazon",
    "microsoft": "Microsoft",
    "apple": "Apple",
    "indeed": "Indeed",
    "glassdoor": "Glassdoor",
}


def parse_date(s):
    if isinstance(s, date):
        return s
    s = (s or "").strip()
    if not s:
        return None
    try:
        return datetime.strptime(s, DATE_FMT).date()
    except ValueError:
        return None


def format_date(d):
    return d.strftime(DATE_FMT) if d else None


def today_str() -> str:
    return date.today().strftime(DATE_FMT)


def _text(value) -> str:
    return "" if value is None else str(value)


def empty_form() -> dict:
    return {
        "company_name": "",
        "job_title": "",
        "status": DEFAULT_STATUS,
        "job_url": "",
        "salary_range": "",
        "location": "",
        "notes": "",
        "applied_date": today_str(),
    }


def form_from_record(record: dict) -> dict:
    form = empty_form()
    for key in EDITABLE_FIELDS:
        value = record.get(key)
        if value is not None:
            form[key] = format_date(value) if isinstance(value, date) else value
    return form


def clean_payload(payload: dict) -> dict:
    """Trim text fields and keep only the editable columns."""
    out = {}
    for key in EDITABLE_FIELDS:
        value = payload.get(key)
        if isinstance(value, date):
            value = format_date(value)
        out[key] = value.strip() if isinstance(value, str) else value
    out["status"] = out.get("status") or DEFAULT_STATUS
    out["applied_date"] = out.get("applied_date") or None
    return out


def validate_application(payload: dict, today=None):
    """
    Returns the message of the first rule the payload breaks, or None.

    Dates are compared as ISO strings.
    """
    today = today or today_str()
    if isinstance(today, date):
        today = format_date(today)

    applied = payload.get("applied_date")
    if isinstance(applied, date):
        applied = format_date(applied)
    job_url = _text(payload.get("job_url"))

    if not _text(payload.get("company_name")).strip():
        return "Company name is required"
    if not _text(payload.get("job_title")).strip():
        return "Job title is required"
    if not applied:
        return "Applied date is required"
    if not job_url.strip():
        return "Job URL required"
    if not _text(payload.get("location")).strip():
        return "Location required"
    if applied > today:
        return "Applied date cannot be in the future"
    if job_url and not job_url.startswith("http"):
        return "Invalid URL"
    return None


def require_valid(payload: dict, today=None):
    err = validate_application(payload, today=today)
    if err:
        raise ValidationError(err)


# ---------------- Job posting links ----------------
def normalize_job_url(url):
    url = _text(url).strip()
    if not url:
        return None
    return url if url.startswith("http") else f"https://{url}"


def job_posting_site(url):
    """
    Returns (key, display name) for the site hosting the posting, or None
    when there is no URL.
    """
    full = normalize_job_url(url)
    if not full:
        return None
    try:
        hostname = (urlparse(full).hostname or "").lower()
    except ValueError:
        return ("default", "Job Posting")
    key = hostname.replace("www.", "").split(".")[0]
    if key in POSTING_SITES:
        return (key, POSTING_SITES[key])
    return ("default", "Job Posting")


# ---------------- Credentials ----------------
def validate_email(email) -> bool:
    return bool(EMAIL_RE.match(_text(email)))


def validate_credentials(email: str, password: str, signup: bool = False):
    if not _text(email).strip() or not _text(password).strip():
        return "Email and password are required"
    if not validate_email(email):
        return "Please enter a valid email address"
    if signup and len(password) < MIN_PASSWORD_LENGTH:
        return f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    return None


def validate_new_password(password: str, confirm: str):
    if len(password or "") < MIN_PASSWORD_LENGTH:
        return f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    if password != confirm:
        return "Passwords do not match"
    return None


def password_strength(password: str):
    """Returns (label, level) with level 0 for empty and 1..3 otherwise."""
    if not password:
        return ("none", 0)

    score = 0
    for min_len in (8, 12, 16):
        if len(password) >= min_len:
            score += 1
    if re.search(r"[a-z]", password):
        score += 1
    if re.search(r"[A-Z]", password):
        score += 1
    if re.search(r"[0-9]", password):
        score += 1
    if SYMBOL_RE.search(password):
        score += 1

    if score <= 2:
        return ("Weak", 1)
    if score <= 4:
        return ("Medium", 2)
    return ("Strong", 3)
