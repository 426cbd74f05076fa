import matplotlib.pyplot as plt

STATUS_COLORS = {
    "Applied": "#a78bfa",
    "Interview Scheduled": "#fbbf24",
    "Interviewed": "#eab308",
    "Offer": "#10b981",
    "Rejected": "#ef4444",
}
FALLBACK_COLOR = "#6b7280"
LINE_COLOR = "#a78bfa"


def timeline_chart(points):
    """Line chart of weekly_timeline() points. Returns None when empty."""
    if not points:
        return None

    fig, ax = plt.subplots(figsize=(6, 3))
    labels = [p["label"] for p in points]
    counts = [p["count"] for p in points]
    ax.plot(labels, counts, color=LINE_COLOR, marker="o", linewidth=2)
    ax.set_title("Applications Over Time")
    ax.set_ylabel("Applications")
    ax.set_ylim(bottom=0)
    ax.grid(True, linestyle="--", alpha=0.4)
    fig.tight_layout()
    return fig


def status_chart(distribution):
    """Bar chart of status_distribution() entries. Returns None when empty."""
    if not distribution:
        return None

    fig, ax = plt.subplots(figsize=(6, 3))
    labels = [d["status"] for d in distribution]
    counts = [d["count"] for d in distribution]
    colors = [STATUS_COLORS.get(s, FALLBACK_COLOR) for s in labels]
    ax.bar(labels, counts, color=colors)
    ax.set_title("Status Distribution")
    ax.set_ylabel("Applications")
    ax.tick_params(axis="x", labelrotation=20)
    fig.tight_layout()
    return fig
