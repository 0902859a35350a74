from __future__ import annotations

from typing import List, Optional, Dict
import os
import matplotlib.pyplot as plt

from .core import Process, pid_sort_key
from .utils import EventLogger


def ensure_dir(path: str) -> None:
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)


def plot_gantt(processes: List[Process], logger: EventLogger, out_path: Optional[str] = None,
               title: Optional[str] = None) -> None:
    fig, ax = plt.subplots(figsize=(12, 3 + 0.3 * max(1, len(processes))))

    pid_to_color = {p.pid: p.color for p in processes}
    pids_order = sorted({e.pid for e in logger.timeline}, key=pid_sort_key)
    y_positions: Dict[str, int] = {pid: i for i, pid in enumerate(pids_order)}

    for event in logger.timeline:
        y = y_positions[event.pid]
        ax.barh(y, event.duration, left=event.start, color=pid_to_color.get(event.pid, "#777777"),
                edgecolor="black", alpha=0.9)
        label = f"{event.start}-{event.end}"
        if event.queue_level is not None:
            label = f"Q{event.queue_level} {label}"
        ax.text(event.start + event.duration / 2, y, label, ha="center", va="center", fontsize=7)

    ax.set_yticks([y_positions[pid] for pid in pids_order])
    ax.set_yticklabels(pids_order)
    ax.invert_yaxis()
    ax.set_xlabel("Time")
    ax.set_title(title or "Gantt Chart")
    ax.grid(True, axis="x", linestyle=":", alpha=0.5)
    fig.tight_layout()

    if out_path:
        ensure_dir(out_path)
        fig.savefig(out_path, dpi=150)
        plt.close(fig)
    else:
        plt.show()
