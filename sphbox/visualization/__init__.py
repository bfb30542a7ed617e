"""Offline rendering of simulation snapshots."""

from .snapshot import save_snapshot, normalized_speeds, box_edges

__all__ = ['save_snapshot', 'normalized_speeds', 'box_edges']
