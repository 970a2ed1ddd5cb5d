"""Optional host-level snapshot recording.

Records (environment uid, x, y, compartment) for every host at
configurable tick intervals, so an external viewer can replay the
epidemic spreading through the city.

Usage:
    recorder = SnapshotRecorder(
        enabled=True,
        interval_ticks=24,     # once per simulated day at 1h steps
        pathogen="flu",
    )

    # In simulation loop (CityModel.run does this):
    recorder.capture(model)

    # After simulation:
    recorder.save("snapshots.npz")
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Optional

import numpy as np

if TYPE_CHECKING:
    from episim.model import CityModel

NO_ENVIRONMENT = -1


@dataclass
class HostSnapshot:
    """Positions and compartments of all hosts at one tick."""
    tick: int
    hour: float
    # Parallel arrays, one entry per host in uid order
    host_uid: np.ndarray       # int64
    environment: np.ndarray    # int64, NO_ENVIRONMENT if evicted
    x: np.ndarray              # float32
    y: np.ndarray              # float32
    compartment: np.ndarray    # int8

    @property
    def n_hosts(self) -> int:
        return int(self.host_uid.shape[0])


class SnapshotRecorder:
    """Records host-level snapshots at a tick interval.

    When enabled=False, all methods are no-ops.
    """

    def __init__(
        self,
        enabled: bool = False,
        interval_ticks: int = 1,
        pathogen: Optional[str] = None,
        start_tick: int = 0,
        end_tick: int = 10**9,
    ):
        """
        Args:
            enabled: Master switch. False = no-ops everywhere.
            interval_ticks: Capture every N ticks.
            pathogen: Pathogen name whose compartment is recorded (None =
                the first pathogen registered with the model).
            start_tick: First tick to record.
            end_tick: Last tick to record.
        """
        if interval_ticks < 1:
            raise ValueError(f"interval_ticks must be >= 1, got {interval_ticks}")
        self.enabled = enabled
        self.interval_ticks = interval_ticks
        self.pathogen = pathogen
        self.start_tick = start_tick
        self.end_tick = end_tick
        self.snapshots: Dict[int, HostSnapshot] = {}

    def should_capture(self, tick: int) -> bool:
        if not self.enabled:
            return False
        if tick < self.start_tick or tick > self.end_tick:
            return False
        return (tick % self.interval_ticks) == 0

    def capture(self, model: 'CityModel') -> Optional[HostSnapshot]:
        """Capture the model's hosts if the current tick is due."""
        tick = model.tick_count
        if not self.should_capture(tick):
            return None
        pathogens = model.get_pathogens()
        if self.pathogen is not None:
            pathogen = model.get_pathogen(self.pathogen)
        elif pathogens:
            pathogen = pathogens[0]
        else:
            pathogen = None

        hosts = model.get_hosts()
        n = len(hosts)
        host_uid = np.empty(n, dtype=np.int64)
        environment = np.full(n, NO_ENVIRONMENT, dtype=np.int64)
        x = np.empty(n, dtype=np.float32)
        y = np.empty(n, dtype=np.float32)
        compartment = np.zeros(n, dtype=np.int8)
        for i, host in enumerate(hosts):
            host_uid[i] = host.uid
            if host.current_environment is not None:
                environment[i] = host.current_environment.uid
            x[i], y[i] = host.coordinate.x, host.coordinate.y
            if pathogen is not None:
                compartment[i] = int(host.get_compartment(pathogen))

        snap = HostSnapshot(
            tick=tick,
            hour=model.get_current_time().in_units('HOUR'),
            host_uid=host_uid,
            environment=environment,
            x=x,
            y=y,
            compartment=compartment,
        )
        self.snapshots[tick] = snap
        return snap

    def get_ticks(self) -> List[int]:
        return sorted(self.snapshots)

    def get_snapshot(self, tick: int) -> Optional[HostSnapshot]:
        return self.snapshots.get(tick)

    def save(self, path: str) -> None:
        """Save all snapshots to a compressed npz file.

        Format: per-snapshot arrays named t{tick}_uid, t{tick}_env, t{tick}_x,
        t{tick}_y, t{tick}_c, plus metadata arrays meta_ticks and meta_hours.
        """
        if not self.snapshots:
            return

        arrays = {}
        meta_ticks = []
        meta_hours = []
        for tick, snap in sorted(self.snapshots.items()):
            prefix = f"t{tick}"
            arrays[f"{prefix}_uid"] = snap.host_uid
            arrays[f"{prefix}_env"] = snap.environment
            arrays[f"{prefix}_x"] = snap.x
            arrays[f"{prefix}_y"] = snap.y
            arrays[f"{prefix}_c"] = snap.compartment
            meta_ticks.append(tick)
            meta_hours.append(snap.hour)

        arrays['meta_ticks'] = np.array(meta_ticks, dtype=np.int64)
        arrays['meta_hours'] = np.array(meta_hours, dtype=np.float64)

        Path(path).parent.mkdir(parents=True, exist_ok=True)
        np.savez_compressed(path, **arrays)

    @classmethod
    def load(cls, path: str) -> 'SnapshotRecorder':
        """Load snapshots from an npz file written by save()."""
        recorder = cls(enabled=False)
        with np.load(path) as data:
            for tick, hour in zip(data['meta_ticks'], data['meta_hours']):
                prefix = f"t{int(tick)}"
                recorder.snapshots[int(tick)] = HostSnapshot(
                    tick=int(tick),
                    hour=float(hour),
                    host_uid=data[f"{prefix}_uid"],
                    environment=data[f"{prefix}_env"],
                    x=data[f"{prefix}_x"],
                    y=data[f"{prefix}_y"],
                    compartment=data[f"{prefix}_c"],
                )
        return recorder

    def memory_estimate_mb(self) -> float:
        """Estimated memory of stored snapshots."""
        # 2 int64 + 2 float32 + 1 int8 per host
        total_bytes = sum(snap.n_hosts * (8 * 2 + 4 * 2 + 1)
                          for snap in self.snapshots.values())
        return total_bytes / (1024 * 1024)
