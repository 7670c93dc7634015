from __future__ import annotations

from dataclasses import dataclass, asdict, field
from typing import Any, Dict, List, Mapping
import json
import numpy as np


# one solar radius in AU
R_SUN_AU = 0.004650467260962157

# attribute name -> key used when parameters are attached to a force by name
PARAM_KEYS: Dict[str, str] = {
    "inc": "pf_inc",
    "ap": "pf_ap",
    "as_": "pf_as",
    "n": "pf_n",
    "m0p": "pf_m0p",
    "mplanet": "pf_mplanet",
    "mstar": "pf_mstar",
}


class MissingParameterError(KeyError):
    """A required planet-force parameter was not set."""

    def __init__(self, missing: List[str]):
        self.missing = list(missing)
        super().__init__(f"required parameter(s) not set: {', '.join(self.missing)}")


@dataclass(frozen=True)
class Units:
    # Code units, default G=1.
    G: float = 1.0


@dataclass(frozen=True)
class PlanetParams:
    # inclination of the planet (carried, not applied)
    inc: float
    # planet semi-major axis
    ap: float
    # star semi-major axis (carried, not applied)
    as_: float
    # planet mean motion
    n: float
    # initial planet mean anomaly
    m0p: float
    mplanet: float
    mstar: float

    @classmethod
    def from_mapping(cls, d: Mapping[str, Any]) -> "PlanetParams":
        """Build from a ``pf_*`` keyed mapping; every key is required.

        Plain attribute names (``ap``, ``mstar``, ...) are accepted as well so a
        dumped config loads back.
        """
        vals = {name: d.get(key, d.get(name)) for name, key in PARAM_KEYS.items()}
        missing = [PARAM_KEYS[name] for name, v in vals.items() if v is None]
        if missing:
            raise MissingParameterError(missing)
        return cls(**{name: float(v) for name, v in vals.items()})

    def to_mapping(self) -> Dict[str, float]:
        return {key: float(getattr(self, name)) for name, key in PARAM_KEYS.items()}

    @property
    def mass_ratio(self) -> float:
        # star position = mass_ratio * planet position; float64 so mstar=0 gives inf/nan
        return -np.float64(self.mplanet) / self.mstar

    @property
    def period(self) -> float:
        return float(2.0*np.pi / self.n)


@dataclass(frozen=True)
class SimParams:
    # solve_ivp options
    method: str = "DOP853"
    rtol: float = 1e-10
    atol: float = 1e-12
    max_step: float = float('inf')

    # time control; dt_chunk is also the cadence of the orbit-based checks
    t_max: float = 1000.0
    dt_chunk: float = 10.0

    # engulfment: star radius in code units. Set <= 0 to disable.
    r_engulf: float = R_SUN_AU
    # pericenter-based engulfment test, run while d_star <= orbit_check_factor * ap
    orbit_engulf: bool = True
    orbit_check_factor: float = 5.0

    # unbound particles beyond this star distance are counted as ejected
    R_end: float = 1000.0

    # storage control
    max_store_points: int = 20000
    decimate_to: int = 5000

    # Hard wall-clock limit for a single trajectory integration (seconds).
    # Set <= 0 to disable.
    max_walltime_sec: float = 0.0

    # Minimum required advance in time per chunk; if the solver fails to
    # advance, we bail out instead of spinning forever.
    min_t_advance: float = 1e-12


@dataclass(frozen=True)
class ICParams:
    # heliocentric elements of the test particle (angles in radians)
    a: float = 1.0
    e: float = 0.0
    inc: float = 0.0
    Omega: float = 0.0
    omega: float = 0.0
    M: float = 0.0


@dataclass(frozen=True)
class OutputParams:
    out_dir: str = "out_runs"
    store_raw: bool = False
    store_raw_every: int = 0  # store every N-th run (0 disables)
    compress_npz: bool = True


@dataclass(frozen=True)
class ParallelParams:
    workers: int = 0  # 0 => use os.cpu_count()
    chunksize: int = 1


@dataclass(frozen=True)
class EnsembleConfig:
    planet: PlanetParams

    # particle element sweeps
    a_list: List[float]
    e_list: List[float]
    inc_max: float
    n_per_setting: int
    seed0: int = 1234

    # IC controls
    random_angles: bool = True

    sim: SimParams = field(default_factory=SimParams)
    output: OutputParams = field(default_factory=OutputParams)
    parallel: ParallelParams = field(default_factory=ParallelParams)


def _dataclass_from_dict(cls, d: Dict[str, Any]):
    # allow passing dict for nested dataclasses
    kwargs = {}
    for f in cls.__dataclass_fields__.values():  # type: ignore
        if f.name not in d:
            continue
        val = d[f.name]
        if f.name == 'max_step' and val is None:
            val = float('inf')
        kwargs[f.name] = val
    return cls(**kwargs)  # type: ignore


def load_ensemble_config(path: str) -> EnsembleConfig:
    with open(path, "r", encoding="utf-8") as f:
        d = json.load(f)
    if "planet" not in d:
        raise MissingParameterError(["planet"])
    d["planet"] = PlanetParams.from_mapping(d["planet"])
    # build nested dataclasses
    if "sim" in d:
        d["sim"] = _dataclass_from_dict(SimParams, d["sim"])
    if "output" in d:
        d["output"] = _dataclass_from_dict(OutputParams, d["output"])
    if "parallel" in d:
        d["parallel"] = _dataclass_from_dict(ParallelParams, d["parallel"])
    return _dataclass_from_dict(EnsembleConfig, d)


def to_json(obj: Any, path: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(asdict(obj), f, indent=2)
