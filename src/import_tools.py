import os
import numpy as np
from typing import Dict, Any, Tuple
import scatter_tools as sct


def import_brdf_csv(
        folder_name: str,
        file_name: str,
) -> Tuple[Dict[str, str], sct.ScatteringDistribution]:
    """
    Read a BRDF export written by `export_tools.export_brdf_csv`.

    Parameters
    ----------
    folder_name, file_name : str
        Location of the CSV file (".csv" is appended when missing).

    Returns
    -------
    (metadata, distribution)
        metadata : dict
            Preamble entries keyed by their label (e.g. "Ra", "Model",
            "Phase Factor (g)"), values as raw strings.
        distribution : ScatteringDistribution
            The angle / intensity table.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ValueError
        If the column header is missing or a row is malformed.
    """
    path = os.path.join(
        folder_name, file_name if file_name.lower().endswith(".csv") else f"{file_name}.csv"
    )
    if not os.path.isfile(path):
        raise FileNotFoundError(f"BRDF file not found: {path}")

    metadata: Dict[str, str] = {}
    angles, intensities = [], []
    header_seen = False
    with open(path, "r", encoding="utf-8") as f:
        for line_no, raw in enumerate(f, start=1):
            s = raw.strip()
            if not s:
                continue
            if s.startswith("#"):
                body = s.lstrip("#").strip()
                if ":" in body:
                    k, v = map(str.strip, body.split(":", 1))
                    metadata[k] = v
                continue
            if not header_seen:
                if not s.lower().startswith("angle"):
                    raise ValueError(f"{path}:{line_no}: expected the Angle/Intensity column header.")
                header_seen = True
                continue
            parts = s.split(",")
            if len(parts) != 2:
                raise ValueError(f"{path}:{line_no}: expected 2 columns, got {len(parts)}.")
            try:
                angles.append(float(parts[0]))
                intensities.append(float(parts[1]))
            except ValueError as e:
                raise ValueError(f"{path}:{line_no}: invalid number in {s!r}") from e

    if not header_seen:
        raise ValueError(f"{path}: no Angle/Intensity table found.")

    return metadata, sct.ScatteringDistribution(
        np.asarray(angles, dtype=float), np.asarray(intensities, dtype=float)
    )


def import_inputs(simulator: "BRDFSimulator", project_folder: str, inputs_file: str) -> None:
    """Parse the inputs file of a project folder; populate `simulator` in place."""

    # ---------- helpers ----------
    def _clean(line: str) -> str | None:
        s = line.split("#", 1)[0].strip()
        return s or None

    def _as_bool(v: str | None, default=False) -> bool:
        if v is None:
            return default
        return v.strip().lower() in {"1", "true", "t", "yes", "y"}

    def _as_float(v: str | None, name: str) -> float:
        if v is None:
            raise ValueError(f"Missing value for '{name}'.")
        try:
            return float(v)
        except ValueError as e:
            raise ValueError(f"Invalid float for '{name}': {v}") from e

    def _as_int(v: str | None, name: str) -> int:
        value = _as_float(v, name)
        if value != int(value):
            raise ValueError(f"'{name}' must be an integer, got {v}.")
        return int(value)

    def _get(block: Dict[str, str], key: str) -> str | None:
        return block.get(key.lower())

    def _optional(block: Dict[str, str], key: str, default: Any, cast) -> Any:
        v = _get(block, key)
        return default if v is None else cast(v, key)

    # ---------- read & sectionize ----------
    path = os.path.join(os.path.abspath(project_folder), inputs_file)
    if not os.path.isfile(path):
        raise FileNotFoundError(f"Inputs file not found: {path}")

    surface, sim, exp = {}, {}, {}
    cur = None
    with open(path, "r", encoding="utf-8") as f:
        for raw in f:
            s = _clean(raw)
            if not s:
                continue
            low = s.lower()
            if "surface inputs" in low:
                cur = surface; continue
            if "simulation inputs" in low:
                cur = sim; continue
            if "exporting inputs" in low:
                cur = exp; continue
            if cur is None or "=" not in s:
                continue
            k, v = map(str.strip, s.split("=", 1))
            cur[k.lower()] = v

    # ---------- Surface ----------
    simulator.parameters = sct.SurfaceParameters(
        ra=_as_float(_get(surface, "ra"), "ra"),
        wavelength=_as_float(_get(surface, "wavelength"), "wavelength"),
        incident_angle=_as_float(_get(surface, "incident angle"), "incident angle"),
        model_type=_get(sim, "model") or sct.ModelType.AUTO,
        reflectivity=_optional(surface, "reflectivity", 1.0, _as_float),
        slope_factor=_optional(surface, "slope factor", 1.0, _as_float),
        material=_get(surface, "material") or "Aluminum Alloy",
    )

    # ---------- Simulation ----------
    simulator.domain = sct.AngularDomain(
        start=_optional(sim, "angle start", sct.AngularDomain().start, _as_float),
        stop=_optional(sim, "angle end", sct.AngularDomain().stop, _as_float),
        step=_as_float(_get(sim, "angular step"), "angular step"),
    )
    simulator.profile_length = _optional(sim, "profile length", 200, _as_int)
    simulator.field_size = _optional(sim, "height field size", 50, _as_int)
    simulator.seed = _optional(sim, "random seed", None, _as_int)

    # ---------- Exporting flags ----------
    simulator.export_brdf = _as_bool(_get(exp, "export brdf?"), False)
    simulator.plot_brdf = _as_bool(_get(exp, "plot brdf?"), False)
    simulator.plot_surface = _as_bool(_get(exp, "plot surface?"), False)
    simulator.results_folder = _get(exp, "results folder") or "results"
