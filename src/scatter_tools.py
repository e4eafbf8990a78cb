import numpy as np
import constants as cst
from enum import Enum
from dataclasses import dataclass, replace
from typing import Callable, Dict, NamedTuple


class ModelType(str, Enum):
    """Closed set of scattering model tags. AUTO defers to the g-parameter."""

    AUTO = "Auto"
    BECKMANN = "Beckmann"
    RAYLEIGH_RICE = "Rayleigh-Rice"
    HARVEY_SHACK = "Harvey-Shack"

    @classmethod
    def parse(cls, value: "ModelType | str") -> "ModelType":
        """Case-insensitive lookup; '_' and ' ' are accepted in place of '-'."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace("_", "-").replace(" ", "-")
        for member in cls:
            if member.value.lower() == key:
                return member
        names = ", ".join(m.value for m in cls)
        raise ValueError(f"Unknown model type {value!r}; expected one of: {names}.")


# Resolved model -> physical regime label
PHYSICAL_REGIMES = {
    ModelType.RAYLEIGH_RICE: "Specular",
    ModelType.HARVEY_SHACK: "Diffractive",
    ModelType.BECKMANN: "Diffuse",
}


@dataclass(frozen=True)
class SurfaceParameters:
    """
    Validated inputs of one scattering evaluation.

    Attributes
    ----------
    ra : float
        Arithmetic mean roughness (µm), > 0.
    wavelength : float
        Illumination wavelength (µm), > 0.
    incident_angle : float
        Angle of incidence (deg) in the plane of incidence.
    model_type : ModelType
        Requested model; AUTO lets the g-parameter decide.
    reflectivity : float
        Peak value of the normalized distribution, in [0, 1].
    slope_factor : float
        Multiplier on the microfacet slope width, > 0.
    material : str
        Label carried into exported files.
    """

    ra: float
    wavelength: float
    incident_angle: float = 0.0
    model_type: ModelType = ModelType.AUTO
    reflectivity: float = 1.0
    slope_factor: float = 1.0
    material: str = "Aluminum Alloy"

    def __post_init__(self):
        # frozen: go through object.__setattr__ to coerce types
        for name in ("ra", "wavelength", "incident_angle", "reflectivity", "slope_factor"):
            try:
                value = float(getattr(self, name))
            except (TypeError, ValueError) as e:
                raise ValueError(f"{name} must be a number, got {getattr(self, name)!r}.") from e
            if not np.isfinite(value):
                raise ValueError(f"{name} must be finite.")
            object.__setattr__(self, name, value)
        object.__setattr__(self, "model_type", ModelType.parse(self.model_type))
        object.__setattr__(self, "material", str(self.material))

        if self.ra <= 0:
            raise ValueError("ra must be > 0.")
        if self.wavelength <= 0:
            raise ValueError("wavelength must be > 0.")
        if not 0.0 <= self.reflectivity <= 1.0:
            raise ValueError("reflectivity must lie in [0, 1].")
        if self.slope_factor <= 0:
            raise ValueError("slope_factor must be > 0.")

    def clamp_to_practical_range(self) -> "SurfaceParameters":
        """Copy with ra and wavelength clipped into the supported slider ranges."""
        return replace(
            self,
            ra=float(np.clip(self.ra, cst.RA_MIN, cst.RA_MAX)),
            wavelength=float(np.clip(self.wavelength, cst.WAVELENGTH_MIN, cst.WAVELENGTH_MAX)),
        )


class AngularDomain(NamedTuple):
    """Observation-angle sweep [start, stop] (deg) sampled every `step` degrees."""

    start: float = cst.ANGLE_START
    stop: float = cst.ANGLE_STOP
    step: float = 1.0

    def get_angles(self) -> np.ndarray:
        """
        Ascending sample angles start + k·step, stop included when it falls on
        the grid. Values are rounded to 4 decimals to absorb accumulation noise.
        """
        step = float(self.step)
        start = float(self.start)
        stop = float(self.stop)
        if not np.isfinite(step) or step <= 0:
            raise ValueError("step must be a positive finite number.")
        if not (np.isfinite(start) and np.isfinite(stop)) or stop < start:
            raise ValueError("domain bounds must be finite with stop >= start.")

        n = int(np.floor((stop - start) / step + 1e-9)) + 1
        return np.round(start + step * np.arange(n), cst.ANGLE_DECIMALS)


class ScatteringDistribution(NamedTuple):
    """Angle-ascending (angle [deg], normalized intensity) arrays."""

    angle: np.ndarray
    intensity: np.ndarray


class ModelTerms(NamedTuple):
    """Per-call scalars shared by every sample of a sweep."""

    model: ModelType
    g: float
    specular_weight: float  # exp(-g)
    incident_angle: float   # deg
    theta: float            # rad
    peak_width: float       # deg, Rayleigh-Rice lobe
    slope: float            # Beckmann RMS slope m
    slope_factor: float


def get_g_parameter(ra: float, wavelength: float, incident_angle: float) -> float:
    """
    Smooth-surface scattering parameter

        g = (4π σ cos θ / λ)²,   σ = 1.25·Ra

    with λ floored at 1e-4 µm. Small g means specular, large g diffuse.
    """
    sigma = cst.RA_TO_RQ * ra
    theta = np.deg2rad(incident_angle)
    lam = max(cst.WAVELENGTH_FLOOR, wavelength)
    return float((4.0 * np.pi * sigma * np.cos(theta) / lam) ** 2)


def resolve_model(model_type: ModelType | str, g: float) -> ModelType:
    """Return the concrete model; AUTO is classified on g, others pass through."""
    model = ModelType.parse(model_type)
    if model is not ModelType.AUTO:
        return model
    if g < cst.G_SMOOTH_LIMIT:
        return ModelType.RAYLEIGH_RICE
    if g > cst.G_ROUGH_LIMIT:
        return ModelType.BECKMANN
    return ModelType.HARVEY_SHACK


def get_physical_regime(model: ModelType | str) -> str:
    """Regime label (Specular / Diffractive / Diffuse) of a resolved model."""
    model = ModelType.parse(model)
    if model is ModelType.AUTO:
        raise ValueError("Resolve AUTO with resolve_model() before asking for a regime.")
    return PHYSICAL_REGIMES[model]


def get_model_terms(
        ra: float,
        wavelength: float,
        incident_angle: float,
        model_type: ModelType | str,
        step: float,
        slope_factor: float,
) -> ModelTerms:
    """Resolve the model once and precompute the sweep-invariant scalars."""
    g = get_g_parameter(ra, wavelength, incident_angle)
    model = resolve_model(model_type, g)

    # ra in nm keeps the lobe width finite down to sub-nanometre roughness
    peak_width = max(2.0 * step, 0.2 * wavelength / max(cst.RA_NM_FLOOR, ra * 1000.0))
    slope = max(cst.BECKMANN_SLOPE_FLOOR, (ra / 5.0) * slope_factor)

    return ModelTerms(
        model=model,
        g=g,
        specular_weight=float(np.exp(-g)),
        incident_angle=float(incident_angle),
        theta=float(np.deg2rad(incident_angle)),
        peak_width=float(peak_width),
        slope=float(slope),
        slope_factor=float(slope_factor),
    )


def _rayleigh_rice(angles: np.ndarray, terms: ModelTerms) -> np.ndarray:
    diff = np.abs(angles - terms.incident_angle)
    a_rad = np.deg2rad(angles)
    specular = terms.specular_weight * np.exp(-(diff / terms.peak_width) ** 2)
    diffuse = (1.0 - terms.specular_weight) * np.cos(a_rad) ** 4
    return specular + 0.05 * diffuse


def _beckmann(angles: np.ndarray, terms: ModelTerms) -> np.ndarray:
    a_rad = np.deg2rad(angles)
    cos_a = np.cos(a_rad)
    # grazing and beyond: no microfacet contribution
    lit = (cos_a > 0.0) & (np.abs(angles) < 90.0)

    out = np.zeros_like(a_rad)
    m2 = terms.slope ** 2
    tan_d = np.tan(a_rad[lit] - terms.theta)
    with np.errstate(over="ignore", under="ignore"):
        out[lit] = np.exp(-tan_d ** 2 / (2.0 * m2)) / (np.pi * m2 * cos_a[lit] ** 4)
    return out


def _harvey_shack(angles: np.ndarray, terms: ModelTerms) -> np.ndarray:
    diff = np.abs(angles - terms.incident_angle)
    a_rad = np.deg2rad(angles)
    specular = terms.specular_weight * np.exp(-(diff / (1.5 * terms.slope_factor)) ** 2)
    diffuse = (1.0 - terms.specular_weight) * np.maximum(np.cos(a_rad), 0.0) ** 1.5
    return specular + 0.3 * diffuse


MODEL_KERNELS: Dict[ModelType, Callable[[np.ndarray, ModelTerms], np.ndarray]] = {
    ModelType.RAYLEIGH_RICE: _rayleigh_rice,
    ModelType.BECKMANN: _beckmann,
    ModelType.HARVEY_SHACK: _harvey_shack,
}


def get_raw_intensity(angles: np.ndarray, terms: ModelTerms) -> np.ndarray:
    """
    Evaluate the resolved model on `angles` (deg) without normalization.
    Non-finite or negative values are clamped to 0.
    """
    angles = np.asarray(angles, dtype=float)
    with np.errstate(divide="ignore", invalid="ignore", over="ignore", under="ignore"):
        raw = MODEL_KERNELS[terms.model](angles, terms)
    raw = np.where(np.isfinite(raw), raw, 0.0)
    return np.maximum(raw, 0.0)


def normalize_to_reflectivity(raw: np.ndarray, reflectivity: float) -> np.ndarray:
    """Scale so the peak equals `reflectivity`; an all-zero input stays zero."""
    raw = np.asarray(raw, dtype=float)
    peak = float(np.max(raw)) if raw.size else 0.0
    if peak == 0.0:
        peak = 1.0
    return raw / peak * reflectivity


def calculate_scattering(
        ra: float,
        wavelength: float,
        incident_angle: float,
        model_type: ModelType | str = ModelType.AUTO,
        step: float | AngularDomain = 1.0,
        reflectivity: float = 1.0,
        slope_factor: float = 1.0,
) -> ScatteringDistribution:
    """
    1D BRDF slice of a rough metal surface in the plane of incidence.

    Parameters
    ----------
    ra : float
        Arithmetic mean roughness (µm).
    wavelength : float
        Wavelength (µm). Values below 1e-4 saturate the g-parameter.
    incident_angle : float
        Angle of incidence (deg); the specular direction.
    model_type : ModelType | str, default AUTO
        Beckmann, Rayleigh-Rice, Harvey-Shack, or Auto (classified on g).
    step : float | AngularDomain, default 1.0
        Angular resolution (deg) over [-90, 90], or an explicit sweep.
    reflectivity : float, default 1.0
        Peak value of the returned intensity.
    slope_factor : float, default 1.0
        Microfacet slope width multiplier (Beckmann m, Harvey-Shack lobe).

    Returns
    -------
    ScatteringDistribution
        Fresh angle-ascending arrays; max(intensity) == reflectivity unless
        every raw sample was zero.

    Notes
    -----
    Degenerate physical inputs never raise; they saturate through the
    wavelength, roughness and slope floors. Only a non-positive step raises.
    """
    domain = step if isinstance(step, AngularDomain) else AngularDomain(step=step)
    angles = domain.get_angles()

    terms = get_model_terms(ra, wavelength, incident_angle, model_type, float(domain.step), slope_factor)
    raw = get_raw_intensity(angles, terms)
    return ScatteringDistribution(angles, normalize_to_reflectivity(raw, reflectivity))


class Scatterer:
    """
    Scattering engine bound to one set of `SurfaceParameters`.

    The regime classification is evaluated once at construction; every sweep
    reuses it together with the per-step model terms.
    """

    def __init__(self, parameters: SurfaceParameters):
        self.parameters = parameters
        self.g = get_g_parameter(parameters.ra, parameters.wavelength, parameters.incident_angle)
        self.active_model = resolve_model(parameters.model_type, self.g)

    def get_g_parameter(self) -> float:
        return self.g

    def get_active_model(self) -> ModelType:
        return self.active_model

    def get_physical_regime(self) -> str:
        return get_physical_regime(self.active_model)

    def get_model_terms(self, step: float) -> ModelTerms:
        p = self.parameters
        return get_model_terms(p.ra, p.wavelength, p.incident_angle, self.active_model, step, p.slope_factor)

    def get_raw_intensity(self, angles: np.ndarray, step: float = 1.0) -> np.ndarray:
        """Un-normalized model values at `angles` (deg)."""
        return get_raw_intensity(angles, self.get_model_terms(step))

    def get_scattering_distribution(self, step: float | AngularDomain = 1.0) -> ScatteringDistribution:
        """Normalized distribution over [-90, 90] (or the given domain)."""
        p = self.parameters
        return calculate_scattering(
            p.ra, p.wavelength, p.incident_angle, self.active_model, step, p.reflectivity, p.slope_factor
        )
